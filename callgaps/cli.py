"""
CLI interface for the call-gap auditor.
Provides commands for listing dates, computing gaps, and saving/replaying
uploads from the local store.
"""

from __future__ import annotations

import asyncio
from datetime import date
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from callgaps.config import Settings, get_settings
from callgaps.errors import CallFileError
from callgaps.gaps import format_duration_short, significant_gaps, total_gap_seconds
from callgaps.logging_config import setup_logging
from callgaps.models import OfficeHours, ParseResult, SourceFormat

app = typer.Typer(
    name="callgaps",
    help="Audit agent phone coverage from RingCentral / Ricochet call exports",
    add_completion=False,
)
console = Console()


def _run(coro):
    """Helper to run async code from sync CLI."""
    return asyncio.run(coro)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}")


def _office_hours(settings: Settings, start: Optional[str], end: Optional[str]) -> OfficeHours:
    overrides = {
        key: value
        for key, value in (("office_hours_start", start), ("office_hours_end", end))
        if value
    }
    try:
        return settings.model_copy(update=overrides).office_hours()
    except ValueError as exc:
        raise typer.BadParameter(str(exc))


def _fail(exc: Exception) -> NoReturn:
    console.print(f"[red]✗ {exc}[/red]")
    raise typer.Exit(code=1)


def _render(result: ParseResult, target_date: date, threshold: int) -> None:
    label = "RingCentral" if result.source_format is SourceFormat.RINGCENTRAL else "Ricochet"
    console.print(
        f"\n[bold]{label}[/bold] export — {result.raw_call_count} calls, "
        f"showing {target_date.isoformat()}"
    )

    table = Table(title=f"Agents (gaps ≥ {threshold} min)")
    table.add_column("Agent", style="cyan")
    table.add_column("Calls", justify="right")
    table.add_column("In / Out", justify="right")
    table.add_column("Talk time", justify="right")
    table.add_column("Gaps", justify="right", style="yellow")
    table.add_column("Idle", justify="right", style="yellow")

    for agent in result.agents:
        gaps = significant_gaps(agent.gaps, threshold)
        table.add_row(
            agent.agent_name,
            str(agent.total_calls),
            f"{agent.inbound_calls} / {agent.outbound_calls}",
            format_duration_short(agent.total_talk_seconds),
            str(len(gaps)),
            format_duration_short(total_gap_seconds(gaps)),
        )
    console.print(table)

    gap_table = Table(title="Significant gaps")
    gap_table.add_column("Agent", style="cyan")
    gap_table.add_column("From")
    gap_table.add_column("To")
    gap_table.add_column("Length", justify="right", style="yellow")
    for agent in result.agents:
        for gap in significant_gaps(agent.gaps, threshold):
            gap_table.add_row(
                gap.agent_name,
                f"{gap.gap_start:%H:%M:%S}",
                f"{gap.gap_end:%H:%M:%S}",
                format_duration_short(gap.duration_seconds),
            )
    console.print(gap_table)


@app.command()
def dates(
    call_file: Path = typer.Argument(..., help="RingCentral .xlsx or Ricochet .csv export"),
):
    """List the dates that have calls, newest first."""
    settings = get_settings()
    setup_logging(settings.log_dir, json_logs=False)

    from callgaps.pipeline import get_available_dates

    try:
        found = _run(get_available_dates(call_file))
    except CallFileError as exc:
        _fail(exc)

    if not found:
        console.print("[yellow]No dated calls found[/yellow]")
    for d in found:
        console.print(d.isoformat())


@app.command()
def gaps(
    call_file: Path = typer.Argument(..., help="RingCentral .xlsx or Ricochet .csv export"),
    on: Optional[str] = typer.Option(None, "--date", help="Date to audit (default: latest in file)"),
    start: Optional[str] = typer.Option(None, help="Office hours start, HH:MM"),
    end: Optional[str] = typer.Option(None, help="Office hours end, HH:MM"),
    threshold: Optional[int] = typer.Option(None, help="Only show gaps of at least this many minutes"),
    export: bool = typer.Option(False, help="Write gap, summary and rejected-row CSVs"),
):
    """Parse an export and report idle gaps per agent."""
    settings = get_settings()
    setup_logging(settings.log_dir, json_logs=True)
    office_hours = _office_hours(settings, start, end)
    threshold = settings.gap_threshold_minutes if threshold is None else threshold
    target = _parse_date(on)

    from callgaps.aggregate import build_result
    from callgaps.errors import NoCallsFound
    from callgaps.pipeline import extract_call_file

    try:
        extraction = _run(extract_call_file(call_file))
        if not extraction.calls:
            raise NoCallsFound()
        target = target or extraction.available_dates[0]
        result = build_result(
            extraction.calls,
            target,
            extraction.available_dates,
            extraction.source_format,
            office_hours,
        )
    except CallFileError as exc:
        _fail(exc)

    _render(result, target, threshold)
    if extraction.rejected:
        console.print(f"[yellow]{len(extraction.rejected)} row(s) skipped[/yellow]")

    if export:
        from callgaps.output import generate_gaps_csv, generate_rejected_csv, generate_summary_csv

        settings.ensure_dirs()
        console.print(f"\n[green]✓ Gaps:[/green] {generate_gaps_csv(result, settings.output_dir, threshold)}")
        console.print(
            f"[green]✓ Summary:[/green] {generate_summary_csv(result, settings.output_dir, threshold)}"
        )
        rejected_path = generate_rejected_csv(extraction.rejected, settings.output_dir)
        if rejected_path:
            console.print(f"[green]✓ Rejected rows:[/green] {rejected_path}")


@app.command()
def save(
    call_file: Path = typer.Argument(..., help="RingCentral .xlsx or Ricochet .csv export"),
):
    """Store every call in the export (all dates) for later replay."""
    settings = get_settings()
    setup_logging(settings.log_dir, json_logs=True)

    async def _do():
        from callgaps.aggregate import stored_records
        from callgaps.errors import NoCallsFound
        from callgaps.pipeline import extract_call_file
        from callgaps.store import CallGapStore

        extraction = await extract_call_file(call_file)
        if not extraction.calls:
            raise NoCallsFound()

        store = CallGapStore(settings.database_path)
        await store.connect()
        try:
            return await store.save_upload(
                call_file.name,
                extraction.source_format,
                len(extraction.calls),
                stored_records(extraction.calls),
            )
        finally:
            await store.close()

    try:
        upload_id, skipped = _run(_do())
    except CallFileError as exc:
        _fail(exc)

    console.print(f"\n[green]✓ Saved upload #{upload_id}[/green]")
    if skipped:
        console.print(f"  {skipped} duplicate record(s) skipped")


@app.command()
def history():
    """List stored uploads."""
    settings = get_settings()
    setup_logging(settings.log_dir, json_logs=False)

    async def _do():
        from callgaps.store import CallGapStore

        store = CallGapStore(settings.database_path)
        await store.connect()
        try:
            return await store.list_uploads()
        finally:
            await store.close()

    uploads = _run(_do())

    table = Table(title="Stored uploads")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("File")
    table.add_column("Format")
    table.add_column("Calls", justify="right")
    table.add_column("Stored", justify="right")
    table.add_column("Saved at (UTC)")
    for u in uploads:
        table.add_row(
            str(u.id),
            u.file_name,
            u.source_format.value,
            str(u.raw_call_count),
            str(u.record_count),
            f"{u.created_at:%Y-%m-%d %H:%M}",
        )
    console.print(table)


@app.command()
def replay(
    upload_id: int = typer.Argument(..., help="Upload ID from `callgaps history`"),
    on: Optional[str] = typer.Option(None, "--date", help="Date to audit (default: latest stored)"),
    start: Optional[str] = typer.Option(None, help="Office hours start, HH:MM"),
    end: Optional[str] = typer.Option(None, help="Office hours end, HH:MM"),
    threshold: Optional[int] = typer.Option(None, help="Only show gaps of at least this many minutes"),
):
    """Rebuild the gap report of a stored upload, without the original file."""
    settings = get_settings()
    setup_logging(settings.log_dir, json_logs=True)
    office_hours = _office_hours(settings, start, end)
    threshold = settings.gap_threshold_minutes if threshold is None else threshold
    target = _parse_date(on)

    async def _do():
        from callgaps.store import CallGapStore

        store = CallGapStore(settings.database_path)
        await store.connect()
        try:
            return await store.get_records(upload_id)
        finally:
            await store.close()

    source_format, records = _run(_do())
    if source_format is None or not records:
        _fail(CallFileError(f"No records found for upload #{upload_id}"))

    from callgaps.aggregate import build_parse_result_from_records

    target = target or max(r.call_date for r in records)
    result = build_parse_result_from_records(records, source_format, target, office_hours)
    _render(result, target, threshold)


if __name__ == "__main__":
    app()
