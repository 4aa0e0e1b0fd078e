"""
Output CSV generation — gap listings, per-agent summaries and the
rejected-row audit for a parsed call export.
"""

from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Optional

import structlog

from callgaps.gaps import significant_gaps, total_gap_seconds
from callgaps.models import CallRecord, ParseResult, RejectedRow

log = structlog.get_logger(__name__)

GAP_COLUMNS = [
    "agent_name",
    "gap_start",
    "gap_end",
    "duration_seconds",
    "call_before_contact",
    "call_before_phone",
    "call_after_contact",
    "call_after_phone",
]

SUMMARY_COLUMNS = [
    "agent_name",
    "total_calls",
    "inbound_calls",
    "outbound_calls",
    "total_talk_seconds",
    "inbound_talk_seconds",
    "outbound_talk_seconds",
    "gap_count",
    "gap_seconds",
]


def _timestamp() -> str:
    return datetime.utcnow().strftime("%Y%m%d_%H%M%S")


def _contact(call: Optional[CallRecord]) -> tuple[str, str]:
    if call is None:
        return "", ""
    return call.contact_name, call.contact_phone


def generate_gaps_csv(
    result: ParseResult,
    output_dir: Path,
    threshold_minutes: float = 0,
) -> Path:
    """
    Write every gap at or above ``threshold_minutes`` to a CSV.

    Returns the path to the generated file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"call_gaps_{result.source_format.value}_{_timestamp()}.csv"

    written = 0
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=GAP_COLUMNS)
        writer.writeheader()

        for agent in result.agents:
            for gap in significant_gaps(agent.gaps, threshold_minutes):
                before_name, before_phone = _contact(gap.call_before)
                after_name, after_phone = _contact(gap.call_after)
                writer.writerow(
                    {
                        "agent_name": gap.agent_name,
                        "gap_start": gap.gap_start.isoformat(),
                        "gap_end": gap.gap_end.isoformat(),
                        "duration_seconds": gap.duration_seconds,
                        "call_before_contact": before_name,
                        "call_before_phone": before_phone,
                        "call_after_contact": after_name,
                        "call_after_phone": after_phone,
                    }
                )
                written += 1

    log.info("gaps_csv_generated", path=str(output_path), gaps=written)
    return output_path


def generate_summary_csv(
    result: ParseResult,
    output_dir: Path,
    threshold_minutes: float = 0,
) -> Path:
    """One row per agent with call counters and gap totals."""
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"agent_summary_{result.source_format.value}_{_timestamp()}.csv"

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=SUMMARY_COLUMNS)
        writer.writeheader()
        for agent in result.agents:
            gaps = significant_gaps(agent.gaps, threshold_minutes)
            writer.writerow(
                {
                    "agent_name": agent.agent_name,
                    "total_calls": agent.total_calls,
                    "inbound_calls": agent.inbound_calls,
                    "outbound_calls": agent.outbound_calls,
                    "total_talk_seconds": agent.total_talk_seconds,
                    "inbound_talk_seconds": agent.inbound_talk_seconds,
                    "outbound_talk_seconds": agent.outbound_talk_seconds,
                    "gap_count": len(gaps),
                    "gap_seconds": total_gap_seconds(gaps),
                }
            )

    log.info("summary_csv_generated", path=str(output_path), agents=len(result.agents))
    return output_path


def generate_rejected_csv(
    rejected_rows: list[RejectedRow],
    output_dir: Path,
) -> Optional[Path]:
    """Write rejected source rows to a separate CSV for audit."""
    if not rejected_rows:
        return None

    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"rejected_rows_{_timestamp()}.csv"

    # Gather all source columns across rejected rows
    value_keys: set[str] = set()
    for row in rejected_rows:
        value_keys.update(row.values.keys())
    columns = ["_row", "_reason"] + sorted(value_keys)

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns)
        writer.writeheader()
        for row in rejected_rows:
            writer.writerow({"_row": row.row_number, "_reason": row.reason, **row.values})

    log.info("rejected_csv_generated", path=str(output_path), rows=len(rejected_rows))
    return output_path
