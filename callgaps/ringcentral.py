"""
RingCentral call-log workbook (.xlsx) extractor.

The workbook carries two sheets we care about:
  - "Filters": the agents the export was filtered on, display name in the
    second column (first row is a header)
  - "Calls":   one row per call with direction, both parties, result,
    start time and call length

Calls are attributed to the internal party: the caller for outbound
calls, the callee otherwise. Rows whose agent is not on the Filters list
are dropped without being reported.
"""

from __future__ import annotations

import io
import zipfile
from datetime import date
from typing import Any, Iterator

import structlog

from callgaps.errors import CallFileError, MissingSheet
from callgaps.extract import ExtractionBuilder, Extractor
from callgaps.models import CallRecord, Direction, Extraction, SourceFormat
from callgaps.normalise import call_length_seconds, parse_instant, sorted_dates_desc

log = structlog.get_logger(__name__)

FILTERS_SHEET = "Filters"
CALLS_SHEET = "Calls"

COL_DIRECTION = "Call Direction"
COL_FROM_NAME = "From Name"
COL_TO_NAME = "To Name"
COL_FROM_NUMBER = "From Number"
COL_TO_NUMBER = "To Number"
COL_RESULT = "Result"
COL_START = "Call Start Time"
COL_LENGTH = "Call Length"


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _open_workbook(data: bytes):
    # openpyxl is only imported once a workbook is actually supplied
    import openpyxl
    from openpyxl.utils.exceptions import InvalidFileException

    try:
        return openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError) as exc:
        raise CallFileError(f"Could not read workbook: {exc}") from exc


def _sheet_records(sheet) -> Iterator[tuple[int, dict[str, Any]]]:
    """Yield (row_number, {header: value}) for each non-blank data row."""
    rows = sheet.iter_rows(values_only=True)
    header_row = next(rows, None)
    if header_row is None:
        return
    headers = [
        str(h).strip() if h is not None else f"col_{i}"
        for i, h in enumerate(header_row)
    ]
    for row_number, row in enumerate(rows, start=2):
        if row is None or all(v is None or v == "" for v in row):
            continue
        yield row_number, dict(zip(headers, row))


def _load_known_agents(sheet) -> set[str]:
    known: set[str] = set()
    for i, row in enumerate(sheet.iter_rows(values_only=True)):
        if i == 0 or row is None or len(row) < 2:
            continue
        name = row[1]
        if isinstance(name, str) and name.strip():
            known.add(name.strip())
    return known


class RingCentralExtractor(Extractor):
    source_format = SourceFormat.RINGCENTRAL
    extensions = ("xlsx",)

    def extract(self, data: bytes) -> Extraction:
        wb = _open_workbook(data)
        try:
            if FILTERS_SHEET not in wb.sheetnames:
                raise MissingSheet(FILTERS_SHEET)
            known_agents = _load_known_agents(wb[FILTERS_SHEET])

            if CALLS_SHEET not in wb.sheetnames:
                raise MissingSheet(CALLS_SHEET)

            log.debug("ringcentral_agents_loaded", count=len(known_agents))
            builder = ExtractionBuilder(self.source_format)
            for row_number, row in _sheet_records(wb[CALLS_SHEET]):
                self._extract_row(builder, row_number, row, known_agents)
        finally:
            wb.close()

        return builder.build()

    def _extract_row(
        self,
        builder: ExtractionBuilder,
        row_number: int,
        row: dict[str, Any],
        known_agents: set[str],
    ) -> None:
        is_outbound = _text(row.get(COL_DIRECTION)).lower() == "outbound"
        from_name = _text(row.get(COL_FROM_NAME))
        to_name = _text(row.get(COL_TO_NAME))

        agent_name = from_name if is_outbound else to_name
        if agent_name not in known_agents:
            return

        start_raw = row.get(COL_START)
        if start_raw is None or start_raw == "":
            builder.reject(row_number, "missing_start_time", row)
            return
        call_start = parse_instant(start_raw)
        if call_start is None:
            builder.reject(row_number, "invalid_start_time", row)
            return

        builder.add(
            CallRecord(
                agent_name=agent_name,
                call_start=call_start,
                duration_seconds=call_length_seconds(row.get(COL_LENGTH)),
                direction=Direction.OUTBOUND if is_outbound else Direction.INBOUND,
                contact_name=to_name if is_outbound else from_name,
                contact_phone=_text(row.get(COL_TO_NUMBER if is_outbound else COL_FROM_NUMBER)),
                result=_text(row.get(COL_RESULT)),
            )
        )

    def scan_dates(self, data: bytes) -> list[date]:
        dates: set[date] = set()
        wb = _open_workbook(data)
        try:
            if CALLS_SHEET not in wb.sheetnames:
                log.warning("ringcentral_calls_sheet_missing")
                return []
            for _, row in _sheet_records(wb[CALLS_SHEET]):
                call_start = parse_instant(row.get(COL_START))
                if call_start is not None:
                    dates.add(call_start.date())
        finally:
            wb.close()
        return sorted_dates_desc(dates)
