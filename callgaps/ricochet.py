"""
Ricochet call-history export (.csv) extractor.

Required columns: ``Date`` and ``User``. ``Full name``, ``From``, ``To``,
``Call Duration In Seconds`` and ``Call Type`` are optional; when one is
missing the corresponding field is left empty (or zero).
"""

from __future__ import annotations

from datetime import date
from typing import Optional

import structlog

from callgaps.errors import MissingColumns, NoCallsFound
from callgaps.extract import ExtractionBuilder, Extractor
from callgaps.models import CallRecord, Direction, Extraction, SourceFormat
from callgaps.normalise import parse_instant, parse_int_seconds, sorted_dates_desc
from callgaps.tokenizer import tokenize

log = structlog.get_logger(__name__)

COL_DATE = "Date"
COL_USER = "User"
COL_FULL_NAME = "Full name"
COL_FROM = "From"
COL_TO = "To"
COL_DURATION = "Call Duration In Seconds"
COL_CALL_TYPE = "Call Type"

_REQUIRED_COLUMNS = (COL_DATE, COL_USER)

# Call Type values containing any of these are inbound; everything else,
# blank included, is outbound.
_INBOUND_MARKERS = ("inbound", "live-q", "ivr")

UNKNOWN_AGENT = "Unknown"


def decode_text(data: bytes) -> str:
    """Decode export bytes, dropping a UTF-8 byte-order mark if present."""
    return data.decode("utf-8-sig", errors="replace")


def classify_call_type(call_type: str) -> Direction:
    value = call_type.strip().lower()
    if any(marker in value for marker in _INBOUND_MARKERS):
        return Direction.INBOUND
    return Direction.OUTBOUND


class _Columns:
    """Header positions; optional columns resolve to None when absent."""

    def __init__(self, headers: list[str]):
        self.headers = headers
        self.width = len(headers)

    def index(self, name: str) -> Optional[int]:
        try:
            return self.headers.index(name)
        except ValueError:
            return None

    def missing(self, names: tuple[str, ...]) -> list[str]:
        return [n for n in names if n not in self.headers]


def _cell(row: list[str], idx: Optional[int]) -> str:
    if idx is None or idx >= len(row):
        return ""
    return row[idx].strip()


def _is_blank_line(row: list[str]) -> bool:
    return len(row) == 1 and row[0].strip() == ""


class RicochetExtractor(Extractor):
    source_format = SourceFormat.RICOCHET
    extensions = ("csv",)

    def extract(self, data: bytes) -> Extraction:
        rows = tokenize(decode_text(data))
        if not rows:
            raise NoCallsFound("CSV file is empty or has no data rows")

        columns = _Columns([h.strip() for h in rows[0]])
        missing = columns.missing(_REQUIRED_COLUMNS)
        if missing:
            raise MissingColumns(missing)

        date_idx = columns.index(COL_DATE)
        user_idx = columns.index(COL_USER)
        name_idx = columns.index(COL_FULL_NAME)
        from_idx = columns.index(COL_FROM)
        to_idx = columns.index(COL_TO)
        duration_idx = columns.index(COL_DURATION)
        type_idx = columns.index(COL_CALL_TYPE)

        builder = ExtractionBuilder(self.source_format)

        for row_number, row in enumerate(rows[1:], start=2):
            if _is_blank_line(row):
                continue

            values = dict(zip(columns.headers, row))

            if len(row) < columns.width:
                builder.reject(row_number, "short_row", values)
                continue

            date_raw = _cell(row, date_idx)
            if not date_raw:
                builder.reject(row_number, "missing_date", values)
                continue
            call_start = parse_instant(date_raw)
            if call_start is None:
                builder.reject(row_number, "invalid_date", values)
                continue

            direction = classify_call_type(_cell(row, type_idx))
            phone_idx = to_idx if direction is Direction.OUTBOUND else from_idx

            builder.add(
                CallRecord(
                    agent_name=_cell(row, user_idx) or UNKNOWN_AGENT,
                    call_start=call_start,
                    duration_seconds=parse_int_seconds(_cell(row, duration_idx)),
                    direction=direction,
                    contact_name=_cell(row, name_idx),
                    contact_phone=_cell(row, phone_idx),
                    result="",
                )
            )

        return builder.build()

    def scan_dates(self, data: bytes) -> list[date]:
        rows = tokenize(decode_text(data))
        if len(rows) < 2:
            return []

        date_idx = _Columns([h.strip() for h in rows[0]]).index(COL_DATE)
        if date_idx is None:
            log.warning("ricochet_date_column_missing")
            return []

        dates: set[date] = set()
        for row in rows[1:]:
            call_start = parse_instant(_cell(row, date_idx))
            if call_start is not None:
                dates.add(call_start.date())
        return sorted_dates_desc(dates)
