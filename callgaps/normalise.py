"""
Date and duration normalisation shared by the vendor extractors.

Vendor exports encode call start times and call lengths in several
incompatible ways. Everything here converts them to naive local
``datetime`` instants and whole-second integer durations.
"""

from __future__ import annotations

import enum
import math
import re
from datetime import date, datetime, time, timedelta
from typing import Any, NamedTuple, Optional

from dateutil import parser as dateparser

SECONDS_PER_DAY = 86400

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


# ── Instants ────────────────────────────────────────────────────


def to_local_naive(dt: datetime) -> datetime:
    """Aware instants are shifted to local wall-clock time; naive ones are kept."""
    if dt.tzinfo is not None:
        return dt.astimezone().replace(tzinfo=None)
    return dt


def parse_instant(raw: Any) -> Optional[datetime]:
    """
    Interpret a cell/field value as an absolute instant.

    Accepts ``datetime``/``date`` objects (as decoded from spreadsheets) and
    free-form date strings (ISO 8601, ``MM/DD/YYYY hh:mm AM`` and similar).
    Returns None when the value is blank or not recognisable; numbers are
    not treated as instants.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return to_local_naive(raw)
    if isinstance(raw, date):
        return datetime.combine(raw, time())
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not text:
        return None

    try:
        return to_local_naive(datetime.fromisoformat(text))
    except ValueError:
        pass

    # Parse against two different defaults: any date part dateutil had to
    # borrow from the default differs between them, and such text is a
    # clock time or bare number rather than an instant.
    try:
        first = dateparser.parse(text, default=_DEFAULT_A)
        second = dateparser.parse(text, default=_DEFAULT_B)
    except (ValueError, OverflowError):
        return None
    if first.date() != second.date():
        return None
    return to_local_naive(first)


def sorted_dates_desc(dates: set[date]) -> list[date]:
    return sorted(dates, reverse=True)


# ── Call lengths ────────────────────────────────────────────────


class LengthEncoding(str, enum.Enum):
    DAY_FRACTION = "day_fraction"  # 0.0017361 == 150 s
    TIME_OF_DAY = "time_of_day"    # 00:02:30 as a clock value
    CLOCK_TEXT = "clock_text"      # "02:30" or "00:02:30"
    UNKNOWN = "unknown"


class CallLength(NamedTuple):
    encoding: LengthEncoding
    value: Any


def classify_call_length(raw: Any) -> CallLength:
    """Decide once which of the spreadsheet length encodings ``raw`` uses."""
    if isinstance(raw, bool):
        return CallLength(LengthEncoding.UNKNOWN, raw)
    if isinstance(raw, (int, float)):
        return CallLength(LengthEncoding.DAY_FRACTION, float(raw))
    if isinstance(raw, timedelta):
        # openpyxl decodes [h]:mm:ss cells as timedelta; already a day fraction
        return CallLength(LengthEncoding.DAY_FRACTION, raw.total_seconds() / SECONDS_PER_DAY)
    if isinstance(raw, (time, datetime)):
        return CallLength(LengthEncoding.TIME_OF_DAY, raw)
    if isinstance(raw, str):
        return CallLength(LengthEncoding.CLOCK_TEXT, raw.strip())
    return CallLength(LengthEncoding.UNKNOWN, raw)


def _clock_text_seconds(text: str) -> int:
    parts = text.split(":")
    try:
        numbers = [float(p) if p.strip() else 0.0 for p in parts]
    except ValueError:
        return 0
    if any(math.isnan(x) or math.isinf(x) for x in numbers):
        return 0
    if len(numbers) == 2:
        minutes, seconds = numbers
        return round_half_up(minutes * 60 + seconds)
    if len(numbers) == 3:
        hours, minutes, seconds = numbers
        return round_half_up(hours * 3600 + minutes * 60 + seconds)
    return 0


def call_length_seconds(raw: Any) -> int:
    """
    Whole seconds for a spreadsheet call-length cell.

    Unrecognised encodings degrade to 0 rather than failing the row.
    """
    length = classify_call_length(raw)

    if length.encoding is LengthEncoding.DAY_FRACTION:
        if math.isnan(length.value) or math.isinf(length.value):
            return 0
        seconds = round_half_up(length.value * SECONDS_PER_DAY)
    elif length.encoding is LengthEncoding.TIME_OF_DAY:
        clock = length.value
        seconds = clock.hour * 3600 + clock.minute * 60 + clock.second
    elif length.encoding is LengthEncoding.CLOCK_TEXT:
        seconds = _clock_text_seconds(length.value)
    else:
        seconds = 0

    return max(seconds, 0)


def parse_int_seconds(raw: Optional[str]) -> int:
    """Leading integer of a text duration (``"42"``, ``"42.9"``, ``"42s"``), else 0."""
    if not raw:
        return 0
    match = _LEADING_INT.match(raw)
    if not match:
        return 0
    return max(int(match.group(1)), 0)
