"""
Public entry points: call export file -> ParseResult.

The synchronous functions do all of the work on bytes already in memory.
The async wrappers add the two suspension points of the surrounding
workflow (reading the file, loading spreadsheet support on demand) and
honour a cancellation flag once each of them resolves.
"""

from __future__ import annotations

import asyncio
import importlib
from datetime import date
from pathlib import Path
from typing import Optional

import structlog

from callgaps.aggregate import build_result
from callgaps.errors import NoCallsFound, ParseCancelled
from callgaps.extract import Extractor
from callgaps.models import Extraction, ParseResult
from callgaps.ringcentral import RingCentralExtractor
from callgaps.router import select_extractor

log = structlog.get_logger(__name__)


# ── Synchronous core ────────────────────────────────────────────


def extract_calls(file_name: str, data: bytes) -> Extraction:
    """Run the matching vendor extractor; includes the rejected-row audit."""
    return select_extractor(file_name).extract(data)


def parse_call_bytes(
    file_name: str,
    data: bytes,
    target_date: Optional[date] = None,
) -> ParseResult:
    """
    Parse an export held in memory.

    ``target_date`` defaults to the most recent date present in the file.
    """
    extraction = extract_calls(file_name, data)
    if extraction.rejected:
        log.info(
            "rows_rejected",
            file=file_name,
            count=len(extraction.rejected),
            reasons=sorted({r.reason for r in extraction.rejected}),
        )
    if not extraction.calls:
        raise NoCallsFound()

    day = target_date or extraction.available_dates[0]
    result = build_result(
        extraction.calls,
        day,
        extraction.available_dates,
        extraction.source_format,
    )
    log.info(
        "call_file_parsed",
        file=file_name,
        source_format=result.source_format.value,
        target_date=day.isoformat(),
        raw_call_count=result.raw_call_count,
    )
    return result


def available_dates_from_bytes(file_name: str, data: bytes) -> list[date]:
    """All dates with a parseable call start, newest first, ignoring the allow-list."""
    return select_extractor(file_name).scan_dates(data)


# ── Async wrappers ──────────────────────────────────────────────


def _check_cancelled(cancel: Optional[asyncio.Event], stage: str) -> None:
    if cancel is not None and cancel.is_set():
        log.info("parse_cancelled", stage=stage)
        raise ParseCancelled(stage)


async def _load_source(
    path: Path,
    extractor: Extractor,
    cancel: Optional[asyncio.Event],
) -> bytes:
    data = await asyncio.to_thread(path.read_bytes)
    _check_cancelled(cancel, "file read")

    if isinstance(extractor, RingCentralExtractor):
        await asyncio.to_thread(importlib.import_module, "openpyxl")
        _check_cancelled(cancel, "spreadsheet support loaded")

    return data


async def parse_call_file(
    path: str | Path,
    target_date: Optional[date] = None,
    cancel: Optional[asyncio.Event] = None,
) -> ParseResult:
    """
    Read and parse a RingCentral (.xlsx) or Ricochet (.csv) export.

    Raises ParseCancelled if ``cancel`` is set by the time the file has been
    read or spreadsheet support has been loaded; nothing is parsed then.
    """
    path = Path(path)
    extractor = select_extractor(path.name)
    data = await _load_source(path, extractor, cancel)
    return parse_call_bytes(path.name, data, target_date)


async def extract_call_file(
    path: str | Path,
    cancel: Optional[asyncio.Event] = None,
) -> Extraction:
    path = Path(path)
    extractor = select_extractor(path.name)
    data = await _load_source(path, extractor, cancel)
    return extractor.extract(data)


async def get_available_dates(
    path: str | Path,
    cancel: Optional[asyncio.Event] = None,
) -> list[date]:
    path = Path(path)
    extractor = select_extractor(path.name)
    data = await _load_source(path, extractor, cancel)
    return extractor.scan_dates(data)
