"""
Common contract for vendor extractors.

An extractor turns the raw bytes of one vendor export into an
``Extraction``: canonical CallRecords plus the dates seen and the rows it
had to drop. Aggregation never needs to know which vendor produced them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any

import structlog

from callgaps.models import CallRecord, Extraction, RejectedRow, SourceFormat
from callgaps.normalise import sorted_dates_desc

log = structlog.get_logger(__name__)


class Extractor(ABC):
    source_format: SourceFormat
    extensions: tuple[str, ...] = ()

    @abstractmethod
    def extract(self, data: bytes) -> Extraction:
        """Parse a whole export into canonical calls."""

    @abstractmethod
    def scan_dates(self, data: bytes) -> list[date]:
        """Every calendar date with a parseable call start, newest first."""


class ExtractionBuilder:
    """Accumulates calls, dates and rejects while an extractor walks its rows."""

    def __init__(self, source_format: SourceFormat):
        self.source_format = source_format
        self.calls: list[CallRecord] = []
        self.dates: set[date] = set()
        self.rejected: list[RejectedRow] = []

    def add(self, call: CallRecord) -> None:
        self.calls.append(call)
        self.dates.add(call.call_start.date())

    def reject(self, row_number: int, reason: str, values: dict[str, Any]) -> None:
        self.rejected.append(
            RejectedRow(
                row_number=row_number,
                reason=reason,
                values={k: "" if v is None else str(v) for k, v in values.items()},
            )
        )

    def build(self) -> Extraction:
        log.info(
            "extraction_complete",
            source_format=self.source_format.value,
            calls=len(self.calls),
            rejected=len(self.rejected),
            dates=len(self.dates),
        )
        return Extraction(
            source_format=self.source_format,
            calls=self.calls,
            available_dates=sorted_dates_desc(self.dates),
            rejected=self.rejected,
        )
