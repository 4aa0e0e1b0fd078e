"""
Shared data models used across the application.
"""

from __future__ import annotations

import enum
from datetime import date, datetime, time, timedelta
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from callgaps.normalise import to_local_naive


# ── Enums ───────────────────────────────────────────────────────
class Direction(str, enum.Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class SourceFormat(str, enum.Enum):
    """Which vendor export schema produced a result."""
    RINGCENTRAL = "ringcentral"  # .xlsx workbook
    RICOCHET = "ricochet"        # .csv export


# ── Office hours ────────────────────────────────────────────────
class OfficeHours(BaseModel):
    start: time = time(8, 0)
    end: time = time(18, 0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _start_before_end(self) -> "OfficeHours":
        if self.start >= self.end:
            raise ValueError(
                f"Office hours must start before they end "
                f"(got {self.start:%H:%M}-{self.end:%H:%M})"
            )
        return self

    def window(self, target_date: date) -> tuple[datetime, datetime]:
        """Absolute (day_start, day_end) instants for a calendar date."""
        return (
            datetime.combine(target_date, self.start),
            datetime.combine(target_date, self.end),
        )

    @property
    def window_seconds(self) -> int:
        start, end = self.window(date(2000, 1, 1))
        return int((end - start).total_seconds())


DEFAULT_OFFICE_HOURS = OfficeHours(start=time(8, 0), end=time(18, 0))


# ── Canonical call record ───────────────────────────────────────
class CallRecord(BaseModel):
    """One resolved telephone call, independent of the vendor it came from."""
    agent_name: str
    call_start: datetime
    duration_seconds: int = Field(default=0, ge=0)
    direction: Direction
    contact_name: str = ""
    contact_phone: str = ""
    result: str = ""

    model_config = {"frozen": True}

    @field_validator("call_start")
    @classmethod
    def _local_call_start(cls, v: datetime) -> datetime:
        return to_local_naive(v)

    @property
    def call_end(self) -> datetime:
        return self.call_start + timedelta(seconds=self.duration_seconds)

    @property
    def call_date(self) -> date:
        return self.call_start.date()


class CallGap(BaseModel):
    """A contiguous interval of agent inactivity inside office hours."""
    agent_name: str
    gap_start: datetime
    gap_end: datetime
    duration_seconds: int = Field(..., gt=0)
    call_before: Optional[CallRecord] = None
    call_after: Optional[CallRecord] = None

    model_config = {"frozen": True}


class AgentSummary(BaseModel):
    agent_name: str
    total_calls: int = 0
    inbound_calls: int = 0
    outbound_calls: int = 0
    total_talk_seconds: int = 0
    inbound_talk_seconds: int = 0
    outbound_talk_seconds: int = 0
    calls: list[CallRecord] = Field(default_factory=list)
    gaps: list[CallGap] = Field(default_factory=list)

    model_config = {"frozen": True}


class ParseResult(BaseModel):
    agents: list[AgentSummary] = Field(default_factory=list)
    available_dates: list[date] = Field(
        default_factory=list, description="Every date seen in the source, newest first"
    )
    source_format: SourceFormat
    raw_call_count: int = 0

    model_config = {"frozen": True}


# ── Extraction audit ────────────────────────────────────────────
class RejectedRow(BaseModel):
    """A source row dropped during extraction (kept for audit)."""
    row_number: int
    reason: str
    values: dict = Field(default_factory=dict)


class Extraction(BaseModel):
    """Output of one vendor extractor, before aggregation."""
    source_format: SourceFormat
    calls: list[CallRecord] = Field(default_factory=list)
    available_dates: list[date] = Field(default_factory=list)
    rejected: list[RejectedRow] = Field(default_factory=list)


# ── Persisted canonical row ─────────────────────────────────────
class StoredCallRecord(BaseModel):
    """Canonical call as written to (and read back from) the store."""
    agent_name: str
    call_start: datetime
    call_date: date
    duration_seconds: int = Field(default=0, ge=0)
    direction: Direction
    contact_name: str = ""
    contact_phone: str = ""
    result: str = ""

    @field_validator("call_start")
    @classmethod
    def _local_call_start(cls, v: datetime) -> datetime:
        return to_local_naive(v)

    @classmethod
    def from_call(cls, call: CallRecord) -> "StoredCallRecord":
        return cls(call_date=call.call_start.date(), **call.model_dump())

    def to_call(self) -> CallRecord:
        return CallRecord(**self.model_dump(exclude={"call_date"}))


class UploadInfo(BaseModel):
    id: int
    file_name: str
    source_format: SourceFormat
    raw_call_count: int
    record_count: int = 0
    created_at: datetime
