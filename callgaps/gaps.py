"""
Gap computation: where, inside office hours, an agent had no call active.

``compute_gaps_for_agent`` is pure and cheap (linear in the agent's calls
for the day), so callers re-run it on every office-hours edit instead of
re-parsing the source file.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from callgaps.models import CallGap, CallRecord, OfficeHours
from callgaps.normalise import round_half_up


def _seconds_between(start: datetime, end: datetime) -> int:
    return round_half_up((end - start).total_seconds())


def _gap(
    agent_name: str,
    start: datetime,
    end: datetime,
    call_before: Optional[CallRecord],
    call_after: Optional[CallRecord],
) -> Optional[CallGap]:
    seconds = _seconds_between(start, end)
    if seconds <= 0:
        return None
    return CallGap(
        agent_name=agent_name,
        gap_start=start,
        gap_end=end,
        duration_seconds=seconds,
        call_before=call_before,
        call_after=call_after,
    )


def compute_gaps_for_agent(
    calls: list[CallRecord],
    office_hours: OfficeHours,
    target_date: date,
) -> list[CallGap]:
    """
    Idle intervals for one agent on ``target_date``, in time order.

    Emits the stretch from opening to the first call, every stretch between
    one call ending and the next starting, and the stretch from the last
    call ending to closing. Intervals of zero or negative length (back to
    back or overlapping calls, calls outside office hours) are skipped.
    A day with no calls yields no gaps.
    """
    if not calls:
        return []

    ordered = sorted(calls, key=lambda c: c.call_start)
    day_start, day_end = office_hours.window(target_date)
    gaps: list[Optional[CallGap]] = []

    first = ordered[0]
    gaps.append(_gap(first.agent_name, day_start, first.call_start, None, first))

    for current, following in zip(ordered, ordered[1:]):
        gaps.append(
            _gap(current.agent_name, current.call_end, following.call_start, current, following)
        )

    last = ordered[-1]
    gaps.append(_gap(last.agent_name, last.call_end, day_end, last, None))

    return [g for g in gaps if g is not None]


def significant_gaps(gaps: Iterable[CallGap], threshold_minutes: float) -> list[CallGap]:
    """Gaps lasting at least ``threshold_minutes``."""
    threshold_seconds = threshold_minutes * 60
    return [g for g in gaps if g.duration_seconds >= threshold_seconds]


def total_gap_seconds(gaps: Iterable[CallGap]) -> int:
    return sum(g.duration_seconds for g in gaps)


def format_duration_short(seconds: int) -> str:
    minutes, secs = divmod(int(seconds), 60)
    if minutes == 0:
        return f"{secs} sec"
    return f"{minutes} min {secs} sec"
