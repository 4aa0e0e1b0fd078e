"""
Aggregation: canonical calls -> per-agent summaries for one date.

Two entry points share the same grouping/summing/gap logic:
  - ``build_result``: straight from a freshly extracted file
  - ``build_parse_result_from_records``: from previously persisted rows,
    with caller-supplied office hours
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Union

import structlog

from callgaps.errors import NoCallsFound
from callgaps.gaps import compute_gaps_for_agent
from callgaps.models import (
    DEFAULT_OFFICE_HOURS,
    AgentSummary,
    CallRecord,
    Direction,
    OfficeHours,
    ParseResult,
    SourceFormat,
    StoredCallRecord,
)
from callgaps.normalise import sorted_dates_desc

log = structlog.get_logger(__name__)


def summarize_agent(
    agent_name: str,
    calls: list[CallRecord],
    office_hours: OfficeHours,
    target_date: date,
) -> AgentSummary:
    ordered = sorted(calls, key=lambda c: c.call_start)
    inbound = [c for c in ordered if c.direction is Direction.INBOUND]
    outbound = [c for c in ordered if c.direction is Direction.OUTBOUND]

    return AgentSummary(
        agent_name=agent_name,
        total_calls=len(ordered),
        inbound_calls=len(inbound),
        outbound_calls=len(outbound),
        total_talk_seconds=sum(c.duration_seconds for c in ordered),
        inbound_talk_seconds=sum(c.duration_seconds for c in inbound),
        outbound_talk_seconds=sum(c.duration_seconds for c in outbound),
        calls=ordered,
        gaps=compute_gaps_for_agent(ordered, office_hours, target_date),
    )


def _summarize_day(
    day_calls: Iterable[CallRecord],
    office_hours: OfficeHours,
    target_date: date,
) -> list[AgentSummary]:
    by_agent: dict[str, list[CallRecord]] = defaultdict(list)
    for call in day_calls:
        by_agent[call.agent_name].append(call)

    agents = [
        summarize_agent(name, calls, office_hours, target_date)
        for name, calls in by_agent.items()
    ]
    agents.sort(key=lambda a: a.agent_name)
    return agents


def build_result(
    calls: list[CallRecord],
    target_date: date,
    available_dates: list[date],
    source_format: SourceFormat,
    office_hours: OfficeHours = DEFAULT_OFFICE_HOURS,
) -> ParseResult:
    """Summaries for ``target_date``; other dates only feed ``available_dates``."""
    if not calls:
        raise NoCallsFound()

    day_calls = [c for c in calls if c.call_start.date() == target_date]
    agents = _summarize_day(day_calls, office_hours, target_date)

    log.info(
        "parse_result_built",
        source_format=source_format.value,
        target_date=target_date.isoformat(),
        agents=len(agents),
        day_calls=len(day_calls),
        raw_call_count=len(calls),
    )
    return ParseResult(
        agents=agents,
        available_dates=list(available_dates),
        source_format=source_format,
        raw_call_count=len(calls),
    )


def build_parse_result_from_records(
    records: Iterable[Union[StoredCallRecord, dict]],
    source_format: SourceFormat,
    target_date: date,
    office_hours: OfficeHours,
) -> ParseResult:
    """
    Rebuild a ParseResult from persisted canonical rows.

    With the default office hours this equals what ``build_result`` gave
    for the original file, so stored uploads can be re-audited against
    different office hours or dates without the source file.
    """
    rows = [
        r if isinstance(r, StoredCallRecord) else StoredCallRecord.model_validate(r)
        for r in records
    ]
    if not rows:
        raise NoCallsFound("No stored call records to rebuild from")

    day_calls = [r.to_call() for r in rows if r.call_date == target_date]
    agents = _summarize_day(day_calls, office_hours, target_date)

    log.info(
        "parse_result_rebuilt",
        source_format=SourceFormat(source_format).value,
        target_date=target_date.isoformat(),
        agents=len(agents),
        records=len(rows),
    )
    return ParseResult(
        agents=agents,
        available_dates=sorted_dates_desc({r.call_date for r in rows}),
        source_format=source_format,
        raw_call_count=len(rows),
    )


def with_office_hours(
    result: ParseResult,
    office_hours: OfficeHours,
    target_date: date,
) -> ParseResult:
    """Copy of ``result`` with every agent's gaps recomputed for new office hours."""
    agents = [
        agent.model_copy(
            update={"gaps": compute_gaps_for_agent(agent.calls, office_hours, target_date)}
        )
        for agent in result.agents
    ]
    return result.model_copy(update={"agents": agents})


def stored_records(calls: Iterable[CallRecord]) -> list[StoredCallRecord]:
    """Persistable rows for every call, across all dates."""
    return [StoredCallRecord.from_call(c) for c in calls]
