"""
End-to-end reconciliation of a roster against assignees' calendars.

Collaborators are reached only through the ``RosterSource`` and
``CalendarSource`` protocols; everything after calendar collection is
synchronous, in-memory work.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Mapping, Protocol, Sequence

from oncall_reconciler.services.availability import (
    DEFAULT_OUT_OF_OFFICE_MARKERS,
    AvailabilitySet,
    CalendarEvent,
    Slot,
    build_availability_set,
)
from oncall_reconciler.services.overrides import Override, diff_schedules
from oncall_reconciler.services.resolver import MAX_SWAPS, ensure_schedulable, resolve_conflicts
from oncall_reconciler.services.schedule import Assignment, ScheduleEntity
from oncall_reconciler.services.swap_log import SwapLog
from oncall_reconciler.services.templates import ShiftTemplate, match_shift_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RosterEntry:
    assignee_id: str
    assignee_email: str
    start: datetime
    end: datetime


class RosterSource(Protocol):
    async def fetch_roster(self, schedule_id: str, since: datetime, until: datetime) -> list[RosterEntry]: ...


class CalendarSource(Protocol):
    async def fetch_events(self, email: str, time_min: datetime, time_max: datetime) -> list[CalendarEvent]: ...


@dataclass
class ReconciliationContext:
    start_date: date
    duration_days: int
    roster: list[RosterEntry]
    calendars: Mapping[str, Sequence[CalendarEvent]]
    templates: Mapping[str, ShiftTemplate]
    tz: tzinfo
    out_of_office_markers: Sequence[str] = DEFAULT_OUT_OF_OFFICE_MARKERS
    max_swaps: int = MAX_SWAPS


@dataclass
class ReconciliationResult:
    original: list[ScheduleEntity]
    resolved: list[ScheduleEntity]
    swap_log: SwapLog
    overrides: list[Override]
    unmatched: list[RosterEntry] = field(default_factory=list)


def resolution_window(start_date: date, duration_days: int, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return ``[start_date 00:00, start_date + duration_days)`` in *tz*."""

    start = datetime.combine(start_date, time.min, tzinfo=tz)
    return start, start + timedelta(days=duration_days)


def partition_roster(
    roster: Iterable[RosterEntry],
    templates: Mapping[str, ShiftTemplate],
    tz: tzinfo,
    *,
    window: tuple[datetime, datetime] | None = None,
) -> tuple[dict[str, list[RosterEntry]], list[RosterEntry]]:
    """Group roster entries by shift type.

    Entries matching no template, or starting outside *window* when one is
    given, are logged and returned apart: their slot is never a candidate, so
    nobody could hold it without a conflict.
    """

    partitions: dict[str, list[RosterEntry]] = {name: [] for name in templates}
    unmatched: list[RosterEntry] = []
    for entry in roster:
        if window is not None and not window[0] <= entry.start < window[1]:
            logger.warning(
                "Roster entry for %s from %s to %s starts outside %s to %s, leaving it out",
                entry.assignee_email,
                entry.start.isoformat(),
                entry.end.isoformat(),
                window[0].isoformat(),
                window[1].isoformat(),
            )
            unmatched.append(entry)
            continue
        shift_type = match_shift_type(entry.start, entry.end, templates, tz)
        if shift_type is None:
            logger.warning(
                "Roster entry for %s from %s to %s matches no shift template, leaving it out",
                entry.assignee_email,
                entry.start.isoformat(),
                entry.end.isoformat(),
            )
            unmatched.append(entry)
        else:
            partitions[shift_type].append(entry)
    return partitions, unmatched

def build_schedule_entities(
    partitions: Mapping[str, Sequence[RosterEntry]],
    context: ReconciliationContext,
) -> list[ScheduleEntity]:
    # One availability set per assignee and shift type, shared by all their entries.
    availability_cache: dict[tuple[str, str], AvailabilitySet] = {}
    entities: list[ScheduleEntity] = []
    for shift_type, entries in partitions.items():
        template = context.templates[shift_type]
        for entry in entries:
            key = (entry.assignee_email, shift_type)
            if key not in availability_cache:
                availability_cache[key] = build_availability_set(
                    context.calendars.get(entry.assignee_email, ()),
                    template,
                    context.start_date,
                    context.duration_days,
                    context.tz,
                    markers=context.out_of_office_markers,
                    email=entry.assignee_email,
                )
            entities.append(
                ScheduleEntity(
                    assignment=Assignment(
                        person_id=entry.assignee_id,
                        person_email=entry.assignee_email,
                        slot=Slot(start=entry.start.astimezone(context.tz), end=entry.end.astimezone(context.tz)),
                    ),
                    availability=availability_cache[key],
                )
            )
    return entities


async def collect_calendars(
    source: CalendarSource,
    emails: Iterable[str],
    time_min: datetime,
    time_max: datetime,
) -> dict[str, list[CalendarEvent]]:
    """Fetch every distinct assignee's calendar concurrently."""

    unique_emails = list(dict.fromkeys(emails))
    results = await asyncio.gather(
        *(source.fetch_events(email, time_min, time_max) for email in unique_emails)
    )
    return dict(zip(unique_emails, results))


def reconcile(context: ReconciliationContext, *, rng: random.Random | None = None) -> ReconciliationResult:
    partitions, unmatched = partition_roster(
        context.roster,
        context.templates,
        context.tz,
        window=resolution_window(context.start_date, context.duration_days, context.tz),
    )

    original = build_schedule_entities(partitions, context)
    logger.info("Reconciling %d shifts", len(original))
    ensure_schedulable(original)

    resolution = resolve_conflicts(original, rng=rng, max_swaps=context.max_swaps)
    overrides = diff_schedules(original, resolution.entities)
    logger.info("Generated %d overrides from %d swaps", len(overrides), len(resolution.swap_log))
    return ReconciliationResult(
        original=original,
        resolved=resolution.entities,
        swap_log=resolution.swap_log,
        overrides=overrides,
        unmatched=unmatched,
    )
