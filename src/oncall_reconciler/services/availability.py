"""Derive the slots an assignee can staff from their calendar."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Sequence

from oncall_reconciler.services.errors import MalformedEventTime
from oncall_reconciler.services.templates import ShiftTemplate

DEFAULT_OUT_OF_OFFICE_MARKERS: tuple[str, ...] = ("xoncall", "out of")
OUT_OF_OFFICE_EVENT_TYPE = "outofoffice"


@dataclass(frozen=True, order=True)
class Slot:
    start: datetime
    end: datetime

    def isoformat(self) -> tuple[str, str]:
        return self.start.isoformat(), self.end.isoformat()


@dataclass(frozen=True)
class EventBoundary:
    """Either an all-day ``date`` or a precise ``date_time`` (RFC 3339)."""

    date: str | None = None
    date_time: str | None = None


@dataclass(frozen=True)
class CalendarEvent:
    start: EventBoundary | None
    end: EventBoundary | None
    visibility: str | None = None
    summary: str | None = None
    event_type: str | None = None


@dataclass(frozen=True)
class AvailabilitySet:
    """Every generated slot of one shift type, flagged free or busy for its owner."""

    shift_type: str
    candidates: tuple[Slot, ...]
    free: tuple[bool, ...]

    def __post_init__(self) -> None:
        if len(self.candidates) != len(self.free):
            raise ValueError("every candidate slot needs exactly one free flag")

    @property
    def free_slots(self) -> tuple[Slot, ...]:
        return tuple(slot for slot, is_free in zip(self.candidates, self.free) if is_free)

    @property
    def free_starts(self) -> frozenset[datetime]:
        return frozenset(slot.start for slot in self.free_slots)

    def is_free_at(self, start: datetime) -> bool:
        return start in self.free_starts

    def __len__(self) -> int:
        return sum(self.free)


def generate_slots(template: ShiftTemplate, start_date: date, duration_days: int, tz: tzinfo) -> list[Slot]:
    """Repeat *template* once per day over ``[start_date, start_date + duration_days)``."""

    first_start = datetime.combine(start_date, template.start, tzinfo=tz)
    slots: list[Slot] = []
    for offset in range(duration_days):
        slot_start = first_start + timedelta(days=offset)
        slots.append(Slot(start=slot_start, end=slot_start + template.duration))
    return slots


def is_relevant_event(event: CalendarEvent, markers: Iterable[str] = DEFAULT_OUT_OF_OFFICE_MARKERS) -> bool:
    """Public events flagged as out of office by heading or by event type."""

    if event.visibility is not None and event.visibility.lower() == "private":
        return False
    summary = (event.summary or "").lower()
    if any(marker.lower() in summary for marker in markers):
        return True
    return event.event_type is not None and event.event_type.lower() == OUT_OF_OFFICE_EVENT_TYPE


def parse_event_boundary(boundary: EventBoundary | None, tz: tzinfo, *, email: str | None = None) -> datetime:
    """Resolve a boundary to an aware datetime; all-day dates start at 00:00 in *tz*."""

    if boundary is None:
        raise MalformedEventTime(boundary, email=email)
    try:
        if boundary.date is not None:
            return datetime.combine(date.fromisoformat(boundary.date), time.min, tzinfo=tz)
        if boundary.date_time is not None:
            parsed = datetime.fromisoformat(boundary.date_time)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=tz)
            return parsed
    except ValueError as exc:
        raise MalformedEventTime(boundary, email=email) from exc
    raise MalformedEventTime(boundary, email=email)


def slot_overlaps_event(slot: Slot, event_start: datetime, event_end: datetime) -> bool:
    # Inclusive on both ends: touching boundaries count as overlapping.
    return event_start <= slot.end and event_end >= slot.start


def _busy_intervals(
    events: Iterable[CalendarEvent],
    tz: tzinfo,
    markers: Sequence[str],
    email: str | None,
) -> list[tuple[datetime, datetime]]:
    return [
        (
            parse_event_boundary(event.start, tz, email=email),
            parse_event_boundary(event.end, tz, email=email),
        )
        for event in events
        if is_relevant_event(event, markers)
    ]


def build_availability_set(
    events: Iterable[CalendarEvent],
    template: ShiftTemplate,
    start_date: date,
    duration_days: int,
    tz: tzinfo,
    *,
    markers: Sequence[str] = DEFAULT_OUT_OF_OFFICE_MARKERS,
    email: str | None = None,
) -> AvailabilitySet:
    candidates = generate_slots(template, start_date, duration_days, tz)
    busy = _busy_intervals(events, tz, markers, email)
    free = tuple(
        not any(slot_overlaps_event(slot, busy_start, busy_end) for busy_start, busy_end in busy)
        for slot in candidates
    )
    return AvailabilitySet(shift_type=template.name, candidates=tuple(candidates), free=free)


def compute_availability(
    events: Iterable[CalendarEvent],
    template: ShiftTemplate,
    start_date: date,
    duration_days: int,
    tz: tzinfo,
    *,
    markers: Sequence[str] = DEFAULT_OUT_OF_OFFICE_MARKERS,
    email: str | None = None,
) -> list[Slot]:
    """Return the generated slots that no relevant calendar event overlaps."""

    availability = build_availability_set(
        events, template, start_date, duration_days, tz, markers=markers, email=email
    )
    return list(availability.free_slots)
