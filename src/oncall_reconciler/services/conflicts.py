from __future__ import annotations

from typing import Iterable, Sequence

from oncall_reconciler.services.availability import Slot
from oncall_reconciler.services.schedule import Assignment, ScheduleEntity


def has_conflict(assignment: Assignment, available_slots: Iterable[Slot]) -> bool:
    """True when none of *available_slots* starts with the assigned slot.

    Only starts are compared: slots of one shift type share a duration, and the
    roster is matched to a template on start and duration before it gets here.
    """

    return all(slot.start != assignment.slot.start for slot in available_slots)


def is_conflicted(entity: ScheduleEntity) -> bool:
    return has_conflict(entity.assignment, entity.availability.free_slots)


def partition_conflicts(entities: Sequence[ScheduleEntity]) -> tuple[list[ScheduleEntity], list[ScheduleEntity]]:
    """Split *entities* into ``(clean, conflicted)``, preserving input order."""

    clean: list[ScheduleEntity] = []
    conflicted: list[ScheduleEntity] = []
    for entity in entities:
        (conflicted if is_conflicted(entity) else clean).append(entity)
    return clean, conflicted
