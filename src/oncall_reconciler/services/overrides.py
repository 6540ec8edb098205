from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from oncall_reconciler.services.availability import Slot
from oncall_reconciler.services.schedule import ScheduleEntity


@dataclass(frozen=True)
class Override:
    original_slot: Slot
    original_assignee_id: str
    original_assignee_email: str
    new_assignee_id: str
    new_assignee_email: str

    @property
    def start_iso(self) -> str:
        return self.original_slot.start.isoformat()

    @property
    def end_iso(self) -> str:
        return self.original_slot.end.isoformat()

    def to_submission(self) -> dict[str, Any]:
        """Shape the override for the roster service's override endpoint."""

        return {
            "start": self.start_iso,
            "end": self.end_iso,
            "user": {"id": self.new_assignee_id, "type": "user_reference"},
        }


def _by_slot(entities: Sequence[ScheduleEntity]) -> list[ScheduleEntity]:
    return sorted(entities, key=lambda entity: (entity.slot_start, entity.slot.end, entity.email))


def diff_schedules(original: Sequence[ScheduleEntity], resolved: Sequence[ScheduleEntity]) -> list[Override]:
    """Return one override per slot whose owner changed between the two schedules.

    Both schedules must cover the same slots; the resolver conserves them.
    """

    if len(original) != len(resolved):
        raise ValueError(f"schedules differ in size: {len(original)} != {len(resolved)}")

    overrides: list[Override] = []
    for before, after in zip(_by_slot(original), _by_slot(resolved)):
        if before.slot_start != after.slot_start:
            raise ValueError(f"schedules cover different slots: {before.slot_start} != {after.slot_start}")
        if before.email == after.email:
            continue
        overrides.append(
            Override(
                original_slot=before.slot,
                original_assignee_id=before.person_id,
                original_assignee_email=before.email,
                new_assignee_id=after.person_id,
                new_assignee_email=after.email,
            )
        )
    return overrides
