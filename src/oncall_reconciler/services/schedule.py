from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from oncall_reconciler.services.availability import AvailabilitySet, Slot


@dataclass(frozen=True)
class Assignment:
    """An assignee's current place in the roster, keyed by email and slot."""

    person_id: str = field(compare=False)
    person_email: str
    slot: Slot


@dataclass(frozen=True)
class ScheduleEntity:
    """Working unit of the resolver: an assignment and its owner's availability."""

    assignment: Assignment
    availability: AvailabilitySet = field(compare=False, repr=False)

    @property
    def email(self) -> str:
        return self.assignment.person_email

    @property
    def person_id(self) -> str:
        return self.assignment.person_id

    @property
    def slot(self) -> Slot:
        return self.assignment.slot

    @property
    def slot_start(self) -> datetime:
        return self.assignment.slot.start

    def with_slot(self, slot: Slot) -> ScheduleEntity:
        """Move the owner onto *slot*, keeping identity and availability."""

        return replace(self, assignment=replace(self.assignment, slot=slot))
