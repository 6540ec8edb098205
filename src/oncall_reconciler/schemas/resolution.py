from datetime import date
from typing import Any, Literal

from pydantic import AwareDatetime, BaseModel, Field

from oncall_reconciler.schemas.calendar import CalendarEventPayload
from oncall_reconciler.services.availability import Slot
from oncall_reconciler.services.overrides import Override
from oncall_reconciler.services.reconciler import ReconciliationResult, RosterEntry
from oncall_reconciler.services.schedule import ScheduleEntity
from oncall_reconciler.services.swap_log import SwapRecord
from oncall_reconciler.services.templates import ShiftTemplate


class ShiftTemplateRead(BaseModel):
    name: str
    start: str
    duration_hours: float

    @classmethod
    def from_template(cls, template: ShiftTemplate) -> "ShiftTemplateRead":
        return cls.model_validate(template.to_config().model_dump())


class RosterEntryPayload(BaseModel):
    assignee_id: str
    assignee_email: str
    start: AwareDatetime
    end: AwareDatetime

    def to_domain(self) -> RosterEntry:
        return RosterEntry(
            assignee_id=self.assignee_id,
            assignee_email=self.assignee_email,
            start=self.start,
            end=self.end,
        )

    @classmethod
    def from_domain(cls, entry: RosterEntry) -> "RosterEntryPayload":
        return cls(
            assignee_id=entry.assignee_id,
            assignee_email=entry.assignee_email,
            start=entry.start,
            end=entry.end,
        )


class ResolutionWindow(BaseModel):
    start_date: date
    duration_days: int = Field(gt=0, le=366)
    seed: int | None = None


class ResolutionRequest(ResolutionWindow):
    """Roster and calendars supplied inline by the caller."""

    roster: list[RosterEntryPayload]
    calendars: dict[str, list[CalendarEventPayload]] = Field(default_factory=dict)


class ScheduledShiftRead(BaseModel):
    assignee_id: str
    assignee_email: str
    start: AwareDatetime
    end: AwareDatetime
    shift_type: str
    available_slot_count: int

    @classmethod
    def from_entity(cls, entity: ScheduleEntity) -> "ScheduledShiftRead":
        return cls(
            assignee_id=entity.person_id,
            assignee_email=entity.email,
            start=entity.slot.start,
            end=entity.slot.end,
            shift_type=entity.availability.shift_type,
            available_slot_count=len(entity.availability),
        )


class SwapRecordRead(BaseModel):
    person_with_conflict: str
    original_slot: AwareDatetime
    swapped_with: str
    new_slot: AwareDatetime

    @classmethod
    def from_record(cls, record: SwapRecord) -> "SwapRecordRead":
        return cls(
            person_with_conflict=record.conflicted_email,
            original_slot=record.original_slot_start,
            swapped_with=record.partner_email,
            new_slot=record.new_slot_start,
        )


class OverrideRead(BaseModel):
    start: AwareDatetime
    end: AwareDatetime
    original_assignee_id: str
    original_assignee_email: str
    new_assignee_id: str
    new_assignee_email: str

    @classmethod
    def from_override(cls, override: Override) -> "OverrideRead":
        return cls(
            start=override.original_slot.start,
            end=override.original_slot.end,
            original_assignee_id=override.original_assignee_id,
            original_assignee_email=override.original_assignee_email,
            new_assignee_id=override.new_assignee_id,
            new_assignee_email=override.new_assignee_email,
        )

    def to_domain(self) -> Override:
        return Override(
            original_slot=Slot(start=self.start, end=self.end),
            original_assignee_id=self.original_assignee_id,
            original_assignee_email=self.original_assignee_email,
            new_assignee_id=self.new_assignee_id,
            new_assignee_email=self.new_assignee_email,
        )


class ResolutionResponse(BaseModel):
    status: Literal["solved"] = "solved"
    total_shifts: int
    swaps: list[SwapRecordRead] = Field(default_factory=list)
    overrides: list[OverrideRead] = Field(default_factory=list)
    resolved: list[ScheduledShiftRead] = Field(default_factory=list)
    unmatched: list[RosterEntryPayload] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ReconciliationResult) -> "ResolutionResponse":
        return cls(
            total_shifts=len(result.resolved),
            swaps=[SwapRecordRead.from_record(record) for record in result.swap_log],
            overrides=[OverrideRead.from_override(override) for override in result.overrides],
            resolved=[
                ScheduledShiftRead.from_entity(entity)
                for entity in sorted(result.resolved, key=lambda entity: entity.slot_start)
            ],
            unmatched=[RosterEntryPayload.from_domain(entry) for entry in result.unmatched],
        )


class OverrideSubmissionRequest(BaseModel):
    overrides: list[OverrideRead] = Field(min_length=1)


class OverrideSubmissionResponse(BaseModel):
    submitted: int
    results: list[dict[str, Any]] = Field(default_factory=list)
