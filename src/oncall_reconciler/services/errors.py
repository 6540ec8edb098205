"""Failures that end a reconciliation run."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from oncall_reconciler.services.schedule import ScheduleEntity
    from oncall_reconciler.services.swap_log import SwapRecord


class ReconciliationError(Exception):
    """Base class for terminal reconciliation failures."""

    code = "reconciliation-failed"

    def __init__(self, message: str, *, suggested_removals: Sequence[str] = (), swaps: Sequence[SwapRecord] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.suggested_removals = list(suggested_removals)
        self.swaps = list(swaps)


class MalformedEventTime(ReconciliationError):
    code = "malformed-event-time"

    def __init__(self, raw: object, *, email: str | None = None) -> None:
        owner = f" for {email}" if email else ""
        super().__init__(f"Unable to parse calendar event boundary{owner}: {raw!r}")
        self.raw = raw
        self.email = email


class UnsolvableRoster(ReconciliationError):
    """Raised before resolution when assignees have no free slot at all."""

    code = "unsolvable-roster"

    def __init__(self, assignees: Sequence[ScheduleEntity]) -> None:
        emails = list(dict.fromkeys(entity.email for entity in assignees))
        super().__init__(
            "Assignees with zero available slots, remove them from the schedule: " + ", ".join(emails),
            suggested_removals=emails,
        )
        self.assignees = list(assignees)


class NoSwapFound(ReconciliationError):
    code = "no-swap-found"

    def __init__(self, assignee: ScheduleEntity, swaps: Sequence[SwapRecord] = ()) -> None:
        super().__init__(
            f"No eligible swap partner for {assignee.email} at {assignee.slot.start.isoformat()}",
            suggested_removals=[assignee.email],
            swaps=swaps,
        )
        self.assignee = assignee


class SwapLimitExceeded(ReconciliationError):
    code = "swap-limit-exceeded"

    def __init__(self, limit: int, swaps: Sequence[SwapRecord]) -> None:
        suggested = [swaps[0].conflicted_email] if swaps else []
        super().__init__(
            f"Unable to find a solution within {limit} swaps",
            suggested_removals=suggested,
            swaps=swaps,
        )
        self.limit = limit
