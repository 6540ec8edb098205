"""
Greedy swap search that moves assignees off slots they are not free for.

The search repeatedly picks the most constrained conflicted assignee and swaps
them with someone currently holding a slot they are free to take. It is a local
heuristic: it neither minimises swaps nor guarantees a solution.
"""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from dataclasses import dataclass
from typing import Sequence

from oncall_reconciler.services.availability import Slot
from oncall_reconciler.services.conflicts import partition_conflicts
from oncall_reconciler.services.errors import NoSwapFound, SwapLimitExceeded, UnsolvableRoster
from oncall_reconciler.services.schedule import ScheduleEntity
from oncall_reconciler.services.swap_log import SwapLog, SwapRecord

logger = logging.getLogger(__name__)

MAX_SWAPS = 200
EXCLUSION_WINDOW = 2


@dataclass(frozen=True)
class ResolutionResult:
    entities: list[ScheduleEntity]
    swap_log: SwapLog


def ensure_schedulable(entities: Sequence[ScheduleEntity]) -> None:
    """Fail fast when an assignee has no free slot anywhere in the window."""

    unavailable = [entity for entity in entities if len(entity.availability) == 0]
    if unavailable:
        raise UnsolvableRoster(unavailable)


def _swap_candidates(
    active: ScheduleEntity,
    working: Sequence[ScheduleEntity],
    swap_log: SwapLog,
    rng: random.Random,
) -> list[ScheduleEntity]:
    free_starts = active.availability.free_starts
    held_slots: dict[str, set[Slot]] = defaultdict(set)
    for entity in working:
        held_slots[entity.email].add(entity.slot)

    candidates = [
        entity
        for entity in working
        if entity.email != active.email
        and entity.slot_start in free_starts
        # A swap must not leave either owner holding the same slot twice.
        and entity.slot not in held_slots[active.email]
        and active.slot not in held_slots[entity.email]
    ]
    rng.shuffle(candidates)
    excluded = set(swap_log.recent_conflicted(EXCLUSION_WINDOW))
    return [entity for entity in candidates if entity.email not in excluded]


def resolve_conflicts(
    entities: Sequence[ScheduleEntity],
    *,
    rng: random.Random | None = None,
    max_swaps: int = MAX_SWAPS,
) -> ResolutionResult:
    """Swap assignments until nobody holds a slot they are unavailable for.

    Raises :class:`NoSwapFound` when a conflicted assignee has no eligible
    partner, and :class:`SwapLimitExceeded` once more than *max_swaps* swaps
    were needed.
    """

    rng = rng or random.Random()
    working = list(entities)
    swap_log = SwapLog()

    while True:
        _, conflicted = partition_conflicts(working)
        if not conflicted:
            logger.info("Resolved %d assignments with %d swaps", len(working), len(swap_log))
            return ResolutionResult(entities=working, swap_log=swap_log)

        # Stable: equally constrained assignees keep their input order.
        conflicted.sort(key=lambda entity: len(entity.availability))
        active = conflicted[0]
        logger.debug(
            "%d conflicts left, most constrained is %s at %s (%d free slots)",
            len(conflicted),
            active.email,
            active.slot_start.isoformat(),
            len(active.availability),
        )

        candidates = _swap_candidates(active, working, swap_log, rng)
        if not candidates:
            logger.info("No swap partner for %s after %d swaps", active.email, len(swap_log))
            raise NoSwapFound(active, swap_log.records())

        partner = candidates[0]
        active_index = working.index(active)
        partner_index = working.index(partner)
        working[active_index] = active.with_slot(partner.slot)
        working[partner_index] = partner.with_slot(active.slot)

        swap_log.append(
            SwapRecord(
                conflicted_email=active.email,
                original_slot_start=active.slot_start,
                partner_email=partner.email,
                new_slot_start=partner.slot_start,
            )
        )
        logger.debug("Swapped %s with %s", active.email, partner.email)

        if len(swap_log) > max_swaps:
            logger.info("Gave up after %d swaps", len(swap_log))
            raise SwapLimitExceeded(max_swaps, swap_log.records())
