from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterator


@dataclass(frozen=True)
class SwapRecord:
    conflicted_email: str
    original_slot_start: datetime
    partner_email: str
    new_slot_start: datetime


class SwapLog:
    """Append-only, ordered record of every simulated swap."""

    def __init__(self) -> None:
        self._records: list[SwapRecord] = []

    def append(self, record: SwapRecord) -> None:
        self._records.append(record)

    def recent_conflicted(self, window: int = 2) -> list[str]:
        """Conflicted emails of the last *window* records, most recent first."""

        if window <= 0:
            return []
        return [record.conflicted_email for record in reversed(self._records[-window:])]

    @property
    def first(self) -> SwapRecord | None:
        return self._records[0] if self._records else None

    def records(self) -> tuple[SwapRecord, ...]:
        return tuple(self._records)

    def __iter__(self) -> Iterator[SwapRecord]:
        return iter(tuple(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> SwapRecord:
        return self._records[index]
