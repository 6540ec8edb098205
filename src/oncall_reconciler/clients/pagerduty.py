"""PagerDuty adapter: reads the rendered on-call roster and posts overrides."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Sequence

import httpx
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, ValidationError

from oncall_reconciler.clients.errors import OverrideSubmissionError, RosterFetchError
from oncall_reconciler.services.overrides import Override
from oncall_reconciler.services.reconciler import RosterEntry

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.pagerduty.com"


class _UserReference(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    summary: str = ""
    self_url: str | None = Field(default=None, alias="self")


class _ScheduleEntry(BaseModel):
    start: AwareDatetime
    end: AwareDatetime
    user: _UserReference


class _FinalSchedule(BaseModel):
    rendered_schedule_entries: list[_ScheduleEntry] = Field(default_factory=list)


class _Schedule(BaseModel):
    final_schedule: _FinalSchedule


class _ScheduleResponse(BaseModel):
    schedule: _Schedule


class _User(BaseModel):
    id: str
    email: str


class _UserResponse(BaseModel):
    user: _User


class PagerDutyClient:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        time_zone: str = "UTC",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._time_zone = time_zone
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Token token={api_key}",
                "Accept": "application/vnd.pagerduty+json;version=2",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> PagerDutyClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_roster(self, schedule_id: str, since: datetime, until: datetime) -> list[RosterEntry]:
        """Return the rendered roster between *since* and *until* with assignee emails resolved."""

        logger.info("Retrieving schedule %s from %s to %s", schedule_id, since.isoformat(), until.isoformat())
        try:
            response = await self._client.get(
                f"/schedules/{schedule_id}",
                params={"since": since.isoformat(), "until": until.isoformat(), "time_zone": self._time_zone},
            )
            response.raise_for_status()
            payload = _ScheduleResponse.model_validate(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            raise RosterFetchError(f"Failed to retrieve schedule {schedule_id}: {exc}") from exc

        entries = payload.schedule.final_schedule.rendered_schedule_entries
        resolved = await asyncio.gather(*(self._resolve_entry(entry) for entry in entries))
        return [entry for entry in resolved if entry is not None]

    async def _resolve_entry(self, entry: _ScheduleEntry) -> RosterEntry | None:
        # Entries without a resolvable user are skipped, not fatal.
        if not entry.user.self_url:
            logger.warning("Possible invalid user in schedule: %s. Skipping.", entry.user.summary)
            return None
        try:
            response = await self._client.get(entry.user.self_url)
            response.raise_for_status()
            user = _UserResponse.model_validate(response.json()).user
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            logger.warning("User lookup for %s failed with error: %s. Skipping.", entry.user.summary, exc)
            return None
        return RosterEntry(assignee_id=user.id, assignee_email=user.email, start=entry.start, end=entry.end)

    async def create_overrides(self, schedule_id: str, overrides: Sequence[Override]) -> list[dict[str, Any]]:
        body = {"overrides": [override.to_submission() for override in overrides]}
        try:
            response = await self._client.post(f"/schedules/{schedule_id}/overrides", json=body)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise OverrideSubmissionError(f"Failed to submit overrides to schedule {schedule_id}: {exc}") from exc
        logger.info("Submitted %d overrides to schedule %s", len(overrides), schedule_id)
        results = response.json()
        return results if isinstance(results, list) else [results]
