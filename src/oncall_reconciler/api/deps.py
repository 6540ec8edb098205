import random
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends

from oncall_reconciler.clients.google_calendar import GoogleCalendarClient
from oncall_reconciler.clients.pagerduty import PagerDutyClient
from oncall_reconciler.core.config import Settings, get_settings
from oncall_reconciler.services.templates import ShiftTemplate, load_default_shift_templates


async def get_pagerduty_client(
    settings: Annotated[Settings, Depends(get_settings)]
) -> AsyncIterator[PagerDutyClient]:
    async with PagerDutyClient(
        settings.pagerduty_api_key,
        base_url=settings.pagerduty_base_url,
        time_zone=settings.calendar_time_zone,
        timeout=settings.http_timeout_seconds,
    ) as client:
        yield client


async def get_calendar_client(
    settings: Annotated[Settings, Depends(get_settings)]
) -> AsyncIterator[GoogleCalendarClient]:
    async with GoogleCalendarClient(
        settings.google_access_token,
        base_url=settings.google_calendar_base_url,
        time_zone=settings.calendar_time_zone,
        timeout=settings.http_timeout_seconds,
    ) as client:
        yield client


def get_shift_templates() -> dict[str, ShiftTemplate]:
    return load_default_shift_templates()


def build_rng(seed: int | None, settings: Settings) -> random.Random:
    """Seed from the request first, then settings; otherwise non-deterministic."""

    return random.Random(seed if seed is not None else settings.random_seed)
