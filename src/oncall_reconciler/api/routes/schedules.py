from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, status

from oncall_reconciler.api.deps import get_calendar_client, get_pagerduty_client, get_shift_templates
from oncall_reconciler.api.errors import collaborator_failed
from oncall_reconciler.api.routes.resolutions import run_reconciliation
from oncall_reconciler.clients.errors import CollaboratorError
from oncall_reconciler.clients.google_calendar import GoogleCalendarClient
from oncall_reconciler.clients.pagerduty import PagerDutyClient
from oncall_reconciler.core.config import Settings, get_settings
from oncall_reconciler.schemas.resolution import (
    OverrideSubmissionRequest,
    OverrideSubmissionResponse,
    ResolutionResponse,
    ResolutionWindow,
)
from oncall_reconciler.services.reconciler import collect_calendars, resolution_window
from oncall_reconciler.services.templates import ShiftTemplate

router = APIRouter()


@router.post("/{schedule_id}/resolutions", response_model=ResolutionResponse)
async def resolve_schedule(
    schedule_id: str,
    payload: ResolutionWindow,
    roster_source: Annotated[PagerDutyClient, Depends(get_pagerduty_client)],
    calendar_source: Annotated[GoogleCalendarClient, Depends(get_calendar_client)],
    settings: Annotated[Settings, Depends(get_settings)],
    templates: Annotated[dict[str, ShiftTemplate], Depends(get_shift_templates)],
) -> ResolutionResponse:
    """
    Fetch the roster and every assignee's calendar, then resolve conflicts.

    Nothing is written back; submit the returned overrides separately.
    """
    since, until = resolution_window(payload.start_date, payload.duration_days, settings.reference_timezone)
    try:
        await calendar_source.check_token()
        roster = await roster_source.fetch_roster(schedule_id, since, until)
        calendars = await collect_calendars(
            calendar_source, (entry.assignee_email for entry in roster), since, until
        )
    except (CollaboratorError, httpx.HTTPError) as exc:
        raise collaborator_failed(exc) from exc

    return run_reconciliation(
        start_date=payload.start_date,
        duration_days=payload.duration_days,
        seed=payload.seed,
        roster=roster,
        calendars=calendars,
        settings=settings,
        templates=templates,
    )


@router.post(
    "/{schedule_id}/overrides",
    response_model=OverrideSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_overrides(
    schedule_id: str,
    payload: OverrideSubmissionRequest,
    override_sink: Annotated[PagerDutyClient, Depends(get_pagerduty_client)],
) -> OverrideSubmissionResponse:
    try:
        results = await override_sink.create_overrides(
            schedule_id, [override.to_domain() for override in payload.overrides]
        )
    except (CollaboratorError, httpx.HTTPError) as exc:
        raise collaborator_failed(exc) from exc
    return OverrideSubmissionResponse(submitted=len(payload.overrides), results=results)
