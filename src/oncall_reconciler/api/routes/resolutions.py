from collections.abc import Mapping, Sequence
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends

from oncall_reconciler.api.deps import build_rng, get_shift_templates
from oncall_reconciler.api.errors import reconciliation_failed
from oncall_reconciler.core.config import Settings, get_settings
from oncall_reconciler.schemas.resolution import ResolutionRequest, ResolutionResponse
from oncall_reconciler.services.availability import CalendarEvent
from oncall_reconciler.services.errors import ReconciliationError
from oncall_reconciler.services.reconciler import ReconciliationContext, RosterEntry, reconcile
from oncall_reconciler.services.templates import ShiftTemplate

router = APIRouter()


def run_reconciliation(
    *,
    start_date: date,
    duration_days: int,
    seed: int | None,
    roster: list[RosterEntry],
    calendars: Mapping[str, Sequence[CalendarEvent]],
    settings: Settings,
    templates: Mapping[str, ShiftTemplate],
) -> ResolutionResponse:
    context = ReconciliationContext(
        start_date=start_date,
        duration_days=duration_days,
        roster=roster,
        calendars=calendars,
        templates=templates,
        tz=settings.reference_timezone,
        out_of_office_markers=settings.out_of_office_markers,
        max_swaps=settings.max_swaps,
    )
    try:
        result = reconcile(context, rng=build_rng(seed, settings))
    except ReconciliationError as exc:
        raise reconciliation_failed(exc) from exc
    return ResolutionResponse.from_result(result)


@router.post("/", response_model=ResolutionResponse)
async def create_resolution(
    payload: ResolutionRequest,
    settings: Annotated[Settings, Depends(get_settings)],
    templates: Annotated[dict[str, ShiftTemplate], Depends(get_shift_templates)],
) -> ResolutionResponse:
    """Resolve a roster against calendars supplied in the request body."""
    return run_reconciliation(
        start_date=payload.start_date,
        duration_days=payload.duration_days,
        seed=payload.seed,
        roster=[entry.to_domain() for entry in payload.roster],
        calendars={
            email: [event.to_domain() for event in events] for email, events in payload.calendars.items()
        },
        settings=settings,
        templates=templates,
    )
