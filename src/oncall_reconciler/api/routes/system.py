from typing import Annotated

from fastapi import APIRouter, Depends

from oncall_reconciler.api.deps import get_shift_templates
from oncall_reconciler.core.config import Settings, get_settings
from oncall_reconciler.schemas.resolution import ShiftTemplateRead
from oncall_reconciler.services.templates import ShiftTemplate

router = APIRouter()


@router.get("/settings")
async def read_settings(
    settings: Annotated[Settings, Depends(get_settings)]
) -> dict[str, str | int | float]:
    """Expose basic runtime metadata for diagnostics."""
    return {
        "environment": settings.environment,
        "project": settings.project_name,
        "version": settings.version,
        "reference_utc_offset_hours": settings.reference_utc_offset_hours,
        "max_swaps": settings.max_swaps,
    }


@router.get("/shift-templates", response_model=list[ShiftTemplateRead])
async def list_shift_templates(
    templates: Annotated[dict[str, ShiftTemplate], Depends(get_shift_templates)]
) -> list[ShiftTemplateRead]:
    return [ShiftTemplateRead.from_template(template) for template in templates.values()]
