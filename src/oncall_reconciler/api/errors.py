from fastapi import HTTPException, status

from oncall_reconciler.schemas.resolution import SwapRecordRead
from oncall_reconciler.services.errors import ReconciliationError


def reconciliation_failed(exc: ReconciliationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "code": exc.code,
            "message": exc.message,
            "suggested_removals": exc.suggested_removals,
            "swaps": [SwapRecordRead.from_record(record).model_dump(mode="json") for record in exc.swaps],
        },
    )


def collaborator_failed(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
