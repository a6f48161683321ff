"""Worker endpoint for the scheduled completion job (APP_ROLE=worker)."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from campspot.api.auth import require_admin
from campspot.api.deps import get_reservation_service
from campspot.api.errors import to_http_exception
from campspot.domain.errors import ReservationError
from campspot.domain.models import Actor
from campspot.observability.correlation import get_correlation_id
from campspot.observability.logging import get_logger
from campspot.services.reservation_service import ReservationService

router = APIRouter(prefix="/tasks/reservations", tags=["tasks"])

logger = get_logger(__name__)


@router.post("/complete-due")
def complete_due_reservations(
    actor: Actor = Depends(require_admin),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Flip CONFIRMED reservations whose check-out date has passed to COMPLETED."""
    try:
        completed = service.complete_due_reservations()
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    logger.info(
        "complete-due task finished",
        extra={
            "extra_fields": {
                "correlationId": get_correlation_id(),
                "triggered_by": actor.id,
                "completed": len(completed),
            }
        },
    )
    return {"completed": [r.id for r in completed]}
