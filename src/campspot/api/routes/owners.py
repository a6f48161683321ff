"""Spot-owner endpoints: reservations made on the caller's spots."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from campspot.api.auth import get_current_actor
from campspot.api.deps import get_reservation_service
from campspot.api.errors import to_http_exception
from campspot.domain.errors import ReservationError
from campspot.domain.models import Actor, Role
from campspot.services.reservation_service import ReservationService

router = APIRouter(prefix="/owners", tags=["owners"])


@router.get("/reservations")
def list_owner_reservations(
    status: str | None = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """List reservations on spots owned by the caller, newest first."""
    if actor.role not in (Role.OWNER, Role.ADMIN):
        raise HTTPException(status_code=403, detail="Owner privileges required")

    try:
        reservations = service.list_reservations_for_owner(actor.id, status=status)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return {"reservations": [service.reservation_view(r) for r in reservations]}
