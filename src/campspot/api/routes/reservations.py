"""Reservation endpoints.

Thin adapters over ReservationService: parse the request, call the service,
map typed errors to status codes.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field

from campspot.api.auth import get_current_actor, require_admin
from campspot.api.deps import get_reservation_service
from campspot.api.errors import to_http_exception
from campspot.domain.errors import ReservationError
from campspot.domain.models import Actor, Review
from campspot.observability.correlation import get_correlation_id
from campspot.observability.logging import get_logger
from campspot.observability.redaction import safe_log_context
from campspot.services.reservation_service import ReservationService


class CreateReservationRequest(BaseModel):
    resource_id: str
    check_in: date
    check_out: date
    occupant_count: int
    notes: str | None = None


class CancelReservationRequest(BaseModel):
    reason: str | None = None


class RejectReservationRequest(BaseModel):
    reason: str | None = None


class UpdatePaymentRequest(BaseModel):
    payment_status: str
    payment_method: str | None = None
    transaction_id: str | None = None


class AddReviewRequest(BaseModel):
    rating: int = Field(..., description="Integer between 1 and 5")
    comment: str | None = None


router = APIRouter(prefix="/reservations", tags=["reservations"])

logger = get_logger(__name__)


def _review_dict(review: Review) -> dict:
    return {
        "id": review.id,
        "reservation_id": review.reservation_id,
        "resource_id": review.resource_id,
        "rating": review.rating,
        "comment": review.comment,
        "is_verified": review.is_verified,
        "created_at": review.created_at.isoformat() if review.created_at else None,
    }


@router.post("", status_code=201)
def create_reservation(
    body: CreateReservationRequest,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Request a reservation for a spot."""
    try:
        reservation = service.create_reservation(
            requester_id=actor.id,
            resource_id=body.resource_id,
            check_in=body.check_in,
            check_out=body.check_out,
            occupant_count=body.occupant_count,
            notes=body.notes,
        )
    except ReservationError as exc:
        logger.info(
            "reservation request rejected",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    resource_id=body.resource_id,
                    error=type(exc).__name__,
                )
            },
        )
        raise to_http_exception(exc) from exc

    return {
        "message": "Reservation created successfully",
        "reservation": service.reservation_view(reservation),
    }


@router.get("")
def list_my_reservations(
    status: str | None = Query(None),
    payment_status: str | None = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """List the caller's own reservations, newest first."""
    try:
        reservations = service.list_reservations_for_requester(
            actor.id, status=status, payment_status=payment_status
        )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return {"reservations": [service.reservation_view(r) for r in reservations]}


@router.get("/{reservation_id}")
def get_reservation(
    reservation_id: str = Path(..., description="Reservation UUID"),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    try:
        reservation = service.get_reservation(reservation_id, actor)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return {"reservation": service.reservation_view(reservation)}


@router.post("/{reservation_id}/actions/cancel")
def cancel_reservation(
    body: CancelReservationRequest,
    reservation_id: str = Path(..., description="Reservation UUID"),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Cancel as the guest, the spot owner or an admin (24h notice rule applies)."""
    try:
        reservation = service.cancel_reservation(reservation_id, actor, body.reason)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return {
        "message": "Reservation cancelled successfully",
        "reservation": service.reservation_view(reservation),
    }


@router.post("/{reservation_id}/actions/approve")
def approve_reservation(
    reservation_id: str = Path(..., description="Reservation UUID"),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    try:
        reservation = service.approve_reservation(reservation_id, actor)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return {"reservation": service.reservation_view(reservation)}


@router.post("/{reservation_id}/actions/reject")
def reject_reservation(
    body: RejectReservationRequest,
    reservation_id: str = Path(..., description="Reservation UUID"),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    try:
        reservation = service.reject_reservation(reservation_id, actor, body.reason)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return {"reservation": service.reservation_view(reservation)}


@router.put("/{reservation_id}/payment")
def update_payment_status(
    body: UpdatePaymentRequest,
    reservation_id: str = Path(..., description="Reservation UUID"),
    actor: Actor = Depends(require_admin),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    """Record the payment outcome reported by the payment provider (admin only)."""
    try:
        reservation = service.update_payment_status(
            reservation_id,
            body.payment_status,
            payment_method=body.payment_method,
            transaction_id=body.transaction_id,
        )
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    logger.info(
        "payment status recorded",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                reservation_id=reservation_id,
                recorded_by=actor.id,
            )
        },
    )
    return {
        "message": "Payment status updated successfully",
        "reservation": service.reservation_view(reservation),
    }


@router.post("/{reservation_id}/review", status_code=201)
def add_review(
    body: AddReviewRequest,
    reservation_id: str = Path(..., description="Reservation UUID"),
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
) -> dict:
    try:
        review = service.add_review(reservation_id, actor, body.rating, body.comment)
    except ReservationError as exc:
        raise to_http_exception(exc) from exc

    return {"message": "Review added successfully", "review": _review_dict(review)}
