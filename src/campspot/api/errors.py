"""Translate reservation-engine errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException

from campspot.domain.errors import (
    CancellationNotAllowed,
    DuplicateReview,
    InvalidStateTransition,
    NotAuthorized,
    NotEligibleForReview,
    ReservationError,
    ReservationNotFound,
    ResourceNotFound,
    SlotUnavailable,
    TransientStoreError,
    ValidationError,
)


def to_http_exception(exc: ReservationError) -> HTTPException:
    """Map a typed reservation error to an HTTPException.

    Order matters: CancellationNotAllowed is an InvalidStateTransition but is
    reported as a plain 400 carrying the policy's reason.
    """
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))

    if isinstance(exc, CancellationNotAllowed):
        return HTTPException(status_code=400, detail=exc.reason)

    if isinstance(exc, NotAuthorized):
        return HTTPException(status_code=403, detail=str(exc))

    if isinstance(exc, (ReservationNotFound, ResourceNotFound)):
        return HTTPException(status_code=404, detail=str(exc))

    if isinstance(exc, SlotUnavailable):
        return HTTPException(
            status_code=409,
            detail={
                "message": str(exc),
                "conflicting_dates": [stay.to_dict() for stay in exc.conflicts],
            },
        )

    if isinstance(exc, DuplicateReview):
        return HTTPException(status_code=409, detail=str(exc))

    if isinstance(exc, InvalidStateTransition):
        return HTTPException(
            status_code=422,
            detail={
                "message": str(exc),
                "current": exc.current,
                "requested": exc.requested,
                "guard": exc.guard,
            },
        )

    if isinstance(exc, NotEligibleForReview):
        return HTTPException(status_code=422, detail=str(exc))

    if isinstance(exc, TransientStoreError):
        return HTTPException(status_code=503, detail="Service temporarily unavailable")

    return HTTPException(status_code=400, detail=str(exc))
