"""Typed errors raised by the reservation engine.

Every error here is user-facing and propagates unchanged to the HTTP layer,
which maps it to a status code. Programming errors are not part of this
taxonomy and are left to fail loudly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from campspot.domain.models import DateRange


class ReservationError(Exception):
    """Base class for all typed reservation-engine errors."""


class ValidationError(ReservationError):
    """Bad input the user can correct (dates, capacity, inactive spot, self-booking)."""


class ReservationNotFound(ReservationError):
    def __init__(self, reservation_id: str) -> None:
        self.reservation_id = reservation_id
        super().__init__(f"Reservation {reservation_id} not found")


class ResourceNotFound(ReservationError):
    def __init__(self, resource_id: str) -> None:
        self.resource_id = resource_id
        super().__init__(f"Spot {resource_id} not found")


class NotAuthorized(ReservationError):
    """Actor is not allowed to act on the reservation."""


class SlotUnavailable(ReservationError):
    """Requested dates overlap one or more active reservations."""

    def __init__(
        self,
        resource_id: str,
        conflicts: Sequence[DateRange] = (),
        message: str = "The selected dates are not available. Please choose different dates.",
    ) -> None:
        self.resource_id = resource_id
        self.conflicts = list(conflicts)
        super().__init__(message)


class InvalidStateTransition(ReservationError):
    """Transition attempted outside the reservation state table."""

    def __init__(self, current: str, requested: str, guard: str) -> None:
        self.current = current
        self.requested = requested
        self.guard = guard
        super().__init__(
            f"Cannot move reservation from {current} to {requested}: {guard}"
        )


class CancellationNotAllowed(InvalidStateTransition):
    """Cancellation denied by the cancellation policy.

    ``reason`` is meant to be shown to the end user verbatim.
    """

    def __init__(self, current: str, reason: str) -> None:
        self.reason = reason
        super().__init__(current, "CANCELLED", reason)


class NotEligibleForReview(ReservationError):
    """Reservation is not in a state that accepts a review."""


class DuplicateReview(ReservationError):
    """The requester already reviewed this spot."""


class TransientStoreError(ReservationError):
    """Database-layer failure that may succeed on retry (serialization abort, lost connection)."""
