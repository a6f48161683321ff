"""Review gating: only paid, completed stays can be reviewed, once per spot."""

from __future__ import annotations

from campspot.domain.errors import DuplicateReview, NotEligibleForReview, ValidationError
from campspot.domain.models import PaymentStatus, Reservation, ReservationStatus

MIN_RATING = 1
MAX_RATING = 5


def is_review_eligible(reservation: Reservation) -> bool:
    return (
        reservation.status == ReservationStatus.COMPLETED
        and reservation.payment_status == PaymentStatus.PAID
    )


def check_review_eligibility(reservation: Reservation, *, already_reviewed: bool) -> None:
    """Raise unless a review may be attached to ``reservation``.

    Args:
        reservation: The reservation being reviewed.
        already_reviewed: Whether a review exists for the
            (requester_id, resource_id) pair.

    Raises:
        NotEligibleForReview: Reservation is not COMPLETED and PAID.
        DuplicateReview: The pair was already reviewed, or this reservation
            already carries a review.
    """
    if not is_review_eligible(reservation):
        raise NotEligibleForReview(
            "Reviews can only be added for completed and paid reservations "
            f"(status={reservation.status.value}, "
            f"payment_status={reservation.payment_status.value})"
        )

    if already_reviewed or reservation.review_id is not None:
        raise DuplicateReview("You have already reviewed this spot")


def validate_rating(rating: int) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer between 1 and 5")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("Rating must be an integer between 1 and 5")
    return rating
