"""Cancellation policy.

A reservation may be cancelled while it is not terminal and check-in is at
least ``window_hours`` away. Check-in happens at midnight of the check-in
date in the reference timezone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo

from campspot.domain.models import Reservation, ReservationStatus
from campspot.infra.time import start_of_day

DEFAULT_WINDOW_HOURS = 24

_TERMINAL_REASONS = {
    ReservationStatus.CANCELLED: "Reservation is already cancelled",
    ReservationStatus.COMPLETED: "Completed reservations cannot be cancelled",
    ReservationStatus.REFUNDED: "Refunded reservations cannot be cancelled",
}


@dataclass(frozen=True)
class CancellationDecision:
    allowed: bool
    reason: str | None = None


def window_reason(window_hours: int) -> str:
    return (
        f"Reservations can only be cancelled at least {window_hours} hours "
        "before check-in"
    )


def evaluate_cancellation(
    reservation: Reservation,
    now: datetime,
    *,
    window_hours: int = DEFAULT_WINDOW_HOURS,
    tz: tzinfo = timezone.utc,
) -> CancellationDecision:
    """Decide whether ``reservation`` may be cancelled at ``now``.

    Args:
        reservation: Reservation to evaluate.
        now: Reference time (timezone-aware).
        window_hours: Minimum notice before check-in.
        tz: Reference timezone for the check-in date.

    Returns:
        CancellationDecision; on denial ``reason`` is user-facing text that
        distinguishes a terminal state from an expired window.
    """
    terminal_reason = _TERMINAL_REASONS.get(reservation.status)
    if terminal_reason is not None:
        return CancellationDecision(allowed=False, reason=terminal_reason)

    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")

    check_in_at = start_of_day(reservation.check_in, tz)
    if check_in_at - now < timedelta(hours=window_hours):
        return CancellationDecision(allowed=False, reason=window_reason(window_hours))

    return CancellationDecision(allowed=True)


def can_cancel(
    reservation: Reservation,
    now: datetime,
    *,
    window_hours: int = DEFAULT_WINDOW_HOURS,
    tz: tzinfo = timezone.utc,
) -> bool:
    return evaluate_cancellation(
        reservation, now, window_hours=window_hours, tz=tz
    ).allowed
