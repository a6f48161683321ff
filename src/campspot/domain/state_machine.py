"""Reservation state machine.

Owns the valid statuses and transitions of a single reservation. Pure: it
computes the next (status, payment_status) pair and never persists.

    (none)     --create, instant-->      CONFIRMED
    (none)     --create-->               PENDING
    PENDING    --approve-->              CONFIRMED   (requester != owner)
    PENDING    --reject-->               CANCELLED
    PENDING    --cancel-->               CANCELLED   (cancellation policy allows)
    CONFIRMED  --cancel-->               CANCELLED   (cancellation policy allows)
    PENDING    --capture_payment-->      CONFIRMED   (payment is PAID)
    CONFIRMED  --capture_payment-->      CONFIRMED   (no-op)
    CONFIRMED  --complete-->             COMPLETED   (check-out date passed)

Cancelling or rejecting a PAID reservation also moves payment to REFUNDED.
CANCELLED, COMPLETED and REFUNDED are terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from campspot.domain.cancellation import CancellationDecision
from campspot.domain.errors import CancellationNotAllowed, InvalidStateTransition
from campspot.domain.models import (
    TERMINAL_STATUSES,
    PaymentStatus,
    Reservation,
    ReservationStatus,
    Resource,
)


class ReservationEvent(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    CAPTURE_PAYMENT = "CAPTURE_PAYMENT"
    COMPLETE = "COMPLETE"


_TRANSITIONS: dict[tuple[ReservationStatus, ReservationEvent], ReservationStatus] = {
    (ReservationStatus.PENDING, ReservationEvent.APPROVE): ReservationStatus.CONFIRMED,
    (ReservationStatus.PENDING, ReservationEvent.REJECT): ReservationStatus.CANCELLED,
    (ReservationStatus.PENDING, ReservationEvent.CANCEL): ReservationStatus.CANCELLED,
    (ReservationStatus.CONFIRMED, ReservationEvent.CANCEL): ReservationStatus.CANCELLED,
    (ReservationStatus.PENDING, ReservationEvent.CAPTURE_PAYMENT): ReservationStatus.CONFIRMED,
    (ReservationStatus.CONFIRMED, ReservationEvent.CAPTURE_PAYMENT): ReservationStatus.CONFIRMED,
    (ReservationStatus.CONFIRMED, ReservationEvent.COMPLETE): ReservationStatus.COMPLETED,
}

# Target named in errors when the (status, event) pair is not in the table.
_EVENT_TARGETS = {
    ReservationEvent.APPROVE: ReservationStatus.CONFIRMED,
    ReservationEvent.REJECT: ReservationStatus.CANCELLED,
    ReservationEvent.CANCEL: ReservationStatus.CANCELLED,
    ReservationEvent.CAPTURE_PAYMENT: ReservationStatus.CONFIRMED,
    ReservationEvent.COMPLETE: ReservationStatus.COMPLETED,
}


@dataclass(frozen=True)
class Transition:
    status: ReservationStatus
    payment_status: PaymentStatus


def initial_status(resource: Resource) -> ReservationStatus:
    """Status assigned at creation, once the conflict check has passed."""
    if resource.accepts_instant_reservation:
        return ReservationStatus.CONFIRMED
    return ReservationStatus.PENDING


def _fail(current: ReservationStatus, event: ReservationEvent, guard: str):
    raise InvalidStateTransition(current.value, _EVENT_TARGETS[event].value, guard)


def _target(reservation: Reservation, event: ReservationEvent) -> ReservationStatus:
    current = reservation.status
    if current in TERMINAL_STATUSES:
        _fail(current, event, f"{current.value} is a terminal status")

    target = _TRANSITIONS.get((current, event))
    if target is None:
        _fail(current, event, f"{event.value.lower()} is not allowed from {current.value}")
    return target


def _refund_if_paid(payment_status: PaymentStatus) -> PaymentStatus:
    if payment_status == PaymentStatus.PAID:
        return PaymentStatus.REFUNDED
    return payment_status


def apply(
    reservation: Reservation,
    event: ReservationEvent,
    *,
    owner_id: str | None = None,
    cancellation: CancellationDecision | None = None,
    today: date | None = None,
) -> Transition:
    """Compute the result of ``event`` on ``reservation``.

    Args:
        reservation: Current reservation.
        event: Event to apply.
        owner_id: Spot owner, required for APPROVE.
        cancellation: Policy decision, required for CANCEL.
        today: Current calendar date, required for COMPLETE.

    Returns:
        Transition with the next status and payment status.

    Raises:
        InvalidStateTransition: Pair not in the table or guard unmet.
        CancellationNotAllowed: CANCEL denied by the cancellation policy.
    """
    current = reservation.status
    target = _target(reservation, event)
    payment_status = reservation.payment_status

    if event == ReservationEvent.APPROVE:
        if owner_id is None:
            raise ValueError("owner_id is required to approve")
        if reservation.requester_id == owner_id:
            _fail(current, event, "requester cannot be the spot owner")

    elif event == ReservationEvent.CANCEL:
        if cancellation is None:
            raise ValueError("a cancellation decision is required to cancel")
        if not cancellation.allowed:
            raise CancellationNotAllowed(current.value, cancellation.reason or "")
        payment_status = _refund_if_paid(payment_status)

    elif event == ReservationEvent.REJECT:
        payment_status = _refund_if_paid(payment_status)

    elif event == ReservationEvent.CAPTURE_PAYMENT:
        if payment_status != PaymentStatus.PAID:
            _fail(current, event, "payment status must be PAID")

    elif event == ReservationEvent.COMPLETE:
        if today is None:
            raise ValueError("today is required to complete")
        if reservation.check_out > today:
            _fail(current, event, "check-out date has not passed yet")

    return Transition(status=target, payment_status=payment_status)
