"""Tests for the reservation state machine."""

from datetime import date

import pytest

from campspot.domain import state_machine
from campspot.domain.cancellation import CancellationDecision
from campspot.domain.errors import CancellationNotAllowed, InvalidStateTransition
from campspot.domain.models import PaymentStatus, ReservationStatus
from campspot.domain.state_machine import ReservationEvent

from .fakes import make_reservation, make_resource

ALLOWED = CancellationDecision(allowed=True)
TODAY = date(2026, 7, 20)


def _guards(event):
    """Guard arguments that satisfy every event."""
    return {
        ReservationEvent.APPROVE: {"owner_id": "owner-1"},
        ReservationEvent.CANCEL: {"cancellation": ALLOWED},
        ReservationEvent.COMPLETE: {"today": TODAY},
    }.get(event, {})


class TestInitialStatus:
    def test_instant_spot_starts_confirmed(self):
        resource = make_resource(accepts_instant_reservation=True)
        assert state_machine.initial_status(resource) == ReservationStatus.CONFIRMED

    def test_regular_spot_starts_pending(self):
        assert state_machine.initial_status(make_resource()) == ReservationStatus.PENDING


class TestApprove:
    def test_pending_to_confirmed(self):
        result = state_machine.apply(
            make_reservation(), ReservationEvent.APPROVE, owner_id="owner-1"
        )
        assert result.status == ReservationStatus.CONFIRMED

    def test_owner_cannot_approve_own_request(self):
        reservation = make_reservation(requester_id="owner-1")
        with pytest.raises(InvalidStateTransition) as exc_info:
            state_machine.apply(reservation, ReservationEvent.APPROVE, owner_id="owner-1")
        assert exc_info.value.current == "PENDING"
        assert exc_info.value.requested == "CONFIRMED"

    def test_confirmed_cannot_be_approved_again(self):
        reservation = make_reservation(status=ReservationStatus.CONFIRMED)
        with pytest.raises(InvalidStateTransition):
            state_machine.apply(reservation, ReservationEvent.APPROVE, owner_id="owner-1")


class TestCancelAndReject:
    def test_cancel_pending(self):
        result = state_machine.apply(
            make_reservation(), ReservationEvent.CANCEL, cancellation=ALLOWED
        )
        assert result.status == ReservationStatus.CANCELLED
        assert result.payment_status == PaymentStatus.PENDING

    def test_cancel_paid_reservation_refunds(self):
        reservation = make_reservation(
            status=ReservationStatus.CONFIRMED, payment_status=PaymentStatus.PAID
        )
        result = state_machine.apply(
            reservation, ReservationEvent.CANCEL, cancellation=ALLOWED
        )
        assert result.status == ReservationStatus.CANCELLED
        assert result.payment_status == PaymentStatus.REFUNDED

    def test_cancel_denied_by_policy(self):
        denied = CancellationDecision(allowed=False, reason="too late")
        with pytest.raises(CancellationNotAllowed) as exc_info:
            state_machine.apply(
                make_reservation(status=ReservationStatus.CONFIRMED),
                ReservationEvent.CANCEL,
                cancellation=denied,
            )
        assert exc_info.value.reason == "too late"
        assert exc_info.value.requested == "CANCELLED"

    def test_reject_pending(self):
        result = state_machine.apply(make_reservation(), ReservationEvent.REJECT)
        assert result.status == ReservationStatus.CANCELLED

    def test_reject_paid_pending_refunds(self):
        reservation = make_reservation(payment_status=PaymentStatus.PAID)
        result = state_machine.apply(reservation, ReservationEvent.REJECT)
        assert result.payment_status == PaymentStatus.REFUNDED

    def test_reject_confirmed_not_allowed(self):
        with pytest.raises(InvalidStateTransition):
            state_machine.apply(
                make_reservation(status=ReservationStatus.CONFIRMED),
                ReservationEvent.REJECT,
            )


class TestCapturePayment:
    def test_paid_pending_becomes_confirmed(self):
        reservation = make_reservation(payment_status=PaymentStatus.PAID)
        result = state_machine.apply(reservation, ReservationEvent.CAPTURE_PAYMENT)
        assert result.status == ReservationStatus.CONFIRMED
        assert result.payment_status == PaymentStatus.PAID

    def test_paid_confirmed_is_noop(self):
        reservation = make_reservation(
            status=ReservationStatus.CONFIRMED, payment_status=PaymentStatus.PAID
        )
        result = state_machine.apply(reservation, ReservationEvent.CAPTURE_PAYMENT)
        assert result.status == ReservationStatus.CONFIRMED
        assert result.payment_status == PaymentStatus.PAID

    def test_requires_paid(self):
        with pytest.raises(InvalidStateTransition) as exc_info:
            state_machine.apply(make_reservation(), ReservationEvent.CAPTURE_PAYMENT)
        assert "PAID" in exc_info.value.guard


class TestComplete:
    def test_confirmed_after_check_out(self):
        reservation = make_reservation(
            status=ReservationStatus.CONFIRMED, check_out=date(2026, 7, 14)
        )
        result = state_machine.apply(
            reservation, ReservationEvent.COMPLETE, today=date(2026, 7, 14)
        )
        assert result.status == ReservationStatus.COMPLETED

    def test_before_check_out_rejected(self):
        reservation = make_reservation(
            status=ReservationStatus.CONFIRMED, check_out=date(2026, 7, 14)
        )
        with pytest.raises(InvalidStateTransition):
            state_machine.apply(
                reservation, ReservationEvent.COMPLETE, today=date(2026, 7, 13)
            )

    def test_pending_cannot_complete(self):
        with pytest.raises(InvalidStateTransition):
            state_machine.apply(make_reservation(), ReservationEvent.COMPLETE, today=TODAY)


class TestTerminalStatuses:
    @pytest.mark.parametrize(
        "status",
        [
            ReservationStatus.CANCELLED,
            ReservationStatus.COMPLETED,
            ReservationStatus.REFUNDED,
        ],
    )
    @pytest.mark.parametrize("event", list(ReservationEvent))
    def test_no_event_leaves_terminal_status(self, status, event):
        reservation = make_reservation(status=status, payment_status=PaymentStatus.PAID)
        with pytest.raises(InvalidStateTransition) as exc_info:
            state_machine.apply(reservation, event, **_guards(event))
        assert exc_info.value.current == status.value
        assert "terminal" in exc_info.value.guard

    def test_apply_does_not_mutate(self):
        reservation = make_reservation(payment_status=PaymentStatus.PAID)
        state_machine.apply(reservation, ReservationEvent.CANCEL, cancellation=ALLOWED)
        assert reservation.status == ReservationStatus.PENDING
        assert reservation.payment_status == PaymentStatus.PAID
