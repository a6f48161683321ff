"""Tests for the cancellation policy (notice window before check-in)."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from campspot.domain.cancellation import can_cancel, evaluate_cancellation, window_reason
from campspot.domain.models import ReservationStatus

from .fakes import make_reservation

CHECK_IN = date(2026, 7, 10)
CHECK_IN_MIDNIGHT = datetime(2026, 7, 10, tzinfo=timezone.utc)


class TestNoticeWindow:
    def test_25_hours_before_is_allowed(self):
        reservation = make_reservation(check_in=CHECK_IN)
        now = CHECK_IN_MIDNIGHT - timedelta(hours=25)

        decision = evaluate_cancellation(reservation, now)

        assert decision.allowed
        assert decision.reason is None

    def test_23_hours_before_is_denied(self):
        reservation = make_reservation(
            check_in=CHECK_IN, status=ReservationStatus.CONFIRMED
        )
        now = CHECK_IN_MIDNIGHT - timedelta(hours=23)

        decision = evaluate_cancellation(reservation, now)

        assert not decision.allowed
        assert decision.reason == window_reason(24)
        assert "24 hours" in decision.reason

    def test_exactly_at_window_boundary_is_allowed(self):
        reservation = make_reservation(check_in=CHECK_IN)
        assert can_cancel(reservation, CHECK_IN_MIDNIGHT - timedelta(hours=24))

    def test_after_check_in_is_denied(self):
        reservation = make_reservation(check_in=CHECK_IN)
        assert not can_cancel(reservation, CHECK_IN_MIDNIGHT + timedelta(hours=2))

    def test_custom_window(self):
        reservation = make_reservation(check_in=CHECK_IN)
        now = CHECK_IN_MIDNIGHT - timedelta(hours=30)

        assert can_cancel(reservation, now, window_hours=24)
        decision = evaluate_cancellation(reservation, now, window_hours=48)
        assert not decision.allowed
        assert "48 hours" in decision.reason

    def test_check_in_midnight_uses_reference_timezone(self):
        """Check-in starts at local midnight, not UTC midnight."""
        tz = ZoneInfo("America/Sao_Paulo")
        reservation = make_reservation(check_in=CHECK_IN)
        # 03:00 UTC on the 10th is midnight local; 24h earlier is 03:00 UTC on the 9th.
        now = datetime(2026, 7, 9, 2, 30, tzinfo=timezone.utc)

        assert can_cancel(reservation, now, tz=tz)
        assert not can_cancel(reservation, now, tz=timezone.utc)

    def test_naive_now_rejected(self):
        with pytest.raises(ValueError):
            evaluate_cancellation(make_reservation(), datetime(2026, 7, 1, 12, 0))


class TestTerminalReservations:
    @pytest.mark.parametrize(
        ("status", "reason"),
        [
            (ReservationStatus.CANCELLED, "Reservation is already cancelled"),
            (ReservationStatus.COMPLETED, "Completed reservations cannot be cancelled"),
            (ReservationStatus.REFUNDED, "Refunded reservations cannot be cancelled"),
        ],
    )
    def test_terminal_status_denied_with_distinct_reason(self, status, reason):
        reservation = make_reservation(check_in=CHECK_IN, status=status)
        now = CHECK_IN_MIDNIGHT - timedelta(days=30)

        decision = evaluate_cancellation(reservation, now)

        assert not decision.allowed
        assert decision.reason == reason
        assert decision.reason != window_reason(24)
