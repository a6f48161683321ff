"""Interval conflict detection for a spot's calendar.

Overlap formula for half-open stays:
    (new_check_in < existing_check_out) AND (existing_check_in < new_check_out)

Strict inequality lets check-out day == check-in day (same-day turnover).
Only active statuses (PENDING, CONFIRMED) occupy the calendar.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from campspot.domain.errors import SlotUnavailable
from campspot.domain.models import ACTIVE_STATUSES, DateRange
from campspot.observability.redaction import safe_log_context

if TYPE_CHECKING:
    from campspot.services.ports import StoreSession

logger = logging.getLogger(__name__)


def overlaps(a: DateRange, b: DateRange) -> bool:
    """Return True if two half-open date ranges share at least one night."""
    return a.check_in < b.check_out and b.check_in < a.check_out


def find_conflicts(
    session: StoreSession,
    *,
    resource_id: str,
    check_in: date,
    check_out: date,
    exclude_reservation_id: str | None = None,
) -> list[DateRange]:
    """List the stays of active reservations that overlap the candidate range.

    Args:
        session: Open store session (ideally the one that will insert).
        resource_id: Spot identifier.
        check_in: Candidate check-in (inclusive).
        check_out: Candidate check-out (exclusive).
        exclude_reservation_id: Reservation to ignore (when re-checking an existing one).

    Returns:
        Conflicting date ranges ordered by check-in; empty when the slot is free.
    """
    candidate = DateRange(check_in, check_out)
    existing = session.find_active_reservations(
        resource_id=resource_id,
        check_in=check_in,
        check_out=check_out,
        statuses=ACTIVE_STATUSES,
    )

    conflicts = sorted(
        (
            reservation.stay
            for reservation in existing
            if reservation.id != exclude_reservation_id
            and reservation.status in ACTIVE_STATUSES
            and overlaps(candidate, reservation.stay)
        ),
        key=lambda stay: stay.check_in,
    )

    if conflicts:
        logger.warning(
            "reservation conflict detected",
            extra={
                "extra_fields": safe_log_context(
                    resource_id=resource_id,
                    requested_check_in=check_in.isoformat(),
                    requested_check_out=check_out.isoformat(),
                    conflicts=len(conflicts),
                )
            },
        )

    return conflicts


def has_conflict(
    session: StoreSession,
    *,
    resource_id: str,
    check_in: date,
    check_out: date,
    exclude_reservation_id: str | None = None,
) -> bool:
    """Boolean form of find_conflicts. Never raises on a conflict."""
    return bool(
        find_conflicts(
            session,
            resource_id=resource_id,
            check_in=check_in,
            check_out=check_out,
            exclude_reservation_id=exclude_reservation_id,
        )
    )


def assert_no_conflict(
    session: StoreSession,
    *,
    resource_id: str,
    check_in: date,
    check_out: date,
    exclude_reservation_id: str | None = None,
) -> None:
    """Raise SlotUnavailable (carrying the conflicting ranges) on overlap."""
    conflicts = find_conflicts(
        session,
        resource_id=resource_id,
        check_in=check_in,
        check_out=check_out,
        exclude_reservation_id=exclude_reservation_id,
    )
    if conflicts:
        raise SlotUnavailable(resource_id, conflicts)
