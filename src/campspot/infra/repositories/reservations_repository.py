"""Reservations repository - persistence for reservation records.

Uses raw SQL with psycopg2 (no ORM).
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable

from psycopg2.extensions import cursor as PgCursor

from campspot.domain.models import (
    PaymentStatus,
    Reservation,
    ReservationStatus,
)

_COLUMNS = """
    r.id, r.requester_id, r.resource_id, r.check_in, r.check_out,
    r.occupant_count, r.total_price, r.status, r.payment_status,
    r.notes, r.review_id, r.created_at, r.updated_at
"""


def _row_to_reservation(row: tuple[Any, ...]) -> Reservation:
    return Reservation(
        id=str(row[0]),
        requester_id=row[1],
        resource_id=row[2],
        check_in=row[3],
        check_out=row[4],
        occupant_count=row[5],
        total_price=row[6],
        status=ReservationStatus(row[7]),
        payment_status=PaymentStatus(row[8]),
        notes=row[9],
        review_id=str(row[10]) if row[10] is not None else None,
        created_at=row[11],
        updated_at=row[12],
    )


def insert_reservation(cur: PgCursor, reservation: Reservation) -> Reservation:
    """Insert a reservation row.

    Args:
        cur: Database cursor (within transaction).
        reservation: Reservation with id, price and initial status set.

    Returns:
        The stored reservation, with created_at/updated_at from the database.
    """
    cur.execute(
        """
        INSERT INTO reservations (
            id, requester_id, resource_id, check_in, check_out,
            occupant_count, total_price, status, payment_status, notes
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s,
                %s::reservation_status, %s::payment_status, %s)
        RETURNING created_at, updated_at
        """,
        (
            reservation.id,
            reservation.requester_id,
            reservation.resource_id,
            reservation.check_in,
            reservation.check_out,
            reservation.occupant_count,
            reservation.total_price,
            reservation.status.value,
            reservation.payment_status.value,
            reservation.notes,
        ),
    )
    created_at, updated_at = cur.fetchone()
    reservation.created_at = created_at
    reservation.updated_at = updated_at
    return reservation


def get_reservation(
    cur: PgCursor,
    reservation_id: str,
    *,
    for_update: bool = False,
) -> Reservation | None:
    """Fetch one reservation by id.

    Args:
        cur: Database cursor.
        reservation_id: Reservation UUID.
        for_update: If True, lock the row until commit/rollback.

    Returns:
        Reservation or None if not found.
    """
    suffix = " FOR UPDATE" if for_update else ""
    cur.execute(
        f"SELECT {_COLUMNS} FROM reservations r WHERE r.id = %s{suffix}",
        (reservation_id,),
    )
    row = cur.fetchone()
    if row is None:
        return None
    return _row_to_reservation(row)


def find_active_reservations(
    cur: PgCursor,
    *,
    resource_id: str,
    check_in: date,
    check_out: date,
    statuses: Iterable[ReservationStatus],
) -> list[Reservation]:
    """List reservations of a spot in ``statuses`` overlapping ``[check_in, check_out)``.

    Strict inequalities: an existing stay ending on ``check_in`` does not match.
    """
    cur.execute(
        f"""
        SELECT {_COLUMNS}
        FROM reservations r
        WHERE r.resource_id = %s
          AND r.status = ANY(%s::reservation_status[])
          AND r.check_in < %s
          AND r.check_out > %s
        ORDER BY r.check_in
        """,
        (
            resource_id,
            sorted(status.value for status in statuses),
            check_out,
            check_in,
        ),
    )
    return [_row_to_reservation(row) for row in cur.fetchall()]


def update_reservation(cur: PgCursor, reservation: Reservation) -> Reservation:
    """Persist the mutable fields (status, payment status, notes, review link).

    Stay dates, occupants and price are fixed at creation and never written here.
    """
    cur.execute(
        """
        UPDATE reservations
        SET status = %s::reservation_status,
            payment_status = %s::payment_status,
            notes = %s,
            review_id = %s,
            updated_at = now()
        WHERE id = %s
        RETURNING updated_at
        """,
        (
            reservation.status.value,
            reservation.payment_status.value,
            reservation.notes,
            reservation.review_id,
            reservation.id,
        ),
    )
    row = cur.fetchone()
    if row is None:
        raise LookupError(f"reservation {reservation.id} vanished during update")
    reservation.updated_at = row[0]
    return reservation


def list_reservations(
    cur: PgCursor,
    *,
    requester_id: str | None = None,
    owner_id: str | None = None,
    status: ReservationStatus | None = None,
    payment_status: PaymentStatus | None = None,
    limit: int = 100,
) -> list[Reservation]:
    """List reservations newest first, filtered by requester or spot owner."""
    conditions: list[str] = []
    params: list = []

    if requester_id is not None:
        conditions.append("r.requester_id = %s")
        params.append(requester_id)

    if owner_id is not None:
        conditions.append("s.owner_id = %s")
        params.append(owner_id)

    if status is not None:
        conditions.append("r.status = %s::reservation_status")
        params.append(status.value)

    if payment_status is not None:
        conditions.append("r.payment_status = %s::payment_status")
        params.append(payment_status.value)

    where_clause = " AND ".join(conditions) if conditions else "TRUE"
    params.append(limit)

    cur.execute(
        f"""
        SELECT {_COLUMNS}
        FROM reservations r
        JOIN resources s ON s.id = r.resource_id
        WHERE {where_clause}
        ORDER BY r.created_at DESC
        LIMIT %s
        """,
        params,
    )
    return [_row_to_reservation(row) for row in cur.fetchall()]


def list_due_for_completion(cur: PgCursor, today: date) -> list[str]:
    """Ids of CONFIRMED reservations whose check-out date has been reached."""
    cur.execute(
        """
        SELECT id FROM reservations
        WHERE status = 'CONFIRMED'::reservation_status
          AND check_out <= %s
        ORDER BY check_out, id
        """,
        (today,),
    )
    return [str(row[0]) for row in cur.fetchall()]
