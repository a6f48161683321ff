"""Spot catalog reads. The catalog itself is managed elsewhere; this is read-only."""

from __future__ import annotations

from psycopg2.extensions import cursor as PgCursor

from campspot.domain.models import Resource


def get_resource(cur: PgCursor, resource_id: str) -> Resource | None:
    """Fetch the booking-relevant attributes of a spot.

    Always read fresh inside the caller's transaction so the price used for
    a new reservation is never stale.

    Args:
        cur: Database cursor.
        resource_id: Spot identifier.

    Returns:
        Resource or None if not found.
    """
    cur.execute(
        """
        SELECT id, owner_id, capacity, price_per_night,
               is_active, accepts_instant_reservation
        FROM resources
        WHERE id = %s
        """,
        (resource_id,),
    )
    row = cur.fetchone()
    if row is None:
        return None

    return Resource(
        id=str(row[0]),
        owner_id=row[1],
        capacity=row[2],
        price_per_night=row[3],
        is_active=row[4],
        accepts_instant_reservation=row[5],
    )
