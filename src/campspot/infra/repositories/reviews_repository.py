"""Reviews repository.

Uses raw SQL with psycopg2 (no ORM). UNIQUE(requester_id, resource_id) backs
the one-review-per-spot rule.
"""

from __future__ import annotations

from psycopg2.extensions import cursor as PgCursor

from campspot.domain.models import Review


def review_exists(cur: PgCursor, requester_id: str, resource_id: str) -> bool:
    cur.execute(
        "SELECT 1 FROM reviews WHERE requester_id = %s AND resource_id = %s",
        (requester_id, resource_id),
    )
    return cur.fetchone() is not None


def insert_review(cur: PgCursor, review: Review) -> Review:
    """Insert a review.

    Args:
        cur: Database cursor (within transaction).
        review: Review to store.

    Returns:
        The stored review with created_at from the database.

    Raises:
        psycopg2.errors.UniqueViolation: If the pair was reviewed concurrently.
    """
    cur.execute(
        """
        INSERT INTO reviews (
            id, reservation_id, requester_id, resource_id,
            rating, comment, is_verified
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        RETURNING created_at
        """,
        (
            review.id,
            review.reservation_id,
            review.requester_id,
            review.resource_id,
            review.rating,
            review.comment,
            review.is_verified,
        ),
    )
    (created_at,) = cur.fetchone()
    return Review(
        id=review.id,
        reservation_id=review.reservation_id,
        requester_id=review.requester_id,
        resource_id=review.resource_id,
        rating=review.rating,
        comment=review.comment,
        is_verified=review.is_verified,
        created_at=created_at,
    )
