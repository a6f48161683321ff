"""Outbox repository - notification events for async processing.

Uses raw SQL with psycopg2 (no ORM).
"""

import json

from psycopg2.extensions import cursor as PgCursor

from campspot.domain.models import NotificationEvent


def emit_event(
    cur: PgCursor,
    *,
    event_type: str,
    aggregate_type: str,
    aggregate_id: str,
    payload: dict | None = None,
    correlation_id: str | None = None,
) -> int:
    """Emit an event to the outbox.

    Args:
        cur: Database cursor (within transaction).
        event_type: Event type (e.g., RESERVATION_CREATED).
        aggregate_type: Aggregate type (e.g., reservation).
        aggregate_id: Aggregate ID (e.g., reservation UUID).
        payload: Optional JSON payload (ids only, no PII).
        correlation_id: Optional correlation ID for tracing.

    Returns:
        The generated event ID.
    """
    payload_json = json.dumps(payload) if payload else None

    cur.execute(
        """
        INSERT INTO outbox_events (
            event_type, aggregate_type, aggregate_id,
            payload, correlation_id
        )
        VALUES (%s, %s, %s, %s, %s)
        RETURNING id
        """,
        (
            event_type,
            aggregate_type,
            aggregate_id,
            payload_json,
            correlation_id,
        ),
    )
    return cur.fetchone()[0]


def emit_notification(
    cur: PgCursor,
    event: NotificationEvent,
    *,
    correlation_id: str | None = None,
) -> int:
    """Emit a reservation notification event."""
    return emit_event(
        cur,
        event_type=event.kind.value,
        aggregate_type="reservation",
        aggregate_id=event.reservation_id,
        payload=event.to_payload(),
        correlation_id=correlation_id,
    )
