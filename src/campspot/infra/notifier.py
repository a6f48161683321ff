"""Outbox-backed notifier.

Writes each notification event to ``outbox_events`` in its own short
transaction, after the reservation change has committed. The email subsystem
drains the outbox asynchronously.
"""

from __future__ import annotations

import logging
from typing import Callable

from psycopg2.extensions import connection as PgConnection

from campspot.domain.models import NotificationEvent
from campspot.infra import db
from campspot.infra.repositories.outbox_repository import emit_notification
from campspot.observability.correlation import get_correlation_id

logger = logging.getLogger(__name__)


class OutboxNotifier:
    def __init__(self, connect: Callable[[], PgConnection] = db.get_conn) -> None:
        self._connect = connect

    def notify(self, event: NotificationEvent) -> None:
        conn = self._connect()
        try:
            with db.txn(conn) as cur:
                event_id = emit_notification(
                    cur, event, correlation_id=get_correlation_id() or None
                )
        finally:
            conn.close()

        logger.info(
            "notification queued",
            extra={
                "extra_fields": {
                    "event_id": event_id,
                    "kind": event.kind.value,
                    "reservation_id": event.reservation_id,
                }
            },
        )
