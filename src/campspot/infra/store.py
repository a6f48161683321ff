"""PostgreSQL-backed reservation store.

The store is the explicit handle ReservationService owns: each
``transaction()`` opens its own connection, and a ``lock_key`` takes a
transaction-scoped advisory lock so check-then-insert sequences for the same
spot are serialised while different spots never contend.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import Callable, Iterable, Iterator

import psycopg2
import psycopg2.errors
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor

from campspot.domain.errors import DuplicateReview, TransientStoreError
from campspot.domain.models import (
    PaymentStatus,
    Reservation,
    ReservationStatus,
    Resource,
    Review,
)
from campspot.infra import db
from campspot.infra.repositories import (
    reservations_repository,
    resources_repository,
    reviews_repository,
)
from campspot.observability.redaction import safe_log_context

logger = logging.getLogger(__name__)

# Failures worth one more attempt: the retry re-runs the conflict check and
# turns a genuine overlap into SlotUnavailable.
_TRANSIENT_ERRORS = (
    psycopg2.errors.SerializationFailure,
    psycopg2.errors.DeadlockDetected,
    psycopg2.errors.ExclusionViolation,
    psycopg2.errors.LockNotAvailable,
    psycopg2.OperationalError,
    psycopg2.InterfaceError,
)


class PgStoreSession:
    """Store operations bound to one open cursor."""

    def __init__(self, cur: PgCursor) -> None:
        self.cur = cur

    def get_resource(self, resource_id: str) -> Resource | None:
        return resources_repository.get_resource(self.cur, resource_id)

    def find_active_reservations(
        self,
        *,
        resource_id: str,
        check_in: date,
        check_out: date,
        statuses: Iterable[ReservationStatus],
    ) -> list[Reservation]:
        return reservations_repository.find_active_reservations(
            self.cur,
            resource_id=resource_id,
            check_in=check_in,
            check_out=check_out,
            statuses=statuses,
        )

    def insert_reservation(self, reservation: Reservation) -> Reservation:
        return reservations_repository.insert_reservation(self.cur, reservation)

    def get_reservation(
        self, reservation_id: str, *, for_update: bool = False
    ) -> Reservation | None:
        return reservations_repository.get_reservation(
            self.cur, reservation_id, for_update=for_update
        )

    def update_reservation(self, reservation: Reservation) -> Reservation:
        return reservations_repository.update_reservation(self.cur, reservation)

    def list_reservations(
        self,
        *,
        requester_id: str | None = None,
        owner_id: str | None = None,
        status: ReservationStatus | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> list[Reservation]:
        return reservations_repository.list_reservations(
            self.cur,
            requester_id=requester_id,
            owner_id=owner_id,
            status=status,
            payment_status=payment_status,
        )

    def list_due_for_completion(self, today: date) -> list[str]:
        return reservations_repository.list_due_for_completion(self.cur, today)

    def review_exists(self, requester_id: str, resource_id: str) -> bool:
        return reviews_repository.review_exists(self.cur, requester_id, resource_id)

    def insert_review(self, review: Review) -> Review:
        try:
            return reviews_repository.insert_review(self.cur, review)
        except psycopg2.errors.UniqueViolation as exc:
            raise DuplicateReview("You have already reviewed this spot") from exc


class PostgresReservationStore:
    """ReservationStore implementation over psycopg2."""

    def __init__(self, connect: Callable[[], PgConnection] = db.get_conn) -> None:
        self._connect = connect

    @contextmanager
    def transaction(self, *, lock_key: str | None = None) -> Iterator[PgStoreSession]:
        """Open a transaction, optionally serialised on ``lock_key``.

        Raises:
            TransientStoreError: On connection loss, serialization/deadlock
                aborts, or an exclusion-constraint hit.
        """
        try:
            conn = self._connect()
        except psycopg2.Error as exc:
            raise TransientStoreError("database unavailable") from exc

        try:
            with db.txn(conn) as cur:
                if lock_key is not None:
                    db.advisory_xact_lock(cur, lock_key)
                yield PgStoreSession(cur)
        except _TRANSIENT_ERRORS as exc:
            logger.warning(
                "transient store failure",
                extra={
                    "extra_fields": safe_log_context(
                        lock_key=lock_key,
                        error_type=type(exc).__name__,
                        pgcode=getattr(exc, "pgcode", None),
                    )
                },
            )
            raise TransientStoreError(type(exc).__name__) from exc
        finally:
            conn.close()
