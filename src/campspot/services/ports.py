"""Collaborator interfaces the reservation service depends on.

The service owns an explicit store handle (no ambient database client) and a
notifier; both are injected at construction time.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import date
from typing import Iterable, Protocol

from campspot.domain.models import (
    NotificationEvent,
    PaymentStatus,
    Reservation,
    ReservationStatus,
    Resource,
    Review,
)


class StoreSession(Protocol):
    """Operations available inside one store transaction."""

    def get_resource(self, resource_id: str) -> Resource | None: ...

    def find_active_reservations(
        self,
        *,
        resource_id: str,
        check_in: date,
        check_out: date,
        statuses: Iterable[ReservationStatus],
    ) -> list[Reservation]: ...

    def insert_reservation(self, reservation: Reservation) -> Reservation: ...

    def get_reservation(
        self, reservation_id: str, *, for_update: bool = False
    ) -> Reservation | None: ...

    def update_reservation(self, reservation: Reservation) -> Reservation: ...

    def list_reservations(
        self,
        *,
        requester_id: str | None = None,
        owner_id: str | None = None,
        status: ReservationStatus | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> list[Reservation]: ...

    def list_due_for_completion(self, today: date) -> list[str]: ...

    def review_exists(self, requester_id: str, resource_id: str) -> bool: ...

    def insert_review(self, review: Review) -> Review: ...


class ReservationStore(Protocol):
    def transaction(
        self, *, lock_key: str | None = None
    ) -> AbstractContextManager[StoreSession]:
        """Open a transaction; commit on success, roll back on exception.

        ``lock_key`` serialises every transaction opened with the same key
        for its whole duration. Infrastructure failures surface as
        TransientStoreError.
        """
        ...


class Notifier(Protocol):
    def notify(self, event: NotificationEvent) -> None: ...
