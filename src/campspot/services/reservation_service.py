"""Reservation service - the single entry point for booking changes.

Rules:
- Input is validated once here; route handlers are thin adapters.
- The conflict check runs as a read-only pre-check and again inside the
  transaction that inserts, under a per-spot lock.
- Price is fixed at creation and never recomputed.
- Every status change goes through the state machine.
- Notifications are fire-and-forget: a failing notifier never undoes a change.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable
from uuid import uuid4

from campspot.domain import state_machine
from campspot.domain.cancellation import can_cancel, evaluate_cancellation
from campspot.domain.errors import (
    InvalidStateTransition,
    NotAuthorized,
    ReservationNotFound,
    ResourceNotFound,
    SlotUnavailable,
    TransientStoreError,
    ValidationError,
)
from campspot.domain.interval_conflict import assert_no_conflict
from campspot.domain.models import (
    Actor,
    NotificationEvent,
    NotificationKind,
    PaymentStatus,
    Reservation,
    ReservationStatus,
    Resource,
    Review,
    parse_payment_status,
    parse_status,
)
from campspot.domain.pricing import calculate_total
from campspot.domain.review_eligibility import (
    check_review_eligibility,
    is_review_eligible,
    validate_rating,
)
from campspot.domain.state_machine import ReservationEvent
from campspot.infra.settings import Settings, get_settings
from campspot.infra.time import to_calendar_date, today_in, utc_now
from campspot.observability.redaction import safe_log_context
from campspot.services.ports import Notifier, ReservationStore, StoreSession

logger = logging.getLogger(__name__)

# One retry of the check-and-insert transaction on a transient store failure.
CREATE_ATTEMPTS = 2


def _resource_lock_key(resource_id: str) -> str:
    return f"resource:{resource_id}"


def _clean_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    stripped = notes.strip()
    return stripped or None


def _append_note(notes: str | None, line: str) -> str:
    return f"{notes}\n{line}" if notes else line


class ReservationService:
    """Orchestrates validation, conflict checking, pricing and state changes.

    Args:
        store: Store handle; owns every transaction the service opens.
        notifier: Receives creation/confirmation/cancellation/completion events.
        settings: Engine settings (defaults to the environment).
        clock: Returns the current aware datetime; injectable for tests.
    """

    def __init__(
        self,
        store: ReservationStore,
        notifier: Notifier | None = None,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.settings = settings if settings is not None else get_settings()
        self.clock = clock

    # ── Creation ─────────────────────────────────────────

    def create_reservation(
        self,
        requester_id: str,
        resource_id: str,
        check_in: date | datetime | str,
        check_out: date | datetime | str,
        occupant_count: int,
        notes: str | None = None,
    ) -> Reservation:
        """Accept a booking request or fail with a typed error.

        Raises:
            ValidationError: Bad dates or occupants, inactive spot, capacity
                exceeded, or self-booking.
            ResourceNotFound: Spot does not exist.
            SlotUnavailable: Dates overlap an active reservation (also raised
                when the transactional retry fails for infrastructure reasons).
        """
        stay_in, stay_out = self._validate_request(check_in, check_out, occupant_count)

        # Pre-check: cheap rejection before taking the per-spot lock.
        try:
            with self.store.transaction() as session:
                resource = self._load_resource(session, resource_id)
                self._validate_resource(resource, requester_id, occupant_count)
                assert_no_conflict(
                    session,
                    resource_id=resource_id,
                    check_in=stay_in,
                    check_out=stay_out,
                )
        except TransientStoreError:
            # The locked insert repeats every check; let it decide.
            logger.warning(
                "conflict pre-check failed, deferring to locked insert",
                extra={"extra_fields": safe_log_context(resource_id=resource_id)},
            )

        for attempt in range(1, CREATE_ATTEMPTS + 1):
            try:
                reservation, resource = self._insert_checked(
                    requester_id=requester_id,
                    resource_id=resource_id,
                    check_in=stay_in,
                    check_out=stay_out,
                    occupant_count=occupant_count,
                    notes=_clean_notes(notes),
                )
                break
            except TransientStoreError as exc:
                if attempt == CREATE_ATTEMPTS:
                    logger.error(
                        "reservation insert failed after retry",
                        extra={
                            "extra_fields": safe_log_context(
                                resource_id=resource_id, attempts=attempt
                            )
                        },
                    )
                    raise SlotUnavailable(
                        resource_id,
                        message=(
                            "The selected dates are no longer available. "
                            "Please choose different dates."
                        ),
                    ) from exc
                logger.warning(
                    "retrying reservation insert after transient failure",
                    extra={
                        "extra_fields": safe_log_context(
                            resource_id=resource_id, attempt=attempt
                        )
                    },
                )

        logger.info(
            "reservation created",
            extra={
                "extra_fields": safe_log_context(
                    reservation_id=reservation.id,
                    resource_id=resource_id,
                    status=reservation.status,
                    nights=reservation.nights,
                    total_price=reservation.total_price,
                )
            },
        )
        self._notify(reservation, resource, NotificationKind.RESERVATION_CREATED)
        return reservation

    def _validate_request(
        self,
        check_in: date | datetime | str,
        check_out: date | datetime | str,
        occupant_count: int,
    ) -> tuple[date, date]:
        tz = self.settings.timezone
        try:
            stay_in = to_calendar_date(check_in, tz)
            stay_out = to_calendar_date(check_out, tz)
        except (TypeError, ValueError):
            raise ValidationError(
                "Invalid date format. Please use YYYY-MM-DD format."
            ) from None
        if not isinstance(stay_in, date) or not isinstance(stay_out, date):
            raise ValidationError("Invalid date format. Please use YYYY-MM-DD format.")

        if stay_in < today_in(tz, self.clock()):
            raise ValidationError("Check-in date cannot be in the past")

        if stay_out <= stay_in:
            raise ValidationError("Check-out date must be after check-in date")

        max_nights = self.settings.max_stay_nights
        if (stay_out - stay_in).days > max_nights:
            raise ValidationError(f"Maximum booking duration is {max_nights} nights")

        max_occupants = self.settings.max_occupants
        if (
            isinstance(occupant_count, bool)
            or not isinstance(occupant_count, int)
            or not 1 <= occupant_count <= max_occupants
        ):
            raise ValidationError(
                f"Number of occupants must be between 1 and {max_occupants}"
            )

        return stay_in, stay_out

    @staticmethod
    def _load_resource(session: StoreSession, resource_id: str) -> Resource:
        resource = session.get_resource(resource_id)
        if resource is None:
            raise ResourceNotFound(resource_id)
        return resource

    @staticmethod
    def _validate_resource(
        resource: Resource, requester_id: str, occupant_count: int
    ) -> None:
        if not resource.is_active:
            raise ValidationError("This spot is not available for booking")

        if occupant_count > resource.capacity:
            raise ValidationError(
                f"Maximum capacity for this spot is {resource.capacity} occupants"
            )

        if resource.owner_id == requester_id:
            raise ValidationError("You cannot book your own spot")

    def _insert_checked(
        self,
        *,
        requester_id: str,
        resource_id: str,
        check_in: date,
        check_out: date,
        occupant_count: int,
        notes: str | None,
    ) -> tuple[Reservation, Resource]:
        """Re-check and insert inside one transaction locked on the spot."""
        with self.store.transaction(lock_key=_resource_lock_key(resource_id)) as session:
            # Read the spot again: the rate and flags must be current at insert time.
            resource = self._load_resource(session, resource_id)
            self._validate_resource(resource, requester_id, occupant_count)

            assert_no_conflict(
                session,
                resource_id=resource_id,
                check_in=check_in,
                check_out=check_out,
            )

            quote = calculate_total(check_in, check_out, resource.price_per_night)
            now = self.clock()
            reservation = Reservation(
                id=str(uuid4()),
                requester_id=requester_id,
                resource_id=resource_id,
                check_in=check_in,
                check_out=check_out,
                occupant_count=occupant_count,
                total_price=quote.total_price,
                status=state_machine.initial_status(resource),
                payment_status=PaymentStatus.PENDING,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            stored = session.insert_reservation(reservation)

        return stored, resource

    # ── Lifecycle ────────────────────────────────────────

    def cancel_reservation(
        self,
        reservation_id: str,
        actor: Actor,
        reason: str | None = None,
    ) -> Reservation:
        """Cancel on behalf of the requester, the spot owner or an admin.

        Raises:
            ReservationNotFound: Unknown reservation.
            NotAuthorized: Actor is unrelated to the reservation.
            CancellationNotAllowed: Terminal status or inside the notice window.
        """
        with self.store.transaction() as session:
            reservation, resource = self._load_for_update(session, reservation_id)
            self._authorize(actor, reservation, resource, requester=True, owner=True)

            decision = evaluate_cancellation(
                reservation,
                self.clock(),
                window_hours=self.settings.cancellation_window_hours,
                tz=self.settings.timezone,
            )
            reason = _clean_notes(reason)
            if reason:
                reservation.notes = f"Cancelled: {reason}"
            self._apply(
                session,
                reservation,
                ReservationEvent.CANCEL,
                cancellation=decision,
            )

        logger.info(
            "reservation cancelled",
            extra={
                "extra_fields": safe_log_context(
                    reservation_id=reservation_id,
                    cancelled_by=actor.id,
                    payment_status=reservation.payment_status,
                    reason=reason,
                )
            },
        )
        self._notify(
            reservation,
            resource,
            NotificationKind.RESERVATION_CANCELLED,
            cancelled_by=actor.id,
        )
        return reservation

    def approve_reservation(self, reservation_id: str, actor: Actor) -> Reservation:
        """Owner (or admin) confirms a PENDING reservation."""
        with self.store.transaction() as session:
            reservation, resource = self._load_for_update(session, reservation_id)
            self._authorize(actor, reservation, resource, requester=False, owner=True)
            self._apply(
                session,
                reservation,
                ReservationEvent.APPROVE,
                owner_id=resource.owner_id,
            )

        self._notify(reservation, resource, NotificationKind.RESERVATION_CONFIRMED)
        return reservation

    def reject_reservation(
        self,
        reservation_id: str,
        actor: Actor,
        reason: str | None = None,
    ) -> Reservation:
        """Owner (or admin) declines a PENDING reservation; no notice window applies."""
        with self.store.transaction() as session:
            reservation, resource = self._load_for_update(session, reservation_id)
            self._authorize(actor, reservation, resource, requester=False, owner=True)
            reason = _clean_notes(reason)
            if reason:
                reservation.notes = f"Rejected: {reason}"
            self._apply(session, reservation, ReservationEvent.REJECT)

        logger.info(
            "reservation rejected",
            extra={
                "extra_fields": safe_log_context(
                    reservation_id=reservation_id, rejected_by=actor.id, reason=reason
                )
            },
        )
        self._notify(
            reservation,
            resource,
            NotificationKind.RESERVATION_CANCELLED,
            cancelled_by=actor.id,
        )
        return reservation

    def update_payment_status(
        self,
        reservation_id: str,
        new_payment_status: PaymentStatus | str,
        *,
        payment_method: str | None = None,
        transaction_id: str | None = None,
    ) -> Reservation:
        """Record a payment status change.

        PAID on a PENDING reservation also confirms it; on a CONFIRMED one the
        status is left as is. Payment method and transaction id, when given,
        are appended to the reservation notes.
        """
        payment_status = parse_payment_status(new_payment_status)

        payment_method = _clean_notes(payment_method)
        transaction_id = _clean_notes(transaction_id)
        payment_info = []
        if payment_method:
            payment_info.append(f"Payment method: {payment_method}")
        if transaction_id:
            payment_info.append(f"Transaction ID: {transaction_id}")

        with self.store.transaction() as session:
            reservation, resource = self._load_for_update(session, reservation_id)
            previous_status = reservation.status
            reservation.payment_status = payment_status
            if payment_info:
                reservation.notes = _append_note(
                    reservation.notes, ", ".join(payment_info)
                )

            if (
                payment_status == PaymentStatus.PAID
                and reservation.status == ReservationStatus.PENDING
            ):
                self._apply(session, reservation, ReservationEvent.CAPTURE_PAYMENT)
            else:
                session.update_reservation(reservation)

        logger.info(
            "payment status updated",
            extra={
                "extra_fields": safe_log_context(
                    reservation_id=reservation_id,
                    payment_status=payment_status,
                    status=reservation.status,
                )
            },
        )
        if previous_status != reservation.status:
            self._notify(reservation, resource, NotificationKind.RESERVATION_CONFIRMED)
        return reservation

    def complete_reservation(self, reservation_id: str) -> Reservation:
        """Mark a CONFIRMED reservation COMPLETED once its check-out date is reached.

        Invoked by the external scheduled job, never by end users.
        """
        with self.store.transaction() as session:
            reservation, resource = self._load_for_update(session, reservation_id)
            self._apply(
                session,
                reservation,
                ReservationEvent.COMPLETE,
                today=today_in(self.settings.timezone, self.clock()),
            )

        self._notify(reservation, resource, NotificationKind.RESERVATION_COMPLETED)
        return reservation

    def complete_due_reservations(self) -> list[Reservation]:
        """Complete every CONFIRMED reservation whose check-out date has been reached."""
        today = today_in(self.settings.timezone, self.clock())
        with self.store.transaction() as session:
            due_ids = session.list_due_for_completion(today)

        completed = []
        for reservation_id in due_ids:
            try:
                completed.append(self.complete_reservation(reservation_id))
            except InvalidStateTransition as exc:
                # Changed by someone else since the listing.
                logger.info(
                    "skipping reservation no longer due for completion",
                    extra={
                        "extra_fields": safe_log_context(
                            reservation_id=reservation_id, current=exc.current
                        )
                    },
                )

        logger.info(
            "completion run finished",
            extra={
                "extra_fields": safe_log_context(
                    due=len(due_ids), completed=len(completed)
                )
            },
        )
        return completed

    # ── Reviews ──────────────────────────────────────────

    def add_review(
        self,
        reservation_id: str,
        actor: Actor,
        rating: int,
        comment: str | None = None,
    ) -> Review:
        """Attach the requester's review to a completed, paid reservation.

        Raises:
            ValidationError: Rating outside 1..5.
            NotAuthorized: Actor is not the requester.
            NotEligibleForReview: Reservation not COMPLETED and PAID.
            DuplicateReview: Requester already reviewed this spot.
        """
        validate_rating(rating)

        with self.store.transaction() as session:
            reservation = session.get_reservation(reservation_id, for_update=True)
            if reservation is None:
                raise ReservationNotFound(reservation_id)
            if reservation.requester_id != actor.id:
                raise NotAuthorized("Only the guest who stayed can review this reservation")

            already_reviewed = session.review_exists(
                reservation.requester_id, reservation.resource_id
            )
            check_review_eligibility(reservation, already_reviewed=already_reviewed)

            review = session.insert_review(
                Review(
                    id=str(uuid4()),
                    reservation_id=reservation.id,
                    requester_id=reservation.requester_id,
                    resource_id=reservation.resource_id,
                    rating=rating,
                    comment=_clean_notes(comment),
                    is_verified=True,
                    created_at=self.clock(),
                )
            )
            reservation.review_id = review.id
            session.update_reservation(reservation)

        logger.info(
            "review added",
            extra={
                "extra_fields": safe_log_context(
                    reservation_id=reservation_id, review_id=review.id, rating=rating
                )
            },
        )
        return review

    # ── Reads ────────────────────────────────────────────

    def get_reservation(self, reservation_id: str, actor: Actor) -> Reservation:
        with self.store.transaction() as session:
            reservation = session.get_reservation(reservation_id)
            if reservation is None:
                raise ReservationNotFound(reservation_id)
            resource = self._load_resource(session, reservation.resource_id)
        self._authorize(actor, reservation, resource, requester=True, owner=True)
        return reservation

    def list_reservations_for_requester(
        self,
        requester_id: str,
        *,
        status: ReservationStatus | str | None = None,
        payment_status: PaymentStatus | str | None = None,
    ) -> list[Reservation]:
        with self.store.transaction() as session:
            return session.list_reservations(
                requester_id=requester_id,
                status=parse_status(status) if status is not None else None,
                payment_status=(
                    parse_payment_status(payment_status)
                    if payment_status is not None
                    else None
                ),
            )

    def list_reservations_for_owner(
        self,
        owner_id: str,
        *,
        status: ReservationStatus | str | None = None,
    ) -> list[Reservation]:
        with self.store.transaction() as session:
            return session.list_reservations(
                owner_id=owner_id,
                status=parse_status(status) if status is not None else None,
            )

    def reservation_view(self, reservation: Reservation) -> dict[str, Any]:
        """Read projection with the derived values shown to users."""
        return {
            "id": reservation.id,
            "requester_id": reservation.requester_id,
            "resource_id": reservation.resource_id,
            "check_in": reservation.check_in.isoformat(),
            "check_out": reservation.check_out.isoformat(),
            "occupant_count": reservation.occupant_count,
            "nights": reservation.nights,
            "price_per_night": str(reservation.price_per_night),
            "total_price": str(reservation.total_price),
            "status": reservation.status.value,
            "payment_status": reservation.payment_status.value,
            "notes": reservation.notes,
            "review_id": reservation.review_id,
            "can_cancel": can_cancel(
                reservation,
                self.clock(),
                window_hours=self.settings.cancellation_window_hours,
                tz=self.settings.timezone,
            ),
            "can_review": is_review_eligible(reservation)
            and reservation.review_id is None,
            "created_at": (
                reservation.created_at.isoformat() if reservation.created_at else None
            ),
            "updated_at": (
                reservation.updated_at.isoformat() if reservation.updated_at else None
            ),
        }

    # ── Helpers ──────────────────────────────────────────

    def _load_for_update(
        self, session: StoreSession, reservation_id: str
    ) -> tuple[Reservation, Resource]:
        reservation = session.get_reservation(reservation_id, for_update=True)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        resource = self._load_resource(session, reservation.resource_id)
        return reservation, resource

    @staticmethod
    def _authorize(
        actor: Actor,
        reservation: Reservation,
        resource: Resource,
        *,
        requester: bool,
        owner: bool,
    ) -> None:
        if actor.is_admin:
            return
        if requester and actor.id == reservation.requester_id:
            return
        if owner and actor.id == resource.owner_id:
            return
        raise NotAuthorized("You are not allowed to act on this reservation")

    @staticmethod
    def _apply(
        session: StoreSession,
        reservation: Reservation,
        event: ReservationEvent,
        **guards: Any,
    ) -> None:
        previous = reservation.status
        transition = state_machine.apply(reservation, event, **guards)
        reservation.status = transition.status
        reservation.payment_status = transition.payment_status
        session.update_reservation(reservation)

        logger.info(
            "reservation transition",
            extra={
                "extra_fields": safe_log_context(
                    reservation_id=reservation.id,
                    event=event,
                    from_status=previous,
                    to_status=transition.status,
                    payment_status=transition.payment_status,
                )
            },
        )

    def _notify(
        self,
        reservation: Reservation,
        resource: Resource,
        kind: NotificationKind,
        **extra: Any,
    ) -> None:
        if self.notifier is None:
            return

        event = NotificationEvent(
            reservation_id=reservation.id,
            requester_id=reservation.requester_id,
            resource_owner_id=resource.owner_id,
            kind=kind,
            occurred_at=self.clock(),
            extra=extra,
        )
        try:
            self.notifier.notify(event)
        except Exception:
            # Delivery is best-effort; the reservation change already committed.
            logger.exception(
                "notification dispatch failed",
                extra={
                    "extra_fields": safe_log_context(
                        reservation_id=reservation.id, kind=kind
                    )
                },
            )
