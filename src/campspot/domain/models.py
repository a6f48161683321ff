"""Reservation engine data model.

Statuses are closed enumerations parsed once at the boundary; everything
downstream works with the enum members, never with raw strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from campspot.domain.errors import ValidationError


class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class Role(str, Enum):
    USER = "USER"
    OWNER = "OWNER"
    ADMIN = "ADMIN"


class NotificationKind(str, Enum):
    RESERVATION_CREATED = "RESERVATION_CREATED"
    RESERVATION_CONFIRMED = "RESERVATION_CONFIRMED"
    RESERVATION_CANCELLED = "RESERVATION_CANCELLED"
    RESERVATION_COMPLETED = "RESERVATION_COMPLETED"


# Statuses that occupy the spot's calendar.
ACTIVE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})

TERMINAL_STATUSES = frozenset(
    {
        ReservationStatus.CANCELLED,
        ReservationStatus.COMPLETED,
        ReservationStatus.REFUNDED,
    }
)


def _parse_enum(enum_cls, value, label: str):
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {label}: {value!r}")
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {label} '{value}' (expected one of: {allowed})"
        ) from None


def parse_status(value: str | ReservationStatus) -> ReservationStatus:
    """Parse a reservation status from user input (case-insensitive)."""
    return _parse_enum(ReservationStatus, value, "reservation status")


def parse_payment_status(value: str | PaymentStatus) -> PaymentStatus:
    """Parse a payment status from user input (case-insensitive)."""
    return _parse_enum(PaymentStatus, value, "payment status")


def parse_role(value: str | Role) -> Role:
    return _parse_enum(Role, value, "role")


@dataclass(frozen=True)
class DateRange:
    """Half-open ``[check_in, check_out)`` stay."""

    check_in: date
    check_out: date

    def to_dict(self) -> dict:
        return {
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
        }


@dataclass(frozen=True)
class Resource:
    """Bookable spot, as supplied by the catalog (read-only here)."""

    id: str
    owner_id: str
    capacity: int
    price_per_night: Decimal
    is_active: bool = True
    accepts_instant_reservation: bool = False


@dataclass(frozen=True)
class Actor:
    """Authenticated caller."""

    id: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass
class Reservation:
    id: str
    requester_id: str
    resource_id: str
    check_in: date
    check_out: date
    occupant_count: int
    total_price: Decimal
    status: ReservationStatus = ReservationStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: str | None = None
    review_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def stay(self) -> DateRange:
        return DateRange(self.check_in, self.check_out)

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def price_per_night(self) -> Decimal:
        return self.total_price / self.nights


@dataclass(frozen=True)
class Review:
    id: str
    reservation_id: str
    requester_id: str
    resource_id: str
    rating: int
    comment: str | None = None
    is_verified: bool = True
    created_at: datetime | None = None


@dataclass(frozen=True)
class NotificationEvent:
    """Structured event consumed asynchronously by the notification subsystem."""

    reservation_id: str
    requester_id: str
    resource_owner_id: str
    kind: NotificationKind
    occurred_at: datetime | None = None
    extra: dict = field(default_factory=dict)

    def to_payload(self) -> dict:
        payload = {
            "reservation_id": self.reservation_id,
            "requester_id": self.requester_id,
            "resource_owner_id": self.resource_owner_id,
            "kind": self.kind.value,
        }
        if self.occurred_at is not None:
            payload["occurred_at"] = self.occurred_at.isoformat()
        payload.update(self.extra)
        return payload
