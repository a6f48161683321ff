"""Pricing: nights and total for a stay at a flat nightly rate."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from campspot.domain.errors import ValidationError

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class PriceQuote:
    nights: int
    price_per_night: Decimal
    total_price: Decimal


def count_nights(check_in: date | datetime, check_out: date | datetime) -> int:
    """Number of nights between two points, partial days rounded up.

    Raises:
        ValidationError: If check-out is not after check-in.
    """
    if isinstance(check_in, datetime) != isinstance(check_out, datetime):
        raise TypeError("check_in and check_out must both be dates or both datetimes")

    span = check_out - check_in
    nights = math.ceil(span / _ONE_DAY)
    if nights < 1:
        raise ValidationError("Check-out date must be after check-in date")
    return nights


def calculate_total(
    check_in: date | datetime,
    check_out: date | datetime,
    price_per_night: Decimal | int | float | str,
) -> PriceQuote:
    """Price a stay as ``nights * price_per_night``.

    No rounding is applied: the total keeps the rate's own precision.
    """
    rate = (
        price_per_night
        if isinstance(price_per_night, Decimal)
        else Decimal(str(price_per_night))
    )
    if rate < 0:
        raise ValidationError("Price per night cannot be negative")

    nights = count_nights(check_in, check_out)
    return PriceQuote(nights=nights, price_per_night=rate, total_price=rate * nights)
