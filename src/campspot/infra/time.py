"""Time utilities for consistent timestamp and calendar-date handling.

Stay dates are calendar dates: midnight in the configured reference timezone.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def to_calendar_date(value: date | datetime | str, tz: tzinfo) -> date:
    """Normalise a check-in/check-out value to a calendar date in ``tz``.

    Args:
        value: A date, an aware or naive datetime, or an ISO-8601 string.
            Naive datetimes are taken as already expressed in ``tz``.
        tz: Reference timezone.

    Returns:
        The calendar date (the time of day is dropped).

    Raises:
        ValueError: If a string is not valid ISO-8601.
    """
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            # fromisoformat only accepts a "Z" suffix from Python 3.11 on
            if text[-1:] in ("Z", "z"):
                text = text[:-1] + "+00:00"
            value = datetime.fromisoformat(text)

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()

    return value


def start_of_day(day: date, tz: tzinfo) -> datetime:
    """Aware datetime for midnight of ``day`` in ``tz``."""
    return datetime.combine(day, time.min, tzinfo=tz)


def today_in(tz: tzinfo, now: datetime | None = None) -> date:
    """Current calendar date in ``tz``."""
    current = now if now is not None else utc_now()
    return current.astimezone(tz).date()
