"""Reservation engine settings loaded from the environment.

Environment variables:
    RESERVATION_TIMEZONE: IANA name of the reference timezone (default UTC).
    CANCELLATION_WINDOW_HOURS: Minimum notice before check-in (default 24).
    MAX_STAY_NIGHTS: Longest accepted stay (default 30).
    MAX_OCCUPANTS: Hard cap on occupants per reservation (default 50).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(frozen=True)
class Settings:
    timezone_name: str = "UTC"
    cancellation_window_hours: int = 24
    max_stay_nights: int = 30
    max_occupants: int = 50
    timezone: tzinfo = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            tz = ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise RuntimeError(
                f"Unknown RESERVATION_TIMEZONE: {self.timezone_name!r}"
            ) from None
        object.__setattr__(self, "timezone", tz)


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise RuntimeError(f"{name} must not be negative")
    return value


def get_settings() -> Settings:
    """Build Settings from the current environment."""
    return Settings(
        timezone_name=os.environ.get("RESERVATION_TIMEZONE", "UTC") or "UTC",
        cancellation_window_hours=_int_env("CANCELLATION_WINDOW_HOURS", 24),
        max_stay_nights=_int_env("MAX_STAY_NIGHTS", 30),
        max_occupants=_int_env("MAX_OCCUPANTS", 50),
    )
