"""Tests for environment-driven settings."""

import os
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest

from campspot.infra.settings import Settings, get_settings


class TestGetSettings:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()

        assert settings.timezone_name == "UTC"
        assert settings.cancellation_window_hours == 24
        assert settings.max_stay_nights == 30
        assert settings.max_occupants == 50
        assert settings.timezone == ZoneInfo("UTC")

    def test_reads_environment(self):
        env = {
            "RESERVATION_TIMEZONE": "Europe/Lisbon",
            "CANCELLATION_WINDOW_HOURS": "48",
            "MAX_STAY_NIGHTS": "14",
            "MAX_OCCUPANTS": "8",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = get_settings()

        assert settings.timezone == ZoneInfo("Europe/Lisbon")
        assert settings.cancellation_window_hours == 48
        assert settings.max_stay_nights == 14
        assert settings.max_occupants == 8

    def test_blank_values_use_defaults(self):
        with patch.dict(os.environ, {"MAX_STAY_NIGHTS": " ", "RESERVATION_TIMEZONE": ""}, clear=True):
            settings = get_settings()
        assert settings.max_stay_nights == 30
        assert settings.timezone_name == "UTC"

    def test_non_integer_rejected(self):
        with patch.dict(os.environ, {"CANCELLATION_WINDOW_HOURS": "a day"}, clear=True):
            with pytest.raises(RuntimeError, match="CANCELLATION_WINDOW_HOURS"):
                get_settings()

    def test_negative_rejected(self):
        with patch.dict(os.environ, {"MAX_OCCUPANTS": "-1"}, clear=True):
            with pytest.raises(RuntimeError, match="MAX_OCCUPANTS"):
                get_settings()


class TestSettings:
    def test_unknown_timezone(self):
        with pytest.raises(RuntimeError, match="RESERVATION_TIMEZONE"):
            Settings(timezone_name="Mars/Olympus_Mons")
