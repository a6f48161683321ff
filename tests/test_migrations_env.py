"""Tests for the Alembic DATABASE_URL helpers."""

from __future__ import annotations

import os
import sys

import pytest

# Make migrations.env_helpers importable without alembic context
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from migrations.env_helpers import _get_database_url, _libpq_dsn_to_url  # noqa: E402


class TestLibpqDsnToUrl:
    def test_unix_socket(self):
        dsn = "dbname=campspot user=campspot password=s3cret host=/var/run/postgresql"
        result = _libpq_dsn_to_url(dsn)
        assert result.startswith("postgresql+psycopg2://campspot:s3cret@/campspot?host=")
        assert "postgresql" in result.split("?host=")[1]

    def test_tcp_host(self):
        dsn = "dbname=campspot user=admin password=pw host=localhost port=5432"
        assert _libpq_dsn_to_url(dsn) == "postgresql+psycopg2://admin:pw@localhost:5432/campspot"

    def test_default_port(self):
        dsn = "dbname=db user=u password=p host=myhost"
        assert _libpq_dsn_to_url(dsn) == "postgresql+psycopg2://u:p@myhost:5432/db"

    def test_special_chars_encoded(self):
        dsn = "dbname=db user=u password=p@ss host=h port=5432"
        assert "p%40ss" in _libpq_dsn_to_url(dsn)

    def test_quoted_password_with_spaces(self):
        dsn = "dbname=db user=u password='p w' host=h port=5432"
        assert "p%20w" in _libpq_dsn_to_url(dsn) or "p+w" in _libpq_dsn_to_url(dsn)

    def test_db_password_env_fallback(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "from-env")
        dsn = "dbname=db user=u host=h port=5432"
        assert _libpq_dsn_to_url(dsn) == "postgresql+psycopg2://u:from-env@h:5432/db"


class TestGetDatabaseUrl:
    def test_missing(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            _get_database_url()

    def test_postgres_scheme_normalised(self, monkeypatch):
        monkeypatch.delenv("DB_PASSWORD", raising=False)
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@h:5432/db")
        assert _get_database_url() == "postgresql+psycopg2://u:p@h:5432/db"

    def test_db_password_injected_into_url(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u@h/db")
        monkeypatch.setenv("DB_PASSWORD", "from-env")
        assert _get_database_url() == "postgresql+psycopg2://u:from-env@h/db"

    def test_libpq_dsn_converted(self, monkeypatch):
        monkeypatch.delenv("DB_PASSWORD", raising=False)
        monkeypatch.setenv("DATABASE_URL", "dbname=db user=u password=p host=h")
        assert _get_database_url() == "postgresql+psycopg2://u:p@h:5432/db"
