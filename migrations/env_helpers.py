"""Database URL helpers for Alembic migrations.

Kept apart from env.py so they can be tested without triggering
alembic.context at import time.
"""

from __future__ import annotations

import os

from psycopg2.extensions import parse_dsn
from sqlalchemy.engine import URL, make_url


def _libpq_dsn_to_url(dsn: str) -> str:
    """Convert a libpq key=value DSN to a SQLAlchemy URL string.

    A unix-socket host (``host=/var/run/postgresql``) is passed as the
    ``host`` query parameter, which is how psycopg2 expects it.
    """
    params = parse_dsn(dsn)
    password = params.get("password") or os.environ.get("DB_PASSWORD") or None
    host = params.get("host", "localhost")

    if host.startswith("/"):
        url = URL.create(
            "postgresql+psycopg2",
            username=params.get("user"),
            password=password,
            database=params.get("dbname"),
            query={"host": host},
        )
    else:
        url = URL.create(
            "postgresql+psycopg2",
            username=params.get("user"),
            password=password,
            host=host,
            port=int(params.get("port", "5432")),
            database=params.get("dbname"),
        )
    return url.render_as_string(hide_password=False)


def _get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if "://" not in url:
        return _libpq_dsn_to_url(url)

    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    parsed = make_url(url)
    if parsed.drivername == "postgresql":
        parsed = parsed.set(drivername="postgresql+psycopg2")

    db_password = os.environ.get("DB_PASSWORD")
    if db_password and not parsed.password:
        parsed = parsed.set(password=db_password)
    return parsed.render_as_string(hide_password=False)
