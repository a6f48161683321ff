"""Database-level exclusion constraint for overlapping active stays.

Second layer behind the per-spot advisory lock: two PENDING/CONFIRMED
reservations of one spot can never cover the same night, even if the
application check is bypassed. daterange('[)') keeps same-day turnover legal.

Revision ID: 002_no_overlap_constraint
Revises: 001_initial_schema
Create Date: 2026-10-01
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "002_no_overlap_constraint"
down_revision = "001_initial_schema"
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "002_no_overlap_constraint.sql"


def upgrade() -> None:
    op.execute(_SQL_FILE.read_text())


def downgrade() -> None:
    op.execute("ALTER TABLE reservations DROP CONSTRAINT IF EXISTS no_active_stay_overlap")
