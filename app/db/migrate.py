"""Tiny home-grown migration helpers with plain-language explanations."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Engine

LOGGER = logging.getLogger(__name__)

# Simple, idempotent migrations for SQLite.
# We only ADD columns and backfill values. Nothing is dropped.


def _table_columns(engine: Engine, table: str) -> list[dict[str, object]]:
    """Fetch SQLite's description of a table so we know what columns exist."""

    with engine.connect() as conn:
        return conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()


def _column_names(engine: Engine, table: str) -> set[str]:
    """Return a convenience set of just the field names from ``_table_columns``."""

    return {record["name"] for record in _table_columns(engine, table)}


def _add_column_sqlite(engine: Engine, table: str, col_def: str) -> None:
    """ALTER TABLE ADD COLUMN helper."""
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    """Build an index only if it hasn't already been defined."""

    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def _ensure_columns(engine: Engine, table: str, needed: dict[str, str]) -> set[str]:
    """Add every missing column from ``needed`` and return the final column set."""

    cols = _column_names(engine, table)
    if not cols:
        return cols
    for name, dtype in needed.items():
        if name not in cols:
            _add_column_sqlite(engine, table, f"{name} {dtype}")
            LOGGER.info("migrate.column_added", extra={"extra_data": {"table": table, "column": name}})
            cols.add(name)
    return cols


def _backfill_employee_names(engine: Engine) -> int:
    """Copy user names into ``employee_allocated`` for rows that stored a user id."""

    # Older databases referenced the employee by user id. The column is now
    # free text, so the referenced user's name becomes the stored value.
    with engine.begin() as conn:
        result = conn.execute(
            text(
                """
                UPDATE hardware_records
                SET employee_allocated = (
                    SELECT users.full_name FROM users WHERE users.id = hardware_records.employee_id
                )
                WHERE (employee_allocated IS NULL OR employee_allocated = '')
                  AND employee_id IS NOT NULL
                """
            )
        )
        return result.rowcount or 0


def run_migrations(engine: Engine) -> None:
    """Bring the SQLite schema up-to-date with the expectations of the code."""

    if engine.dialect.name != "sqlite":
        # Other backends are expected to be managed with their own tooling.
        return

    _ensure_columns(engine, "users", {"role": "TEXT DEFAULT 'user' NOT NULL", "village": "TEXT"})
    scols = _ensure_columns(
        engine,
        "sureties",
        {"court_city": "TEXT", "updated_at": "TEXT"},
    )
    if scols:
        # Sureties written before ``updated_at`` existed fall back to their creation time.
        with engine.begin() as conn:
            conn.execute(text("UPDATE sureties SET updated_at = created_at WHERE updated_at IS NULL"))

    hcols = _ensure_columns(
        engine,
        "hardware_records",
        {
            "employee_allocated": "TEXT",
            "source": "TEXT",
            "extra_fields": "JSON DEFAULT '{}' NOT NULL",
        },
    )
    if not hcols:
        # Table absent -> nothing to migrate; Base.metadata.create_all will create fresh schema.
        return

    if "employee_id" in hcols:
        updated = _backfill_employee_names(engine)
        if updated:
            LOGGER.info("migrate.employee_backfilled", extra={"extra_data": {"rows": updated}})

    _create_index_if_not_exists(engine, "hardware_records", "ix_hardware_records_court_name", ["court_name"])
