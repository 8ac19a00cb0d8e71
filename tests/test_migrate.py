import os
import sys
from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))
os.environ.setdefault("DB_URL", "sqlite://")

from app.db.migrate import run_migrations


def _legacy_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE users (id INTEGER PRIMARY KEY, full_name TEXT NOT NULL, "
                "email_id TEXT NOT NULL, password_hash TEXT, created_at TEXT NOT NULL)"
            )
        )
        conn.execute(
            text(
                "CREATE TABLE sureties (id INTEGER PRIMARY KEY, shurity_name TEXT NOT NULL, "
                "user_id INTEGER, created_at TEXT NOT NULL)"
            )
        )
        conn.execute(
            text(
                "CREATE TABLE hardware_records (id INTEGER PRIMARY KEY, court_name TEXT, "
                "employee_id INTEGER, user_id INTEGER, created_at TEXT NOT NULL)"
            )
        )
        conn.execute(
            text("INSERT INTO users (id, full_name, email_id, created_at) VALUES (1, 'J. Doe', 'j@x', '2024-01-01')")
        )
        conn.execute(text("INSERT INTO sureties (id, shurity_name, created_at) VALUES (1, 'Ravi', '2024-02-01')"))
        conn.execute(
            text(
                "INSERT INTO hardware_records (id, court_name, employee_id, created_at) "
                "VALUES (1, 'District Court', 1, '2024-03-01')"
            )
        )
    return engine


def _columns(engine, table):
    with engine.connect() as conn:
        return {row["name"] for row in conn.execute(text(f"PRAGMA table_info({table})")).mappings()}


def test_migrations_add_missing_columns_and_backfill():
    engine = _legacy_engine()

    run_migrations(engine)

    assert {"role", "village"} <= _columns(engine, "users")
    assert {"court_city", "updated_at"} <= _columns(engine, "sureties")
    assert {"employee_allocated", "source", "extra_fields"} <= _columns(engine, "hardware_records")
    with engine.connect() as conn:
        assert conn.execute(text("SELECT role FROM users WHERE id = 1")).scalar_one() == "user"
        assert conn.execute(text("SELECT updated_at FROM sureties WHERE id = 1")).scalar_one() == "2024-02-01"
        assert (
            conn.execute(text("SELECT employee_allocated FROM hardware_records WHERE id = 1")).scalar_one()
            == "J. Doe"
        )


def test_migrations_are_idempotent():
    engine = _legacy_engine()

    run_migrations(engine)
    run_migrations(engine)

    assert "employee_allocated" in _columns(engine, "hardware_records")


def test_missing_tables_are_left_alone():
    engine = create_engine("sqlite://", poolclass=StaticPool)

    run_migrations(engine)

    assert _columns(engine, "hardware_records") == set()
