"""
backend/migrations/env.py — Alembic environment.

The database URL comes from the same config classes the app uses, so
migrations and the running service always agree on where the ledger lives:

  TEST_RUN=1        → TestingConfig   (TEST_DATABASE_URL, else in-memory SQLite)
  FLASK_ENV=...     → that config     (DATABASE_URL, postgres:// normalised)

Run from the project root:
    alembic -c backend/alembic.ini upgrade head

SQLite cannot ALTER most constraints in place; batch mode is switched on for
it so later migrations can use op.batch_alter_table().
"""

from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

# ── Make `backend` importable without an install ──────────────────────────
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from backend.config import config_by_name  # noqa: E402  (loads .env files)
from backend.app.extensions import db  # noqa: E402
from backend.app.models import balance, debt, group, membership  # noqa: E402,F401

target_metadata = db.metadata


def _config_name() -> str:
    if os.getenv("TEST_RUN"):
        return "testing"
    return os.getenv("FLASK_ENV", "development")


def _database_url() -> str:
    config_cls = config_by_name.get(_config_name(), config_by_name["development"])
    url = config_cls.SQLALCHEMY_DATABASE_URI
    if not url:
        raise RuntimeError(
            f"No database URL configured for {_config_name()!r}. "
            "Set DATABASE_URL (or TEST_DATABASE_URL with TEST_RUN=1)."
        )
    return url


# ── Alembic config ────────────────────────────────────────────────────────
db_url = _database_url()
render_as_batch = db_url.startswith("sqlite")

config = context.config
config.set_main_option("sqlalchemy.url", db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of executing it (`alembic upgrade --sql`)."""
    context.configure(
        url=db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=render_as_batch,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=render_as_batch,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
