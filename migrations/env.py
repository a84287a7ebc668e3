# migrations/env.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Alembic Environment (migrations/env.py)

Purpose:
    Configure Alembic for the pilotage SQLAlchemy models with deterministic
    behavior across offline and online (async) migration runs.

Design:
    - Resolves the database URL from ``DATABASE_URL`` or alembic.ini, falling
      back to the application settings (which also read ``.env``).
    - Uses the project Declarative Base for autogenerate (`target_metadata`).
    - Runs "online" migrations on an async engine; "offline" output stays
      stable and deterministic.
    - Stores the Alembic version table in the configured schema.
    - Emits masked connection information to the log (no credentials).

Environment variables:
    DATABASE_URL                Primary database URL.
    DB_SCHEMA                   Schema holding the pilotage tables (default "public").
    ECHO_SQL                    If "1", enable SQL echo in online runs.
    ALEMBIC_SHOW_URL            If "1", log masked URL during runs.

Usage:
    # Offline (SQL script):
    alembic -x show_url=1 upgrade head --sql

    # Online (apply to DB):
    alembic upgrade head
"""

from __future__ import annotations

import asyncio
import logging
import logging.config
import os
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse, urlunparse

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from esg_pilotage.config.settings import get_settings
from esg_pilotage.infrastructure.database.models import pilotage as _pilotage_models  # noqa: F401
from esg_pilotage.infrastructure.database.models.base import DEFAULT_DB_SCHEMA
from esg_pilotage.infrastructure.database.models.base import metadata as BaseMetadata

# -----------------------------------------------------------------------------
# Logging configuration
# -----------------------------------------------------------------------------
config = context.config

if config.config_file_name is not None:
    logging.config.fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

_VERSION_TABLE = "alembic_version"
_VERSION_TABLE_SCHEMA = DEFAULT_DB_SCHEMA or "public"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _xargs() -> Mapping[str, str]:
    """Return Alembic -x key=value arguments as a mapping."""
    return dict(getattr(config, "x", {}) or {})


def _mask_url(url: str) -> str:
    """Return a masked representation of a database URL for safe logging."""
    parts = urlparse(url)
    user = parts.username or ""
    host = parts.hostname or ""
    port = f":{parts.port}" if parts.port else ""
    auth = f"{user}:****@" if user else ""
    return urlunparse((parts.scheme, f"{auth}{host}{port}", parts.path or "", "", "", ""))


def _get_db_url() -> str:
    """Resolve the database URL.

    Resolution order:
        1) `DATABASE_URL`
        2) alembic.ini -> sqlalchemy.url
        3) application settings (reads `.env`)
    """
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url

    ini_url = config.get_main_option("sqlalchemy.url")
    if ini_url:
        return ini_url

    return get_settings().database_url


def _maybe_log_url(url: str) -> None:
    if _xargs().get("show_url") == "1" or os.getenv("ALEMBIC_SHOW_URL") == "1":
        logger.info("Using DATABASE_URL (masked): %s", _mask_url(url))


# Alembic's target metadata used for autogenerate.
target_metadata = BaseMetadata


# -----------------------------------------------------------------------------
# Offline migrations
# -----------------------------------------------------------------------------
def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (SQL script output)."""
    url = _get_db_url()
    _maybe_log_url(url)

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
        include_schemas=True,
        version_table=_VERSION_TABLE,
        version_table_schema=_VERSION_TABLE_SCHEMA,
    )

    with context.begin_transaction():
        context.run_migrations()


# -----------------------------------------------------------------------------
# Online migrations (async engine)
# -----------------------------------------------------------------------------
def _online_engine_kwargs() -> dict[str, Any]:
    """Return keyword arguments for creating an async engine."""
    return {
        "echo": os.getenv("ECHO_SQL") == "1",
        "poolclass": pool.NullPool,
    }


def _configure_and_run(connection: Connection) -> None:
    """Configure Alembic context with a live connection and run migrations."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        include_schemas=True,
        version_table=_VERSION_TABLE,
        version_table_schema=_VERSION_TABLE_SCHEMA,
    )

    with context.begin_transaction():
        context.run_migrations()


async def _run_migrations_async() -> None:
    """Run migrations in 'online' mode using an async engine."""
    url = _get_db_url()
    _maybe_log_url(url)

    connectable: AsyncEngine = create_async_engine(url, **_online_engine_kwargs())

    async with connectable.connect() as connection:
        await connection.run_sync(_configure_and_run)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Entry point used by Alembic for online migrations (async safe)."""
    asyncio.run(_run_migrations_async())


# -----------------------------------------------------------------------------
# Entrypoint
# -----------------------------------------------------------------------------
if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
