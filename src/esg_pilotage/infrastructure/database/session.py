# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Async SQLAlchemy engine/session factory.

This module owns the application-global async SQLAlchemy engine and
`async_sessionmaker` shared by the unit of work.

Lifecycle:
    * Call `init_engine_and_sessionmaker(settings)` at app startup (lifespan).
    * Resolve `get_sessionmaker()` when building a unit of work.
    * Call `dispose_engine()` during shutdown.

Notes:
    * No business logic here; repositories consume the session.
    * `pool_pre_ping=True` helps surface dead connections before use.
    * `get_sessionmaker()` lazily initializes from `get_settings()` so test
      transports that skip lifespan still work.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from esg_pilotage.config.settings import Settings, get_settings

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def build_sessionmaker(
    database_url: str, *, pool_size: int = 5, echo: bool = False
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create a standalone engine and sessionmaker (CLI and scripts).

    Args:
        database_url: SQLAlchemy async database URL.
        pool_size: Connection pool size.
        echo: Echo SQL statements.

    Returns:
        tuple: The engine (caller disposes it) and its sessionmaker.
    """
    engine = create_async_engine(
        url=database_url,
        pool_pre_ping=True,
        pool_size=pool_size,
        echo=echo,
    )
    return engine, async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


def init_engine_and_sessionmaker(settings: Settings) -> None:
    """Initialize the global async engine and sessionmaker (idempotent).

    Args:
        settings: Application settings providing `database_url`.

    Raises:
        ValueError: If `database_url` is empty.
    """
    global _engine, _sessionmaker

    if not settings.database_url:
        raise ValueError("database_url must be configured")
    if _engine is not None:
        return

    _engine, _sessionmaker = build_sessionmaker(
        settings.database_url,
        pool_size=settings.db_pool_size,
        echo=settings.db_echo,
    )


async def dispose_engine() -> None:
    """Dispose the global engine at application shutdown."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the async sessionmaker, initializing it on first use.

    Returns:
        async_sessionmaker[AsyncSession]: The global session factory.
    """
    if _sessionmaker is None:
        init_engine_and_sessionmaker(get_settings())
    if _sessionmaker is None:
        raise RuntimeError("DB sessionmaker not initialized (call init_engine_and_sessionmaker)")
    return _sessionmaker
