# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Readiness probe backed by the application sessionmaker."""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from esg_pilotage.adapters.routers.health_router import HealthProbe
from esg_pilotage.infrastructure.database.session import get_sessionmaker


class DatabaseProbe:
    """Run ``SELECT 1`` on a fresh session."""

    async def db(self) -> tuple[bool, str | None]:
        try:
            async with get_sessionmaker()() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError, RuntimeError) as exc:
            return False, type(exc).__name__
        return True, None


def get_database_probe() -> HealthProbe:
    return DatabaseProbe()
