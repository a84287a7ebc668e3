# src/esg_pilotage/adapters/repositories/base_repository.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""
BaseRepository: shared mechanics for the pilotage repositories.

Purpose:
    * Safe fetch helpers (one, optional, all).
    * Translation of SQLAlchemy/driver failures into ``DataStoreError``.
    * Per-operation latency and error metrics.
    * UTC timestamp helper for audit fields.

Layer: adapters / repositories

Notes:
    * No business logic, no domain decisions.
    * Repositories never commit; use cases own transactions.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import Select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from esg_pilotage.domain.exceptions.pilotage import DataStoreError
from esg_pilotage.infrastructure.observability.metrics import (
    get_db_errors_total,
    get_db_operation_duration_seconds,
)

TModel = TypeVar("TModel")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[TModel]):  # noqa: UP046
    """Base class for SQLAlchemy repositories."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: Async SQLAlchemy session bound to the target database.
        """
        self._session: AsyncSession = session

    @staticmethod
    def utc_now() -> datetime:
        """Return current UTC time with timezone info."""
        return datetime.now(UTC)

    # ------------------------------------------------------------------
    # Error translation
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def guard(self, operation: str) -> AsyncIterator[None]:
        """Translate ``SQLAlchemyError`` raised in the block into ``DataStoreError``.

        Also records the operation latency and failures in Prometheus.

        Args:
            operation: Short operation label recorded in logs, metrics and
                error details.

        Raises:
            DataStoreError: If the block raised a SQLAlchemy error.
        """
        model = type(self).__name__
        start = time.perf_counter()
        outcome = "success"
        try:
            yield
        except SQLAlchemyError as exc:
            outcome = "error"
            with suppress(Exception):
                get_db_errors_total().labels(
                    operation=operation, model=model, reason=type(exc).__name__
                ).inc()
            logger.warning(
                "repository.operation.failed",
                extra={
                    "repository": model,
                    "operation": operation,
                    "error": type(exc).__name__,
                },
            )
            raise DataStoreError(
                "The data store failed to complete the operation.",
                details={"operation": operation, "error": type(exc).__name__},
            ) from exc
        finally:
            with suppress(Exception):
                get_db_operation_duration_seconds().labels(
                    operation=operation, model=model, outcome=outcome
                ).observe(time.perf_counter() - start)

    # ------------------------------------------------------------------
    # Fetch helpers
    # ------------------------------------------------------------------

    async def fetch_one(self, stmt: Select[Any]) -> TModel:
        """Execute a statement and return a single row or raise."""
        res = await self._session.execute(stmt)
        return res.scalars().one()

    async def fetch_optional(self, stmt: Select[Any]) -> TModel | None:
        """Execute a statement and return zero or one row."""
        res = await self._session.execute(stmt)
        return res.scalars().first()

    async def fetch_all(self, stmt: Select[Any]) -> list[TModel]:
        """Execute a statement and return all rows as a list."""
        res = await self._session.execute(stmt)
        return list(res.scalars().all())
