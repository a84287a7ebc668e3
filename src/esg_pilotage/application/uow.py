# src/esg_pilotage/application/uow.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Unit of Work (Application Layer).

Purpose:
    Define the abstract Unit-of-Work boundary used by use cases to
    coordinate transactional work across the pilotage repositories.

    This module is infrastructure-agnostic: no SQLAlchemy, no HTTP, only
    Protocols and helpers. The SQLAlchemy implementation lives in
    ``adapters/uow``.

Layer:
    application
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from types import TracebackType
from typing import Any, Protocol, TypeVar, runtime_checkable

TResult = TypeVar("TResult")
TRepo = TypeVar("TRepo")


@runtime_checkable
class UnitOfWork(Protocol, AbstractAsyncContextManager["UnitOfWork"]):
    """Abstract Unit-of-Work contract for application use cases.

    A unit of work may be entered again after it exits; every entry opens a
    fresh transaction. Leaving the block without :meth:`commit` rolls back.
    """

    async def __aenter__(self) -> UnitOfWork:
        """Enter the transactional scope and return the active UoW."""
        raise NotImplementedError

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        """Exit the transactional scope."""
        raise NotImplementedError

    async def commit(self) -> None:
        """Commit all pending changes for this UnitOfWork."""
        raise NotImplementedError

    async def rollback(self) -> None:
        """Roll back any pending changes for this UnitOfWork."""
        raise NotImplementedError

    def get_repository(self, repo_type: type[Any]) -> Any:
        """Return a repository instance for the given repository Protocol."""
        raise NotImplementedError


def repository(tx: UnitOfWork, repo_type: type[TRepo]) -> TRepo:
    """Typed shorthand for ``tx.get_repository(repo_type)``."""
    repo: TRepo = tx.get_repository(repo_type)
    return repo


async def run_in_uow(  # noqa: UP047
    uow: UnitOfWork,
    fn: Callable[[UnitOfWork], Awaitable[TResult]],
) -> TResult:
    """Execute a coroutine against a UnitOfWork with commit/rollback semantics.

    Args:
        uow: UnitOfWork instance providing transactional boundaries.
        fn: Callable that receives the active UnitOfWork and returns a result.

    Returns:
        TResult: The result of the callable.

    Raises:
        Exception: Any exception raised by ``fn`` is propagated after rollback.
    """
    async with uow as tx:
        try:
            result = await fn(tx)
        except Exception:
            await tx.rollback()
            raise
        else:
            await tx.commit()
            return result
