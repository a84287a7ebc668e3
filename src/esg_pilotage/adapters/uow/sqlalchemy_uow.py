# src/esg_pilotage/adapters/uow/sqlalchemy_uow.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""SQLAlchemy-backed Unit of Work implementation.

Purpose:
    Provide a concrete implementation of the application-layer UnitOfWork
    protocol using SQLAlchemy's AsyncSession. Each ``async with`` block opens
    a fresh session; repositories resolved inside the block share it.

Layer:
    adapters/uow
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from esg_pilotage.adapters.repositories.assignment_repository import (
    SqlAlchemyAssignmentRepository,
)
from esg_pilotage.adapters.repositories.dashboard_projection_repository import (
    SqlAlchemyDashboardProjectionRepository,
)
from esg_pilotage.adapters.repositories.hierarchy_repository import (
    SqlAlchemyHierarchyRepository,
)
from esg_pilotage.adapters.repositories.indicator_value_repository import (
    SqlAlchemyIndicatorValueRepository,
)
from esg_pilotage.adapters.repositories.taxonomy_repository import (
    SqlAlchemyTaxonomyRepository,
)
from esg_pilotage.application.uow import UnitOfWork
from esg_pilotage.domain.exceptions.pilotage import DataStoreError
from esg_pilotage.domain.interfaces.repositories.assignment_repository import (
    AssignmentRepository,
)
from esg_pilotage.domain.interfaces.repositories.dashboard_projection_repository import (
    DashboardProjectionRepository,
)
from esg_pilotage.domain.interfaces.repositories.hierarchy_repository import (
    HierarchyRepository,
)
from esg_pilotage.domain.interfaces.repositories.indicator_value_repository import (
    IndicatorValueRepository,
)
from esg_pilotage.domain.interfaces.repositories.taxonomy_repository import (
    TaxonomyRepository,
)

RepoFactory = Callable[[AsyncSession], Any]

DEFAULT_REPO_FACTORIES: Mapping[type[Any], RepoFactory] = {
    HierarchyRepository: SqlAlchemyHierarchyRepository,
    TaxonomyRepository: SqlAlchemyTaxonomyRepository,
    AssignmentRepository: SqlAlchemyAssignmentRepository,
    IndicatorValueRepository: SqlAlchemyIndicatorValueRepository,
    DashboardProjectionRepository: SqlAlchemyDashboardProjectionRepository,
}


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy-based UnitOfWork implementation.

    Intended to be used via::

        async with SqlAlchemyUnitOfWork(session_factory=...) as uow:
            repo = uow.get_repository(IndicatorValueRepository)
            ...
            await uow.commit()
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        repo_factories: Mapping[type[Any], RepoFactory] | None = None,
    ) -> None:
        """Initialize the UnitOfWork.

        Args:
            session_factory: Factory for creating new AsyncSession instances.
            repo_factories: Optional overrides mapping a repository Protocol
                to a factory taking an AsyncSession.
        """
        self._session_factory = session_factory
        self._session: AsyncSession | None = None
        self._repo_factories: dict[type[Any], RepoFactory] = {
            **DEFAULT_REPO_FACTORIES,
            **(dict(repo_factories) if repo_factories is not None else {}),
        }
        self._repos: dict[type[Any], Any] = {}
        self._committed = False
        self._rolled_back = False

    # ------------------------------------------------------------------
    # Async context manager
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        """Open a new AsyncSession.

        Raises:
            RuntimeError: If a session is already active (nested usage).
        """
        if self._session is not None:
            raise RuntimeError("UnitOfWork is already active; nested usage is not supported.")

        self._session = self._session_factory()
        self._committed = False
        self._rolled_back = False
        self._repos.clear()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        """Roll back unless committed, then close the session.

        Exceptions raised in the block are propagated.
        """
        try:
            if not self._committed and not self._rolled_back:
                await self.rollback()
        finally:
            if self._session is not None:
                await self._session.close()
                self._session = None
            self._repos.clear()
        return None

    # ------------------------------------------------------------------
    # Transaction control
    # ------------------------------------------------------------------

    async def commit(self) -> None:
        """Commit the current transaction.

        No-op if the UnitOfWork was already committed or rolled back.

        Raises:
            RuntimeError: If called without an active session.
            DataStoreError: If the store rejects the commit.
        """
        if self._session is None:
            raise RuntimeError("Cannot commit: UnitOfWork has no active session.")
        if self._committed or self._rolled_back:
            return

        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self.rollback()
            raise DataStoreError(
                "The data store rejected the transaction.",
                details={"operation": "commit", "error": type(exc).__name__},
            ) from exc
        self._committed = True

    async def rollback(self) -> None:
        """Roll back the current transaction.

        No-op if already rolled back or committed, or if no session exists.
        """
        if self._session is None or self._rolled_back or self._committed:
            return
        await self._session.rollback()
        self._rolled_back = True

    # ------------------------------------------------------------------
    # Repository resolution
    # ------------------------------------------------------------------

    def get_repository(self, repo_type: type[Any]) -> Any:
        """Return the repository bound to the active session for ``repo_type``.

        Instances are cached for the duration of the block.

        Raises:
            RuntimeError: If called outside of an active UnitOfWork context.
            KeyError: If no factory is registered for ``repo_type``.
        """
        if self._session is None:
            raise RuntimeError(
                "get_repository() called outside of an active UnitOfWork scope. "
                "Use 'async with uow:' before requesting repositories.",
            )

        if repo_type in self._repos:
            return self._repos[repo_type]

        try:
            factory = self._repo_factories[repo_type]
        except KeyError as exc:
            raise KeyError(f"No repository factory registered for type {repo_type!r}.") from exc

        repo = factory(self._session)
        self._repos[repo_type] = repo
        return repo
