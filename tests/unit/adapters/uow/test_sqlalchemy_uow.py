# tests/unit/adapters/uow/test_sqlalchemy_uow.py
from __future__ import annotations

from typing import Any, cast

import pytest
from sqlalchemy.exc import OperationalError

from esg_pilotage.adapters.repositories.indicator_value_repository import (
    SqlAlchemyIndicatorValueRepository,
)
from esg_pilotage.adapters.uow.sqlalchemy_uow import SqlAlchemyUnitOfWork
from esg_pilotage.domain.exceptions.pilotage import DataStoreError
from esg_pilotage.domain.interfaces.repositories.indicator_value_repository import (
    IndicatorValueRepository,
)


class _FakeAsyncSession:
    """Minimal async-session stand-in for UoW wiring tests.

    Implements only commit, rollback and close. No engine is involved.
    """

    def __init__(self, *, fail_commit: bool = False) -> None:
        self.fail_commit = fail_commit
        self.committed = False
        self.rolled_back = False
        self.closed = False

    async def commit(self) -> None:
        if self.fail_commit:
            raise OperationalError("COMMIT", {}, Exception("connection reset"))
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def close(self) -> None:
        self.closed = True


class _Factory:
    """Session factory that remembers every session it hands out."""

    def __init__(self, *, fail_commit: bool = False) -> None:
        self.fail_commit = fail_commit
        self.sessions: list[_FakeAsyncSession] = []

    def __call__(self) -> _FakeAsyncSession:
        session = _FakeAsyncSession(fail_commit=self.fail_commit)
        self.sessions.append(session)
        return session


def _uow(factory: _Factory) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(session_factory=cast(Any, factory))


@pytest.mark.anyio
async def test_uow_resolves_and_caches_repositories() -> None:
    uow = _uow(_Factory())

    async with uow:
        repo = uow.get_repository(IndicatorValueRepository)
        assert isinstance(repo, SqlAlchemyIndicatorValueRepository)
        assert uow.get_repository(IndicatorValueRepository) is repo


@pytest.mark.anyio
async def test_uow_rolls_back_without_commit_and_closes() -> None:
    factory = _Factory()

    async with _uow(factory):
        pass

    session = factory.sessions[0]
    assert session.rolled_back
    assert not session.committed
    assert session.closed


@pytest.mark.anyio
async def test_uow_commit_skips_rollback() -> None:
    factory = _Factory()

    async with _uow(factory) as uow:
        await uow.commit()

    session = factory.sessions[0]
    assert session.committed
    assert not session.rolled_back


@pytest.mark.anyio
async def test_uow_opens_fresh_session_per_block() -> None:
    factory = _Factory()
    uow = _uow(factory)

    async with uow:
        await uow.commit()
    async with uow:
        pass

    assert len(factory.sessions) == 2
    assert factory.sessions[1].rolled_back


@pytest.mark.anyio
async def test_uow_commit_failure_becomes_data_store_error() -> None:
    factory = _Factory(fail_commit=True)

    with pytest.raises(DataStoreError) as err:
        async with _uow(factory) as uow:
            await uow.commit()

    assert err.value.details == {"operation": "commit", "error": "OperationalError"}
    assert factory.sessions[0].rolled_back
    assert factory.sessions[0].closed


@pytest.mark.anyio
async def test_uow_guards_usage_outside_scope() -> None:
    uow = _uow(_Factory())

    with pytest.raises(RuntimeError):
        uow.get_repository(IndicatorValueRepository)
    with pytest.raises(RuntimeError):
        await uow.commit()

    async with uow:
        with pytest.raises(KeyError):
            uow.get_repository(dict)
