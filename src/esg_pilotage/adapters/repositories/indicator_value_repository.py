# src/esg_pilotage/adapters/repositories/indicator_value_repository.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Value ledger repository (SQLAlchemy).

Purpose:
    Store and query monthly indicator values. Implements the
    ``IndicatorValueRepository`` protocol.

Layer:
    adapters/repositories

Notes:
    - Updates overwrite the stored row (last-write-wins).
    - Inserts upsert on the row identity, so two first writes of the same
      cell collapse into one row instead of failing on the unique key.
    - A hierarchy column set to NULL is part of the row identity; scope
      filters only constrain the members the scope sets.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Select, delete, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.sql import ColumnElement

from esg_pilotage.adapters.repositories.base_repository import BaseRepository
from esg_pilotage.domain.entities.indicator_value import IndicatorValue, ValueKey
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.enums.pilotage import ValueStatus
from esg_pilotage.domain.exceptions.pilotage import NotFound
from esg_pilotage.infrastructure.database.models.pilotage import IndicatorValueModel

M = IndicatorValueModel
IDENTITY_CONSTRAINT = "uq_indicator_values_identity"


def _key_clauses(key: ValueKey) -> list[ColumnElement[bool]]:
    clauses = [
        M.organization_name == key.organization_name,
        M.process_code == key.process_code,
        M.indicator_code == key.indicator_code,
        M.year == key.year,
        M.month == key.month,
    ]
    for column, value in (
        (M.business_line_name, key.business_line_name),
        (M.subsidiary_name, key.subsidiary_name),
        (M.site_name, key.site_name),
    ):
        clauses.append(column.is_(None) if value is None else column == value)
    return clauses


def _scope_clauses(scope: ConsolidationScope) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = []
    if scope.business_line is not None:
        clauses.append(M.business_line_name == scope.business_line)
    if scope.subsidiary is not None:
        clauses.append(M.subsidiary_name == scope.subsidiary)
    if scope.site is not None:
        clauses.append(M.site_name == scope.site)
    return clauses


def _ordered(stmt: Select[Any]) -> Select[Any]:
    return stmt.order_by(
        M.process_code.asc(),
        M.indicator_code.asc(),
        M.month.asc(),
        M.site_name.asc().nulls_first(),
        M.id.asc(),
    )


def map_to_domain(row: IndicatorValueModel) -> IndicatorValue:
    """Map an ORM row to the ledger entity."""
    return IndicatorValue(
        id=row.id,
        organization_name=row.organization_name,
        business_line_name=row.business_line_name,
        subsidiary_name=row.subsidiary_name,
        site_name=row.site_name,
        process_code=row.process_code,
        indicator_code=row.indicator_code,
        year=row.year,
        month=row.month,
        value=row.value,
        unit=row.unit,
        status=ValueStatus(row.status),
        comment=row.comment,
        submitted_by=row.submitted_by,
        submitted_at=row.submitted_at,
        validated_by=row.validated_by,
        validated_at=row.validated_at,
        updated_at=row.updated_at,
    )


def mutable_fields(entity: IndicatorValue) -> dict[str, Any]:
    """Return the ledger columns an update may overwrite."""
    return {
        "value": entity.value,
        "unit": entity.unit,
        "status": entity.status.value,
        "comment": entity.comment,
        "submitted_by": entity.submitted_by,
        "submitted_at": entity.submitted_at,
        "validated_by": entity.validated_by,
        "validated_at": entity.validated_at,
        "updated_at": entity.updated_at,
    }


def apply_to_model(entity: IndicatorValue, row: IndicatorValueModel) -> None:
    """Copy the mutable ledger fields of ``entity`` onto ``row``."""
    for name, value in mutable_fields(entity).items():
        setattr(row, name, value)


def upsert_statement(entity: IndicatorValue, *, created_at: datetime) -> Any:
    """Build an insert that overwrites the row already holding the same identity."""
    fields = mutable_fields(entity)
    stmt = pg_insert(IndicatorValueModel).values(
        id=entity.id or uuid4(),
        organization_name=entity.organization_name,
        business_line_name=entity.business_line_name,
        subsidiary_name=entity.subsidiary_name,
        site_name=entity.site_name,
        process_code=entity.process_code,
        indicator_code=entity.indicator_code,
        year=entity.year,
        month=entity.month,
        created_at=created_at,
        **fields,
    )
    return stmt.on_conflict_do_update(
        constraint=IDENTITY_CONSTRAINT,
        set_={name: stmt.excluded[name] for name in fields},
    ).returning(IndicatorValueModel)


class SqlAlchemyIndicatorValueRepository(BaseRepository[IndicatorValueModel]):
    """SQLAlchemy-backed value ledger."""

    async def get(self, value_id: UUID) -> IndicatorValue | None:
        async with self.guard("get"):
            row = await self._session.get(IndicatorValueModel, value_id)
        return map_to_domain(row) if row is not None else None

    async def find(self, key: ValueKey) -> IndicatorValue | None:
        async with self.guard("find"):
            row = await self.fetch_optional(select(M).where(*_key_clauses(key)))
        return map_to_domain(row) if row is not None else None

    async def list_for_period(
        self,
        organization_name: str,
        *,
        year: int,
        month: int | None = None,
        scope: ConsolidationScope | None = None,
        statuses: Iterable[ValueStatus] | None = None,
        process_codes: Iterable[str] | None = None,
        indicator_codes: Iterable[str] | None = None,
    ) -> Sequence[IndicatorValue]:
        stmt = select(M).where(M.organization_name == organization_name, M.year == year)
        if month is not None:
            stmt = stmt.where(M.month == month)
        if scope is not None:
            stmt = stmt.where(*_scope_clauses(scope))
        if statuses is not None:
            stmt = stmt.where(M.status.in_([s.value for s in statuses]))
        if process_codes is not None:
            stmt = stmt.where(M.process_code.in_(list(process_codes)))
        if indicator_codes is not None:
            stmt = stmt.where(M.indicator_code.in_(list(indicator_codes)))

        async with self.guard("list_for_period"):
            rows = await self.fetch_all(_ordered(stmt))
        return [map_to_domain(r) for r in rows]

    async def insert(self, row: IndicatorValue) -> IndicatorValue:
        stmt = upsert_statement(row, created_at=row.updated_at or self.utc_now())
        async with self.guard("insert"):
            result = await self._session.scalars(
                stmt, execution_options={"populate_existing": True}
            )
            model = result.one()
        return map_to_domain(model)

    async def update(self, row: IndicatorValue) -> IndicatorValue:
        if row.id is None:
            raise ValueError("Cannot update an unsaved ledger row.")
        async with self.guard("update"):
            model = await self._session.get(IndicatorValueModel, row.id)
            if model is None:
                raise NotFound(
                    f"Ledger row {row.id} no longer exists.", details={"value_id": str(row.id)}
                )
            apply_to_model(row, model)
            await self._session.flush()
        return map_to_domain(model)

    async def delete_for_codes(
        self,
        organization_name: str,
        *,
        indicator_codes: Iterable[str] | None = None,
        process_codes: Iterable[str] | None = None,
    ) -> int:
        matches: list[ColumnElement[bool]] = []
        if indicator_codes is not None:
            matches.append(M.indicator_code.in_(list(indicator_codes)))
        if process_codes is not None:
            matches.append(M.process_code.in_(list(process_codes)))
        if not matches:
            return 0

        async with self.guard("delete_for_codes"):
            result = await self._session.execute(
                delete(M).where(M.organization_name == organization_name, or_(*matches))
            )
        return int(result.rowcount or 0)
