# src/esg_pilotage/adapters/repositories/dashboard_projection_repository.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Dashboard projection repository (SQLAlchemy Core).

Purpose:
    Read the materialized dashboard view, its non-materialized fallback, and
    trigger a refresh of the materialization. Implements the
    ``DashboardProjectionRepository`` protocol.

Layer:
    adapters/repositories

Notes:
    - Both views are created by the migrations and share one column layout;
      they are addressed with lightweight ``table()`` constructs rather than
      mapped classes.
    - Enum-valued columns the store cannot parse are surfaced as ``None``.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from sqlalchemy import DateTime, Integer, Numeric, String, column, or_, select, table, text
from sqlalchemy.engine import RowMapping
from sqlalchemy.sql.expression import TableClause

from esg_pilotage.adapters.repositories.base_repository import BaseRepository
from esg_pilotage.domain.entities.consolidation import DashboardRow
from esg_pilotage.domain.enums.pilotage import Axis, Formula, Frequency, IndicatorType
from esg_pilotage.infrastructure.database.models.base import DEFAULT_DB_SCHEMA, qualified

PRIMARY_VIEW = "dashboard_performance_view"
FALLBACK_VIEW = "dashboard_performance_view_fallback"
REFRESH_FUNCTION = "refresh_dashboard_performance_view"

MONTH_COLUMNS: tuple[str, ...] = tuple(f"month_{m}" for m in range(1, 13))

TEnum = TypeVar("TEnum", bound=Enum)


def _view(name: str) -> TableClause:
    return table(
        name,
        column("organization_name", String),
        column("process_code", String),
        column("indicator_code", String),
        column("year", Integer),
        column("site_name", String),
        column("process_name", String),
        column("indicator_name", String),
        column("axis", String),
        column("issues", String),
        column("standards", String),
        column("criteria", String),
        column("unit", String),
        column("frequency", String),
        column("indicator_type", String),
        column("formula", String),
        *(column(month, Numeric) for month in MONTH_COLUMNS),
        column("target_value", Numeric),
        column("previous_year_value", Numeric),
        column("variation", Numeric),
        column("performance", Numeric),
        column("average_value", Numeric),
        column("last_updated", DateTime(timezone=True)),
        schema=DEFAULT_DB_SCHEMA,
    )


_VIEWS: dict[str, TableClause] = {name: _view(name) for name in (PRIMARY_VIEW, FALLBACK_VIEW)}


def _enum(kind: type[TEnum], raw: Any) -> TEnum | None:
    if raw is None:
        return None
    try:
        return kind(raw)
    except ValueError:
        return None


def _decimal(raw: Any) -> Decimal | None:
    return None if raw is None else Decimal(str(raw))


def map_view_row(row: RowMapping) -> DashboardRow:
    """Map one view row to a dashboard row."""
    return DashboardRow(
        organization_name=row["organization_name"],
        process_code=row["process_code"],
        indicator_code=row["indicator_code"],
        year=row["year"],
        process_name=row["process_name"],
        indicator_name=row["indicator_name"],
        axis=_enum(Axis, row["axis"]),
        issues=row["issues"],
        standards=row["standards"],
        criteria=row["criteria"],
        unit=row["unit"],
        frequency=_enum(Frequency, row["frequency"]),
        indicator_type=_enum(IndicatorType, row["indicator_type"]),
        formula=_enum(Formula, row["formula"]),
        monthly_values={
            month: _decimal(row[name]) for month, name in enumerate(MONTH_COLUMNS, start=1)
        },
        target_value=_decimal(row["target_value"]),
        previous_year_value=_decimal(row["previous_year_value"]),
        variation=_decimal(row["variation"]),
        performance=_decimal(row["performance"]),
        average_value=_decimal(row["average_value"]),
        last_updated=row["last_updated"],
        site_name=row["site_name"],
    )


class SqlAlchemyDashboardProjectionRepository(BaseRepository[DashboardRow]):
    """SQLAlchemy-backed dashboard read model."""

    async def refresh(self, organization_name: str) -> None:
        # The materialization is global; the organization only scopes logging.
        async with self.guard("refresh"):
            await self._session.execute(text(f"SELECT {qualified(REFRESH_FUNCTION)}()"))

    async def fetch_primary(
        self, organization_name: str, year: int, site_name: str | None = None
    ) -> Sequence[DashboardRow]:
        return await self._fetch(PRIMARY_VIEW, organization_name, year, site_name)

    async def fetch_fallback(
        self, organization_name: str, year: int, site_name: str | None = None
    ) -> Sequence[DashboardRow]:
        return await self._fetch(FALLBACK_VIEW, organization_name, year, site_name)

    async def _fetch(
        self, view_name: str, organization_name: str, year: int, site_name: str | None
    ) -> list[DashboardRow]:
        view = _VIEWS[view_name]
        stmt = select(view).where(
            view.c.organization_name == organization_name, view.c.year == year
        )
        if site_name is not None:
            stmt = stmt.where(or_(view.c.site_name == site_name, view.c.site_name.is_(None)))
        stmt = stmt.order_by(view.c.process_code, view.c.indicator_code)

        async with self.guard(f"fetch_{view_name}"):
            result = await self._session.execute(stmt)
            rows = result.mappings().all()
        return [map_view_row(r) for r in rows]
