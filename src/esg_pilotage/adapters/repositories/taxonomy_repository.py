# src/esg_pilotage/adapters/repositories/taxonomy_repository.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Taxonomy repository (SQLAlchemy).

Purpose:
    Read and extend ESG reference data and per-organization yearly targets.
    Implements the ``TaxonomyRepository`` protocol.

Layer:
    adapters/repositories
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from esg_pilotage.adapters.repositories.base_repository import BaseRepository
from esg_pilotage.domain.entities.taxonomy import (
    Indicator,
    IndicatorTarget,
    Process,
    Sector,
    TaxonomyElement,
)
from esg_pilotage.domain.enums.pilotage import (
    Axis,
    ElementType,
    Formula,
    Frequency,
    IndicatorType,
)
from esg_pilotage.infrastructure.database.models.pilotage import (
    CriterionModel,
    IndicatorModel,
    IndicatorTargetModel,
    IssueModel,
    ProcessModel,
    SectorModel,
    StandardModel,
    SubsectorModel,
)

#: Reference tables keyed by element type, with the column holding the code.
_CODE_COLUMNS: dict[ElementType, Any] = {
    ElementType.SECTORS: SectorModel.name,
    ElementType.STANDARDS: StandardModel.code,
    ElementType.ISSUES: IssueModel.code,
    ElementType.CRITERIA: CriterionModel.code,
    ElementType.INDICATORS: IndicatorModel.code,
    ElementType.PROCESSES: ProcessModel.code,
}

_ELEMENT_MODELS: dict[ElementType, Any] = {
    ElementType.STANDARDS: StandardModel,
    ElementType.ISSUES: IssueModel,
    ElementType.CRITERIA: CriterionModel,
}


class SqlAlchemyTaxonomyRepository(BaseRepository[IndicatorModel]):
    """SQLAlchemy-backed taxonomy repository."""

    async def existing_codes(self, element_type: ElementType, codes: Iterable[str]) -> set[str]:
        wanted = sorted(set(codes))
        if not wanted:
            return set()
        column = _CODE_COLUMNS[element_type]
        async with self.guard("existing_codes"):
            result = await self._session.execute(select(column).where(column.in_(wanted)))
        return set(result.scalars().all())

    async def list_elements(
        self, element_type: ElementType, codes: Iterable[str]
    ) -> Sequence[TaxonomyElement]:
        model = _ELEMENT_MODELS.get(element_type)
        if model is None:
            raise ValueError(f"{element_type.value} are not plain reference elements")
        async with self.guard("list_elements"):
            rows = await self.fetch_all(
                select(model).where(model.code.in_(sorted(set(codes)))).order_by(model.code)
            )
        return [
            TaxonomyElement(
                element_type=element_type,
                code=r.code,
                name=r.name,
                description=r.description,
            )
            for r in rows
        ]

    async def get_sector(self, name: str) -> Sector | None:
        async with self.guard("get_sector"):
            sector = await self._session.scalar(
                select(SectorModel.name).where(SectorModel.name == name)
            )
            if sector is None:
                return None
            result = await self._session.execute(
                select(SubsectorModel.name)
                .where(SubsectorModel.sector_name == name)
                .order_by(SubsectorModel.name)
            )
        return Sector(name=sector, subsectors=tuple(result.scalars().all()))

    async def get_indicator(self, code: str) -> Indicator | None:
        async with self.guard("get_indicator"):
            row = await self.fetch_optional(
                select(IndicatorModel).where(IndicatorModel.code == code)
            )
        return _map_indicator(row) if row is not None else None

    async def list_indicators(self, codes: Iterable[str]) -> Sequence[Indicator]:
        wanted = sorted(set(codes))
        if not wanted:
            return []
        async with self.guard("list_indicators"):
            rows = await self.fetch_all(
                select(IndicatorModel)
                .where(IndicatorModel.code.in_(wanted))
                .order_by(IndicatorModel.code)
            )
        return [_map_indicator(r) for r in rows]

    async def add_indicator(self, indicator: Indicator) -> bool:
        stmt = (
            pg_insert(IndicatorModel)
            .values(
                code=indicator.code,
                name=indicator.name,
                description=indicator.description,
                unit=indicator.unit,
                axis=indicator.axis.value,
                formula=indicator.formula.value,
                frequency=indicator.frequency.value,
                indicator_type=indicator.indicator_type.value,
            )
            .on_conflict_do_nothing(index_elements=[IndicatorModel.code])
            .returning(IndicatorModel.code)
        )
        async with self.guard("add_indicator"):
            result = await self._session.execute(stmt)
            return result.scalar_one_or_none() is not None

    async def list_processes(self, organization_name: str) -> Sequence[Process]:
        async with self.guard("list_processes"):
            rows = await self._session.execute(
                select(ProcessModel)
                .where(ProcessModel.organization_name == organization_name)
                .order_by(ProcessModel.code)
            )
        return [
            Process(
                code=r.code,
                name=r.name,
                indicator_codes=tuple(r.indicator_codes or ()),
                organization_name=r.organization_name,
                description=r.description,
            )
            for r in rows.scalars().all()
        ]

    async def get_target(
        self, organization_name: str, indicator_code: str, year: int
    ) -> IndicatorTarget | None:
        async with self.guard("get_target"):
            row = await self._session.scalar(
                select(IndicatorTargetModel).where(
                    IndicatorTargetModel.organization_name == organization_name,
                    IndicatorTargetModel.indicator_code == indicator_code,
                    IndicatorTargetModel.year == year,
                )
            )
        if row is None:
            return None
        return IndicatorTarget(
            organization_name=row.organization_name,
            indicator_code=row.indicator_code,
            year=row.year,
            target_value=row.target_value,
        )

    async def set_target(self, target: IndicatorTarget) -> IndicatorTarget:
        stmt = pg_insert(IndicatorTargetModel).values(
            organization_name=target.organization_name,
            indicator_code=target.indicator_code,
            year=target.year,
            target_value=target.target_value,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                IndicatorTargetModel.organization_name,
                IndicatorTargetModel.indicator_code,
                IndicatorTargetModel.year,
            ],
            set_={"target_value": stmt.excluded.target_value, "updated_at": self.utc_now()},
        )
        async with self.guard("set_target"):
            await self._session.execute(stmt)
        return target


def _map_indicator(row: IndicatorModel) -> Indicator:
    return Indicator(
        code=row.code,
        name=row.name,
        unit=row.unit,
        axis=Axis(row.axis),
        formula=Formula(row.formula),
        frequency=Frequency(row.frequency),
        indicator_type=IndicatorType(row.indicator_type),
        description=row.description,
    )
