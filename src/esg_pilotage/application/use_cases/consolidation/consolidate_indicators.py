# src/esg_pilotage/application/use_cases/consolidation/consolidate_indicators.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Use cases: consolidate validated ledger rows per indicator.

Purpose:
    Load validated rows for a year and the prior year within a hierarchy
    scope, the indicator's formula and target, then delegate to the domain
    :class:`ConsolidationEngine`.

Layer:
    application

Notes:
    - Read-only; results are recomputed on every call and are never stored.
    - A scope without validated rows yields an empty list.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from esg_pilotage.application.uow import UnitOfWork, repository
from esg_pilotage.application.use_cases.common import (
    load_registry,
    require_indicator,
    require_organization,
    resolve_anchor,
)
from esg_pilotage.domain.entities.consolidation import ConsolidatedIndicator
from esg_pilotage.domain.entities.indicator_value import IndicatorValue
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.entities.taxonomy import Indicator
from esg_pilotage.domain.enums.pilotage import ElementType, ValueStatus
from esg_pilotage.domain.interfaces.repositories.assignment_repository import (
    AssignmentRepository,
)
from esg_pilotage.domain.interfaces.repositories.indicator_value_repository import (
    IndicatorValueRepository,
)
from esg_pilotage.domain.interfaces.repositories.taxonomy_repository import (
    TaxonomyRepository,
)
from esg_pilotage.domain.services.consolidation_engine import ConsolidationEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsolidateIndicatorRequest:
    """One indicator to consolidate.

    Attributes:
        organization_name: Organization to consolidate.
        indicator_code: Indicator to consolidate.
        year: Reporting year.
        scope: Hierarchy scope; the empty scope is the organization.
        month: Restrict the figure to one month when set.
    """

    organization_name: str
    indicator_code: str
    year: int
    scope: ConsolidationScope = field(default_factory=ConsolidationScope)
    month: int | None = None


@dataclass(frozen=True)
class ListConsolidatedIndicatorsRequest:
    """Every indicator of an organization to consolidate."""

    organization_name: str
    year: int
    scope: ConsolidationScope = field(default_factory=ConsolidationScope)
    month: int | None = None


async def _validated_rows(
    tx: UnitOfWork,
    organization_name: str,
    year: int,
    scope: ConsolidationScope,
    indicator_codes: Sequence[str] | None,
) -> Sequence[IndicatorValue]:
    return await repository(tx, IndicatorValueRepository).list_for_period(
        organization_name,
        year=year,
        scope=scope,
        statuses=[ValueStatus.VALIDATED],
        indicator_codes=indicator_codes,
    )


async def _consolidate(
    tx: UnitOfWork,
    engine: ConsolidationEngine,
    indicator: Indicator,
    *,
    organization_name: str,
    year: int,
    scope: ConsolidationScope,
    month: int | None,
    rows: Sequence[IndicatorValue],
    previous_rows: Sequence[IndicatorValue],
) -> list[ConsolidatedIndicator]:
    target = await repository(tx, TaxonomyRepository).get_target(
        organization_name, indicator.code, year
    )
    return engine.consolidate(
        rows,
        organization_name=organization_name,
        scope=scope,
        indicator_code=indicator.code,
        year=year,
        formula=indicator.formula,
        target=target.target_value if target is not None else None,
        previous_rows=previous_rows,
        month=month,
    )


class ConsolidateIndicatorUseCase:
    """Consolidate one indicator within a scope.

    Raises:
        NotFound: If the organization, indicator or scope node is unknown.
        IncompleteHierarchy: If the scope node's ancestry is inconsistent.
    """

    def __init__(self, uow: UnitOfWork, engine: ConsolidationEngine | None = None) -> None:
        self._uow = uow
        self._engine = engine or ConsolidationEngine()

    async def execute(self, req: ConsolidateIndicatorRequest) -> list[ConsolidatedIndicator]:
        async with self._uow as tx:
            await require_organization(tx, req.organization_name)
            resolve_anchor(await load_registry(tx, req.organization_name), req.scope)
            indicator = await require_indicator(tx, req.indicator_code)

            codes = [indicator.code]
            rows = await _validated_rows(tx, req.organization_name, req.year, req.scope, codes)
            previous = await _validated_rows(
                tx, req.organization_name, req.year - 1, req.scope, codes
            )
            results = await _consolidate(
                tx,
                self._engine,
                indicator,
                organization_name=req.organization_name,
                year=req.year,
                scope=req.scope,
                month=req.month,
                rows=rows,
                previous_rows=previous,
            )

        logger.info(
            "consolidation.indicator.success",
            extra={
                "organization": req.organization_name,
                "indicator_code": req.indicator_code,
                "year": req.year,
                "month": req.month,
                "scope_level": req.scope.level.value,
                "rows": len(rows),
                "results": len(results),
            },
        )
        return results


class ListConsolidatedIndicatorsUseCase:
    """Consolidate every indicator the organization collects.

    The indicator set is the organization's indicator assignment plus the
    indicators of the processes it owns.

    Raises:
        NotFound: If the organization or scope node is unknown.
        IncompleteHierarchy: If the scope node's ancestry is inconsistent.
    """

    def __init__(self, uow: UnitOfWork, engine: ConsolidationEngine | None = None) -> None:
        self._uow = uow
        self._engine = engine or ConsolidationEngine()

    async def execute(self, req: ListConsolidatedIndicatorsRequest) -> list[ConsolidatedIndicator]:
        async with self._uow as tx:
            await require_organization(tx, req.organization_name)
            resolve_anchor(await load_registry(tx, req.organization_name), req.scope)

            taxonomy = repository(tx, TaxonomyRepository)
            assigned = await repository(tx, AssignmentRepository).get_codes(
                req.organization_name, ElementType.INDICATORS
            )
            codes = set(assigned or ())
            for process in await taxonomy.list_processes(req.organization_name):
                codes.update(process.indicator_codes)
            indicators = await taxonomy.list_indicators(sorted(codes))

            rows = await _validated_rows(tx, req.organization_name, req.year, req.scope, None)
            previous = await _validated_rows(
                tx, req.organization_name, req.year - 1, req.scope, None
            )

            results: list[ConsolidatedIndicator] = []
            for indicator in indicators:
                results.extend(
                    await _consolidate(
                        tx,
                        self._engine,
                        indicator,
                        organization_name=req.organization_name,
                        year=req.year,
                        scope=req.scope,
                        month=req.month,
                        rows=rows,
                        previous_rows=previous,
                    )
                )

        results.sort(key=lambda c: (c.process_code, c.indicator_code))
        logger.info(
            "consolidation.list.success",
            extra={
                "organization": req.organization_name,
                "year": req.year,
                "scope_level": req.scope.level.value,
                "indicators": len(indicators),
                "results": len(results),
            },
        )
        return results
