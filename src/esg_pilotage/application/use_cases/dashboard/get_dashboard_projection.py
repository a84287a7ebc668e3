# src/esg_pilotage/application/use_cases/dashboard/get_dashboard_projection.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Use case: read the dashboard projection with graceful degradation.

Purpose:
    Serve dashboard rows for an organization and year from the best
    available tier:

        1. the materialized projection (``primary``);
        2. the fallback projection (``fallback``);
        3. an ad-hoc consolidation of validated ledger rows (``raw``).

    A refresh of the materialization may be requested first; its failure is
    logged and never blocks the read.

Layer:
    application

Notes:
    - Only backing-store failures (``DataStoreError``) move the read to the
      next tier; an empty result is a valid answer.
    - Each tier runs in its own transaction so a failed tier cannot poison
      the next one.
    - ``ProjectionUnavailable`` is raised only when all three tiers failed.
    - The site filter is checked against the hierarchy before any tier is
      read, so every tier answers an unknown site the same way.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from esg_pilotage.application.uow import UnitOfWork, repository
from esg_pilotage.application.use_cases.common import (
    load_registry,
    require_organization,
    resolve_anchor,
)
from esg_pilotage.application.use_cases.consolidation.consolidate_indicators import (
    ListConsolidatedIndicatorsRequest,
    ListConsolidatedIndicatorsUseCase,
)
from esg_pilotage.domain.entities.consolidation import ConsolidatedIndicator, DashboardRow
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.enums.pilotage import ProjectionTier
from esg_pilotage.domain.exceptions.pilotage import DataStoreError, ProjectionUnavailable
from esg_pilotage.domain.interfaces.repositories.dashboard_projection_repository import (
    DashboardProjectionRepository,
)
from esg_pilotage.domain.interfaces.repositories.taxonomy_repository import (
    TaxonomyRepository,
)
from esg_pilotage.domain.services.dashboard_summary import DashboardSummary, summarize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GetDashboardProjectionRequest:
    """Dashboard read parameters.

    Attributes:
        organization_name: Organization to report on.
        year: Reporting year.
        site_name: Keep rows of this site and organization-wide rows.
        refresh: Refresh the materialization before reading.
    """

    organization_name: str
    year: int
    site_name: str | None = None
    refresh: bool = False


@dataclass(frozen=True)
class DashboardProjection:
    """Rows served, the tier that served them and headline statistics."""

    organization_name: str
    year: int
    tier: ProjectionTier
    rows: tuple[DashboardRow, ...]
    summary: DashboardSummary = field(default_factory=DashboardSummary)
    refresh_failed: bool = False


def _sort_key(row: DashboardRow) -> tuple[str, str]:
    return (row.process_code, row.indicator_code)


class GetDashboardProjectionUseCase:
    """Read the dashboard through the primary → fallback → raw chain.

    Raises:
        NotFound: If the organization or the requested site does not exist.
        IncompleteHierarchy: If the requested site has an inconsistent
            ancestry.
        ProjectionUnavailable: If every tier failed.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: GetDashboardProjectionRequest) -> DashboardProjection:
        async with self._uow as tx:
            await require_organization(tx, req.organization_name)
            if req.site_name is not None:
                registry = await load_registry(tx, req.organization_name)
                resolve_anchor(registry, ConsolidationScope(site=req.site_name))

        refresh_failed = False
        if req.refresh:
            refresh_failed = not await self._refresh(req.organization_name)

        failures: dict[str, str] = {}
        for tier in (ProjectionTier.PRIMARY, ProjectionTier.FALLBACK, ProjectionTier.RAW):
            try:
                rows = await self._read(tier, req)
            except DataStoreError as exc:
                failures[tier.value] = exc.message
                logger.warning(
                    "dashboard.tier.failed",
                    extra={
                        "organization": req.organization_name,
                        "year": req.year,
                        "tier": tier.value,
                        "error": exc.message,
                    },
                )
                continue

            ordered = tuple(sorted(rows, key=_sort_key))
            logger.info(
                "dashboard.read.success",
                extra={
                    "organization": req.organization_name,
                    "year": req.year,
                    "tier": tier.value,
                    "rows": len(ordered),
                    "degraded": tier is not ProjectionTier.PRIMARY,
                },
            )
            return DashboardProjection(
                organization_name=req.organization_name,
                year=req.year,
                tier=tier,
                rows=ordered,
                summary=summarize(ordered),
                refresh_failed=refresh_failed,
            )

        logger.error(
            "dashboard.read.unavailable",
            extra={"organization": req.organization_name, "year": req.year, **failures},
        )
        raise ProjectionUnavailable(
            "No dashboard data is available right now.",
            details={"organization": req.organization_name, "year": req.year, **failures},
        )

    async def _refresh(self, organization_name: str) -> bool:
        try:
            async with self._uow as tx:
                await repository(tx, DashboardProjectionRepository).refresh(organization_name)
                await tx.commit()
        except DataStoreError as exc:
            logger.warning(
                "dashboard.refresh.failed",
                extra={"organization": organization_name, "error": exc.message},
            )
            return False
        logger.info("dashboard.refresh.success", extra={"organization": organization_name})
        return True

    async def _read(
        self, tier: ProjectionTier, req: GetDashboardProjectionRequest
    ) -> Sequence[DashboardRow]:
        if tier is ProjectionTier.RAW:
            return await self._raw_rows(req)
        async with self._uow as tx:
            projection = repository(tx, DashboardProjectionRepository)
            if tier is ProjectionTier.PRIMARY:
                return await projection.fetch_primary(
                    req.organization_name, req.year, req.site_name
                )
            return await projection.fetch_fallback(req.organization_name, req.year, req.site_name)

    async def _raw_rows(self, req: GetDashboardProjectionRequest) -> list[DashboardRow]:
        consolidated = await ListConsolidatedIndicatorsUseCase(self._uow).execute(
            ListConsolidatedIndicatorsRequest(
                organization_name=req.organization_name,
                year=req.year,
                scope=ConsolidationScope(site=req.site_name),
            )
        )
        async with self._uow as tx:
            taxonomy = repository(tx, TaxonomyRepository)
            processes = {p.code: p for p in await taxonomy.list_processes(req.organization_name)}
            indicators = {
                i.code: i
                for i in await taxonomy.list_indicators(
                    sorted({c.indicator_code for c in consolidated})
                )
            }

        rows: list[DashboardRow] = []
        for c in consolidated:
            indicator = indicators.get(c.indicator_code)
            process = processes.get(c.process_code)
            rows.append(
                DashboardRow(
                    organization_name=c.organization_name,
                    process_code=c.process_code,
                    indicator_code=c.indicator_code,
                    year=c.year,
                    process_name=process.name if process else None,
                    indicator_name=indicator.name if indicator else None,
                    axis=indicator.axis if indicator else None,
                    unit=c.unit or (indicator.unit if indicator else None),
                    frequency=indicator.frequency if indicator else None,
                    indicator_type=indicator.indicator_type if indicator else None,
                    formula=c.formula,
                    monthly_values={m: c.monthly_values.get(m) for m in range(1, 13)},
                    target_value=c.target_value,
                    previous_year_value=c.previous_year_value,
                    variation=c.variation,
                    performance=c.performance,
                    average_value=_average(c),
                    site_name=req.site_name,
                )
            )
        return rows


def _average(c: ConsolidatedIndicator) -> Decimal | None:
    if not c.monthly_values:
        return None
    return sum(c.monthly_values.values(), Decimal("0")) / Decimal(len(c.monthly_values))
