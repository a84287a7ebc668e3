# src/esg_pilotage/application/use_cases/values/get_period_values.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Use case: list the ledger rows of a period, with empty slots.

Purpose:
    Return one row per (process, indicator) the organization collects for a
    month, anchored at the requested hierarchy node. Stored rows are merged
    in; missing ones appear as unsaved draft slots (``id is None``). Nothing
    is written: a slot only becomes a row on first entry.

Layer:
    application

Notes:
    - ``process_codes`` narrows the listing to the processes a contributor
      works on; it is a request parameter, not stored state.
    - Rows stored below the anchor (for example every site of a business
      line) are returned as well.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from esg_pilotage.application.uow import UnitOfWork, repository
from esg_pilotage.application.use_cases.common import (
    load_registry,
    require_organization,
    resolve_anchor,
)
from esg_pilotage.domain.entities.indicator_value import IndicatorValue, ValueKey
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.enums.pilotage import ValueStatus
from esg_pilotage.domain.interfaces.repositories.indicator_value_repository import (
    IndicatorValueRepository,
)
from esg_pilotage.domain.interfaces.repositories.taxonomy_repository import (
    TaxonomyRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GetPeriodValuesRequest:
    """Period and anchor to list.

    Attributes:
        organization_name: Organization whose ledger is read.
        year: Reporting year.
        month: Reporting month (1..12).
        scope: Hierarchy anchor; the empty scope is the organization.
        process_codes: Optional subset of processes to list.
    """

    organization_name: str
    year: int
    month: int
    scope: ConsolidationScope = field(default_factory=ConsolidationScope)
    process_codes: Sequence[str] | None = None


@dataclass(frozen=True)
class StatusCounts:
    """Row counts per workflow state; slots count as drafts."""

    total: int = 0
    empty: int = 0
    draft: int = 0
    submitted: int = 0
    validated: int = 0
    rejected: int = 0


@dataclass(frozen=True)
class PeriodValues:
    """Rows and slots of one period with their status counts."""

    values: tuple[IndicatorValue, ...]
    counts: StatusCounts


def count_statuses(values: Sequence[IndicatorValue]) -> StatusCounts:
    """Tally ``values`` by workflow state."""
    by_status = {s: 0 for s in ValueStatus}
    for v in values:
        by_status[v.status] += 1
    return StatusCounts(
        total=len(values),
        empty=sum(1 for v in values if v.value is None),
        draft=by_status[ValueStatus.DRAFT],
        submitted=by_status[ValueStatus.SUBMITTED],
        validated=by_status[ValueStatus.VALIDATED],
        rejected=by_status[ValueStatus.REJECTED],
    )


def _sort_key(v: IndicatorValue) -> tuple[str, str, str, str, str]:
    return (
        v.process_code,
        v.indicator_code,
        v.business_line_name or "",
        v.subsidiary_name or "",
        v.site_name or "",
    )


class GetPeriodValuesUseCase:
    """List a period's ledger rows merged with empty slots.

    Raises:
        NotFound: If the organization or the anchor node does not exist.
        IncompleteHierarchy: If the anchor's ancestry is inconsistent.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: GetPeriodValuesRequest) -> PeriodValues:
        wanted = set(req.process_codes) if req.process_codes is not None else None

        async with self._uow as tx:
            await require_organization(tx, req.organization_name)
            anchor = resolve_anchor(await load_registry(tx, req.organization_name), req.scope)

            taxonomy = repository(tx, TaxonomyRepository)
            processes = [
                p
                for p in await taxonomy.list_processes(req.organization_name)
                if wanted is None or p.code in wanted
            ]
            indicator_codes = sorted({c for p in processes for c in p.indicator_codes})
            units = {i.code: i.unit for i in await taxonomy.list_indicators(indicator_codes)}

            stored = await repository(tx, IndicatorValueRepository).list_for_period(
                req.organization_name,
                year=req.year,
                month=req.month,
                scope=req.scope,
                process_codes=[p.code for p in processes],
            )

        by_key = {row.key: row for row in stored}
        merged: list[IndicatorValue] = list(stored)
        for process in processes:
            for indicator_code in process.indicator_codes:
                key = ValueKey(
                    organization_name=req.organization_name,
                    process_code=process.code,
                    indicator_code=indicator_code,
                    year=req.year,
                    month=req.month,
                    business_line_name=anchor.business_line,
                    subsidiary_name=anchor.subsidiary,
                    site_name=anchor.site,
                )
                if key not in by_key:
                    merged.append(IndicatorValue.slot(key, unit=units.get(indicator_code)))

        merged.sort(key=_sort_key)
        counts = count_statuses(merged)
        logger.info(
            "values.period.list",
            extra={
                "organization": req.organization_name,
                "year": req.year,
                "month": req.month,
                "stored": len(stored),
                "slots": len(merged) - len(stored),
            },
        )
        return PeriodValues(values=tuple(merged), counts=counts)
