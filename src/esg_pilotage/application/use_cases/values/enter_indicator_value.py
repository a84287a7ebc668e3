# src/esg_pilotage/application/use_cases/values/enter_indicator_value.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Use case: enter or correct a monthly indicator value.

Purpose:
    Parse the contributor's input, resolve the hierarchy path it is entered
    at, then insert the ledger row on first write or update it afterwards.
    Either way the row ends in ``draft``.

Layer:
    application

Notes:
    - Input is parsed before any store access; unparsable input never
      reaches the ledger.
    - Concurrent writes to the same row are last-write-wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal

from esg_pilotage.application.uow import UnitOfWork, repository
from esg_pilotage.application.use_cases.common import (
    load_registry,
    require_indicator,
    require_organization,
    require_process_indicator,
    resolve_anchor,
    utc_now,
)
from esg_pilotage.domain.entities.indicator_value import Actor, IndicatorValue, ValueKey
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.interfaces.repositories.indicator_value_repository import (
    IndicatorValueRepository,
)
from esg_pilotage.domain.services import workflow_engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnterIndicatorValueRequest:
    """Value entry for one ledger slot.

    Attributes:
        organization_name: Owning organization.
        process_code: Process the indicator is collected under.
        indicator_code: Indicator code.
        year: Reporting year.
        month: Reporting month (1..12).
        raw_value: Value as typed; blank clears it.
        actor: Caller entering the value.
        scope: Hierarchy node the value is entered at.
        comment: Optional contributor comment; ``None`` keeps the current one.
    """

    organization_name: str
    process_code: str
    indicator_code: str
    year: int
    month: int
    raw_value: str | int | float | Decimal | None
    actor: Actor
    scope: ConsolidationScope = field(default_factory=ConsolidationScope)
    comment: str | None = None


class EnterIndicatorValueUseCase:
    """Insert or update a ledger row with a new value.

    Raises:
        InvalidNumericValue: If the value does not parse as a finite number.
        NotFound: If the organization, indicator, process link or anchor
            node is unknown.
        IncompleteHierarchy: If the anchor's ancestry is inconsistent.
        TransitionNotPermitted: If the caller may not edit values.
        InvalidTransition: If the stored row is submitted or validated.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: EnterIndicatorValueRequest) -> IndicatorValue:
        value = workflow_engine.parse_value(req.raw_value)

        async with self._uow as tx:
            await require_organization(tx, req.organization_name)
            indicator = await require_indicator(tx, req.indicator_code)
            await require_process_indicator(
                tx, req.organization_name, req.process_code, req.indicator_code
            )
            path = resolve_anchor(await load_registry(tx, req.organization_name), req.scope)

            key = ValueKey(
                organization_name=req.organization_name,
                process_code=req.process_code,
                indicator_code=req.indicator_code,
                year=req.year,
                month=req.month,
                business_line_name=path.business_line,
                subsidiary_name=path.subsidiary,
                site_name=path.site,
            )
            values = repository(tx, IndicatorValueRepository)
            current = await values.find(key)
            row = current if current is not None else IndicatorValue.slot(key, unit=indicator.unit)

            edited = workflow_engine.edit(row, value, actor=req.actor, now=utc_now())
            if req.comment is not None:
                edited = replace(edited, comment=req.comment.strip() or None)

            if current is not None:
                saved = await values.update(edited)
            else:
                saved = await values.insert(edited)
            await tx.commit()

        logger.info(
            "values.enter.success",
            extra={
                "organization": req.organization_name,
                "indicator_code": req.indicator_code,
                "process_code": req.process_code,
                "year": req.year,
                "month": req.month,
                "site": path.site,
                "inserted": current is None,
                "actor": req.actor.email,
            },
        )
        return saved
