# src/esg_pilotage/application/use_cases/taxonomy/set_indicator_target.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Use case: set an organization's yearly target for an indicator.

Layer:
    application
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from esg_pilotage.application.uow import UnitOfWork, repository
from esg_pilotage.application.use_cases.common import require_indicator, require_organization
from esg_pilotage.domain.entities.taxonomy import IndicatorTarget
from esg_pilotage.domain.exceptions.pilotage import InvalidNumericValue
from esg_pilotage.domain.interfaces.repositories.taxonomy_repository import (
    TaxonomyRepository,
)
from esg_pilotage.domain.services.workflow_engine import parse_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetIndicatorTargetRequest:
    organization_name: str
    indicator_code: str
    year: int
    target_value: str | int | float | Decimal


class SetIndicatorTargetUseCase:
    """Insert or replace a target consumed by consolidation.

    Raises:
        NotFound: If the organization or indicator does not exist.
        InvalidNumericValue: If the target is blank or not a finite number.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: SetIndicatorTargetRequest) -> IndicatorTarget:
        target_value = parse_value(req.target_value)
        if target_value is None:
            raise InvalidNumericValue(
                "A target value is required.", details={"indicator_code": req.indicator_code}
            )

        async with self._uow as tx:
            await require_organization(tx, req.organization_name)
            await require_indicator(tx, req.indicator_code)
            target = await repository(tx, TaxonomyRepository).set_target(
                IndicatorTarget(
                    organization_name=req.organization_name,
                    indicator_code=req.indicator_code,
                    year=req.year,
                    target_value=target_value,
                )
            )
            await tx.commit()

        logger.info(
            "taxonomy.target.set",
            extra={
                "organization": req.organization_name,
                "indicator_code": req.indicator_code,
                "year": req.year,
                "target": str(target_value),
            },
        )
        return target
