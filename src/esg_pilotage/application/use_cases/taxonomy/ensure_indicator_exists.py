# src/esg_pilotage/application/use_cases/taxonomy/ensure_indicator_exists.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Use case: idempotently ensure an indicator reference row exists.

Purpose:
    Resolve a free-text indicator name or code to its normalized code and
    create the indicator when it is missing. Callers referencing an
    indicator by name go through this single operation instead of creating
    placeholder rows themselves.

Layer:
    application

Notes:
    - Normalization: trim, whitespace runs → ``_``, upper-case.
    - An existing indicator is returned unchanged; supplied attributes only
      apply on creation.
    - A concurrent creator of the same code wins; the loser re-reads its row
      and reports ``created=False``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from esg_pilotage.application.uow import UnitOfWork, repository
from esg_pilotage.domain.entities.taxonomy import Indicator
from esg_pilotage.domain.enums.pilotage import Axis, Formula, Frequency, IndicatorType
from esg_pilotage.domain.exceptions.pilotage import InvalidAssignment
from esg_pilotage.domain.interfaces.repositories.taxonomy_repository import (
    TaxonomyRepository,
)
from esg_pilotage.domain.services.taxonomy_codes import normalize_indicator_code

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnsureIndicatorExistsRequest:
    """Indicator reference plus the attributes used if it must be created."""

    name_or_code: str
    name: str | None = None
    unit: str | None = None
    axis: Axis = Axis.ENVIRONMENT
    formula: Formula = Formula.SUM
    frequency: Frequency = Frequency.MONTHLY
    indicator_type: IndicatorType = IndicatorType.PRIMARY
    description: str | None = None


@dataclass(frozen=True)
class EnsuredIndicator:
    """Resolved indicator and whether this call created it."""

    indicator: Indicator
    created: bool


class EnsureIndicatorExistsUseCase:
    """Return the indicator for a name or code, creating it when absent.

    Raises:
        InvalidAssignment: If the reference is blank.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: EnsureIndicatorExistsRequest) -> EnsuredIndicator:
        try:
            code = normalize_indicator_code(req.name_or_code)
        except ValueError as exc:
            raise InvalidAssignment(
                "Indicator reference must not be blank.",
                details={"name_or_code": req.name_or_code},
            ) from exc

        async with self._uow as tx:
            taxonomy = repository(tx, TaxonomyRepository)
            existing = await taxonomy.get_indicator(code)
            if existing is not None:
                return EnsuredIndicator(indicator=existing, created=False)

            indicator = Indicator(
                code=code,
                name=(req.name or req.name_or_code).strip(),
                unit=req.unit,
                axis=req.axis,
                formula=req.formula,
                frequency=req.frequency,
                indicator_type=req.indicator_type,
                description=req.description,
            )
            if not await taxonomy.add_indicator(indicator):
                winner = await taxonomy.get_indicator(code)
                return EnsuredIndicator(indicator=winner or indicator, created=False)
            await tx.commit()

        logger.info(
            "taxonomy.indicator.created",
            extra={"indicator_code": code, "formula": indicator.formula.value},
        )
        return EnsuredIndicator(indicator=indicator, created=True)
