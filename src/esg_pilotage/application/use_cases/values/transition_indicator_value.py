# src/esg_pilotage/application/use_cases/values/transition_indicator_value.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Use case: submit, approve or reject one ledger row.

Layer:
    application
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from esg_pilotage.application.uow import UnitOfWork, repository
from esg_pilotage.application.use_cases.common import utc_now
from esg_pilotage.domain.entities.indicator_value import Actor, IndicatorValue
from esg_pilotage.domain.enums.pilotage import Transition
from esg_pilotage.domain.exceptions.pilotage import NotFound
from esg_pilotage.domain.interfaces.repositories.indicator_value_repository import (
    IndicatorValueRepository,
)
from esg_pilotage.domain.services import workflow_engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionIndicatorValueRequest:
    """Transition to apply to one stored row.

    Attributes:
        value_id: Identifier of the ledger row.
        transition: Submit, approve or reject.
        actor: Caller driving the transition.
        comment: Rationale; mandatory for reject, optional for approve.
    """

    value_id: UUID
    transition: Transition
    actor: Actor
    comment: str | None = None


class TransitionIndicatorValueUseCase:
    """Apply a workflow transition to a single row.

    Raises:
        NotFound: If the row does not exist.
        MissingComment: If a rejection has no comment.
        TransitionNotPermitted: If the caller's role may not apply it.
        InvalidTransition: If the row is not in the required state.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: TransitionIndicatorValueRequest) -> IndicatorValue:
        logger.info(
            f"values.{req.transition.value}.start",
            extra={"value_id": str(req.value_id), "actor": req.actor.email},
        )

        async with self._uow as tx:
            values = repository(tx, IndicatorValueRepository)
            row = await values.get(req.value_id)
            if row is None:
                raise NotFound(
                    f"Unknown indicator value {req.value_id}.",
                    details={"value_id": str(req.value_id)},
                )
            moved = workflow_engine.apply(
                req.transition, row, actor=req.actor, now=utc_now(), comment=req.comment
            )
            saved = await values.update(moved)
            await tx.commit()

        logger.info(
            f"values.{req.transition.value}.success",
            extra={
                "value_id": str(req.value_id),
                "indicator_code": saved.indicator_code,
                "status": saved.status.value,
                "actor": req.actor.email,
            },
        )
        return saved
