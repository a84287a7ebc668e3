# src/esg_pilotage/application/use_cases/values/batch_transition.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Use case: apply one transition to every eligible row of a period.

Purpose:
    Submit all filled drafts, or approve/reject all submitted rows, of an
    organization's period.

Layer:
    application

Notes:
    - Eligibility is decided per row by the workflow engine; ineligible rows
      are left untouched and counted as skipped.
    - Each eligible row is transitioned in its own transaction. A failing
      row is recorded and the batch moves on, so a partial failure leaves
      some rows transitioned and others not.
    - Role and mandatory-comment checks run once, before any row changes.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from uuid import UUID

from esg_pilotage.application.uow import UnitOfWork, repository
from esg_pilotage.application.use_cases.common import require_organization, utc_now
from esg_pilotage.domain.entities.indicator_value import Actor, IndicatorValue
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.enums.pilotage import Transition
from esg_pilotage.domain.exceptions.base import DomainError
from esg_pilotage.domain.exceptions.pilotage import MissingComment, NotFound
from esg_pilotage.domain.interfaces.repositories.indicator_value_repository import (
    IndicatorValueRepository,
)
from esg_pilotage.domain.services import workflow_engine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchTransitionRequest:
    """Transition to apply across a period.

    Attributes:
        organization_name: Organization whose ledger is updated.
        year: Reporting year.
        month: Reporting month, or ``None`` for the whole year.
        transition: Submit, approve or reject.
        actor: Caller driving the transition.
        comment: Rationale; mandatory for reject.
        scope: Hierarchy scope; the empty scope is the organization.
        process_codes: Optional subset of processes.
    """

    organization_name: str
    year: int
    month: int | None
    transition: Transition
    actor: Actor
    comment: str | None = None
    scope: ConsolidationScope = field(default_factory=ConsolidationScope)
    process_codes: Sequence[str] | None = None


@dataclass(frozen=True)
class BatchFailure:
    """A row whose transition failed."""

    value_id: UUID | None
    code: str
    message: str


@dataclass(frozen=True)
class BatchResult:
    """Outcome of a batch transition."""

    transition: Transition
    transitioned: tuple[IndicatorValue, ...] = ()
    skipped: int = 0
    failed: tuple[BatchFailure, ...] = ()


class BatchTransitionUseCase:
    """Transition every eligible row of a period.

    Raises:
        NotFound: If the organization does not exist.
        MissingComment: If a batch rejection has no comment.
        TransitionNotPermitted: If the caller's role may not apply it.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: BatchTransitionRequest) -> BatchResult:
        if req.transition is Transition.REJECT and not (req.comment and req.comment.strip()):
            raise MissingComment(
                "A comment is required to reject values.",
                details={"organization": req.organization_name},
            )
        workflow_engine.ensure_permitted(req.actor, req.transition)

        async with self._uow as tx:
            await require_organization(tx, req.organization_name)
            rows = await repository(tx, IndicatorValueRepository).list_for_period(
                req.organization_name,
                year=req.year,
                month=req.month,
                scope=req.scope,
                process_codes=req.process_codes,
            )

        eligible = [r for r in rows if workflow_engine.can_apply(req.transition, r)]
        logger.info(
            f"values.batch_{req.transition.value}.start",
            extra={
                "organization": req.organization_name,
                "year": req.year,
                "month": req.month,
                "eligible": len(eligible),
                "skipped": len(rows) - len(eligible),
                "actor": req.actor.email,
            },
        )

        transitioned: list[IndicatorValue] = []
        failed: list[BatchFailure] = []
        for row in eligible:
            try:
                transitioned.append(await self._transition_one(row, req))
            except DomainError as exc:
                logger.warning(
                    f"values.batch_{req.transition.value}.row_failed",
                    extra={"value_id": str(row.id), "code": exc.code, "error": exc.message},
                )
                failed.append(BatchFailure(value_id=row.id, code=exc.code, message=exc.message))

        logger.info(
            f"values.batch_{req.transition.value}.success",
            extra={
                "organization": req.organization_name,
                "transitioned": len(transitioned),
                "failed": len(failed),
            },
        )
        return BatchResult(
            transition=req.transition,
            transitioned=tuple(transitioned),
            skipped=len(rows) - len(eligible),
            failed=tuple(failed),
        )

    async def _transition_one(
        self, row: IndicatorValue, req: BatchTransitionRequest
    ) -> IndicatorValue:
        if row.id is None:
            raise NotFound("Unsaved rows cannot be transitioned.")
        async with self._uow as tx:
            values = repository(tx, IndicatorValueRepository)
            current = await values.get(row.id)
            if current is None:
                raise NotFound(
                    f"Unknown indicator value {row.id}.", details={"value_id": str(row.id)}
                )
            moved = workflow_engine.apply(
                req.transition, current, actor=req.actor, now=utc_now(), comment=req.comment
            )
            saved = await values.update(moved)
            await tx.commit()
        return saved
