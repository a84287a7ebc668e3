# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Indicator value ledger router (v1).

Purpose:
    Data entry and the validation workflow over the monthly value ledger.

        * GET  /v1/organizations/{organization_name}/values
        * PUT  /v1/organizations/{organization_name}/values
        * POST /v1/values/{value_id}/{transition}
        * POST /v1/organizations/{organization_name}/values/{transition}-all

Layer:
    adapters/routers

Notes:
    Every edit and transition outcome is counted in
    ``esg_pilotage_workflow_transitions_total``; failures are labelled with
    the domain error code and re-raised for the central handler.
"""

from __future__ import annotations

from contextlib import suppress
from typing import Annotated, Any
from uuid import UUID

from fastapi import Body, Depends, Path, Query, Request, Response

from esg_pilotage.adapters.presenters.pilotage_presenter import PilotagePresenter
from esg_pilotage.adapters.routers.base_router import BaseRouter
from esg_pilotage.adapters.schemas.http.envelopes import SuccessEnvelope
from esg_pilotage.adapters.schemas.http.pilotage import (
    BatchResultHTTP,
    BatchTransitionHTTP,
    EnterValueHTTP,
    IndicatorValueHTTP,
    PeriodValuesHTTP,
    TransitionHTTP,
)
from esg_pilotage.application.use_cases.values.batch_transition import (
    BatchTransitionRequest,
    BatchTransitionUseCase,
)
from esg_pilotage.application.use_cases.values.enter_indicator_value import (
    EnterIndicatorValueRequest,
    EnterIndicatorValueUseCase,
)
from esg_pilotage.application.use_cases.values.get_period_values import (
    GetPeriodValuesRequest,
    GetPeriodValuesUseCase,
)
from esg_pilotage.application.use_cases.values.transition_indicator_value import (
    TransitionIndicatorValueRequest,
    TransitionIndicatorValueUseCase,
)
from esg_pilotage.dependencies.pilotage import (
    CurrentActor,
    batch_transition_uc,
    enter_value_uc,
    get_period_values_uc,
    transition_value_uc,
)
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.enums.pilotage import Transition
from esg_pilotage.domain.exceptions.base import DomainError
from esg_pilotage.infrastructure.logging.logger import get_json_logger
from esg_pilotage.infrastructure.observability.metrics import get_workflow_transitions_total

logger = get_json_logger(__name__)

router = BaseRouter(version="v1", resource="organizations", tags=["Values"])
values_router = BaseRouter(version="v1", resource="values", tags=["Values"])
presenter = PilotagePresenter()

OrganizationName = Annotated[str, Path(min_length=1, description="Organization name.")]
EDIT = "edit"


def _count(transition: str, outcome: str, amount: int = 1) -> None:
    if amount <= 0:
        return
    with suppress(Exception):
        get_workflow_transitions_total().labels(transition=transition, outcome=outcome).inc(
            amount
        )


@router.get(
    "/{organization_name}/values",
    response_model=SuccessEnvelope[PeriodValuesHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="List the ledger of a period, including empty slots",
)
async def get_period_values(
    request: Request,
    response: Response,
    organization_name: OrganizationName,
    _actor: CurrentActor,
    uc: Annotated[GetPeriodValuesUseCase, Depends(get_period_values_uc)],
    year: Annotated[int, Query(ge=1900, le=9999)],
    month: Annotated[int, Query(ge=1, le=12)],
    business_line: str | None = None,
    subsidiary: str | None = None,
    site: str | None = None,
    process_codes: Annotated[list[str] | None, Query()] = None,
) -> Any:
    period = await uc.execute(
        GetPeriodValuesRequest(
            organization_name=organization_name,
            year=year,
            month=month,
            scope=ConsolidationScope(
                business_line=business_line, subsidiary=subsidiary, site=site
            ),
            process_codes=process_codes or None,
        )
    )
    result = presenter.period_values(period, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)


@router.put(
    "/{organization_name}/values",
    response_model=SuccessEnvelope[IndicatorValueHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Enter or correct the value of one ledger slot",
)
async def enter_value(
    request: Request,
    response: Response,
    organization_name: OrganizationName,
    body: EnterValueHTTP,
    actor: CurrentActor,
    uc: Annotated[EnterIndicatorValueUseCase, Depends(enter_value_uc)],
) -> Any:
    try:
        saved = await uc.execute(
            EnterIndicatorValueRequest(
                organization_name=organization_name,
                process_code=body.process_code,
                indicator_code=body.indicator_code,
                year=body.year,
                month=body.month,
                raw_value=body.value,
                actor=actor,
                scope=ConsolidationScope(
                    business_line=body.business_line,
                    subsidiary=body.subsidiary,
                    site=body.site,
                ),
                comment=body.comment,
            )
        )
    except DomainError as exc:
        _count(EDIT, exc.code)
        raise
    _count(EDIT, "success")
    result = presenter.value(saved, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)


@values_router.post(
    "/{value_id}/{transition}",
    response_model=SuccessEnvelope[IndicatorValueHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Submit, approve or reject one ledger row",
)
async def transition_value(
    request: Request,
    response: Response,
    value_id: UUID,
    transition: Transition,
    actor: CurrentActor,
    uc: Annotated[TransitionIndicatorValueUseCase, Depends(transition_value_uc)],
    body: Annotated[TransitionHTTP | None, Body()] = None,
) -> Any:
    try:
        moved = await uc.execute(
            TransitionIndicatorValueRequest(
                value_id=value_id,
                transition=transition,
                actor=actor,
                comment=body.comment if body is not None else None,
            )
        )
    except DomainError as exc:
        _count(transition.value, exc.code)
        raise
    _count(transition.value, "success")
    result = presenter.value(moved, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)


@router.post(
    "/{organization_name}/values/{transition}-all",
    response_model=SuccessEnvelope[BatchResultHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Apply one transition to every eligible row of a period",
)
async def batch_transition(
    request: Request,
    response: Response,
    organization_name: OrganizationName,
    transition: Transition,
    body: BatchTransitionHTTP,
    actor: CurrentActor,
    uc: Annotated[BatchTransitionUseCase, Depends(batch_transition_uc)],
) -> Any:
    try:
        batch = await uc.execute(
            BatchTransitionRequest(
                organization_name=organization_name,
                year=body.year,
                month=body.month,
                transition=transition,
                actor=actor,
                comment=body.comment,
                scope=ConsolidationScope(
                    business_line=body.business_line,
                    subsidiary=body.subsidiary,
                    site=body.site,
                ),
                process_codes=body.process_codes or None,
            )
        )
    except DomainError as exc:
        _count(transition.value, exc.code)
        raise
    _count(transition.value, "success", len(batch.transitioned))
    for failure in batch.failed:
        _count(transition.value, failure.code)
    if batch.failed:
        logger.warning(
            "values.batch.partial",
            extra={
                "organization": organization_name,
                "transition": transition.value,
                "failed": len(batch.failed),
            },
        )
    result = presenter.batch_result(batch, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)
