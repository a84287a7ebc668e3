# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Indicator catalogue and target router (v1).

Purpose:
    * POST /v1/indicators/ensure
    * PUT  /v1/organizations/{organization_name}/targets/{indicator_code}/{year}

    Both endpoints require the admin role.

Layer:
    adapters/routers
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, Path, Request, Response

from esg_pilotage.adapters.presenters.pilotage_presenter import PilotagePresenter
from esg_pilotage.adapters.routers.base_router import BaseRouter
from esg_pilotage.adapters.schemas.http.envelopes import SuccessEnvelope
from esg_pilotage.adapters.schemas.http.pilotage import (
    EnsuredIndicatorHTTP,
    EnsureIndicatorHTTP,
    TargetHTTP,
    TargetWriteHTTP,
)
from esg_pilotage.application.use_cases.taxonomy.ensure_indicator_exists import (
    EnsureIndicatorExistsRequest,
    EnsureIndicatorExistsUseCase,
)
from esg_pilotage.application.use_cases.taxonomy.set_indicator_target import (
    SetIndicatorTargetRequest,
    SetIndicatorTargetUseCase,
)
from esg_pilotage.dependencies.pilotage import AdminActor, ensure_indicator_uc, set_target_uc
from esg_pilotage.domain.enums.pilotage import Axis, Formula, Frequency, IndicatorType

router = BaseRouter(version="v1", resource="indicators", tags=["Indicators"])
targets_router = BaseRouter(version="v1", resource="organizations", tags=["Indicators"])
presenter = PilotagePresenter()


@router.post(
    "/ensure",
    response_model=SuccessEnvelope[EnsuredIndicatorHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Resolve an indicator by name or code, creating it when absent",
)
async def ensure_indicator(
    request: Request,
    response: Response,
    body: EnsureIndicatorHTTP,
    _admin: AdminActor,
    uc: Annotated[EnsureIndicatorExistsUseCase, Depends(ensure_indicator_uc)],
) -> Any:
    ensured = await uc.execute(
        EnsureIndicatorExistsRequest(
            name_or_code=body.name_or_code,
            name=body.name,
            unit=body.unit,
            axis=Axis(body.axis),
            formula=Formula(body.formula),
            frequency=Frequency(body.frequency),
            indicator_type=IndicatorType(body.indicator_type),
            description=body.description,
        )
    )
    result = presenter.ensured_indicator(ensured, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)


@targets_router.put(
    "/{organization_name}/targets/{indicator_code}/{year}",
    response_model=SuccessEnvelope[TargetHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Set the yearly target of an indicator for an organization",
)
async def set_target(
    request: Request,
    response: Response,
    organization_name: Annotated[str, Path(min_length=1)],
    indicator_code: Annotated[str, Path(min_length=1)],
    year: Annotated[int, Path(ge=1900, le=9999)],
    body: TargetWriteHTTP,
    _admin: AdminActor,
    uc: Annotated[SetIndicatorTargetUseCase, Depends(set_target_uc)],
) -> Any:
    target = await uc.execute(
        SetIndicatorTargetRequest(
            organization_name=organization_name,
            indicator_code=indicator_code,
            year=year,
            target_value=body.target_value,
        )
    )
    result = presenter.target(target, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)
