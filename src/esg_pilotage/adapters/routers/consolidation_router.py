# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Consolidation router (v1).

Purpose:
    * GET /v1/organizations/{organization_name}/consolidation

    Aggregates validated ledger rows over a hierarchy scope with each
    indicator's formula. With ``indicator_code`` the response holds the
    figures of that indicator only; without it, every indicator assigned to
    the organization.

Layer:
    adapters/routers
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, Path, Query, Request, Response

from esg_pilotage.adapters.presenters.pilotage_presenter import PilotagePresenter
from esg_pilotage.adapters.routers.base_router import BaseRouter
from esg_pilotage.adapters.schemas.http.envelopes import SuccessEnvelope
from esg_pilotage.adapters.schemas.http.pilotage import ConsolidatedIndicatorHTTP
from esg_pilotage.application.use_cases.consolidation.consolidate_indicators import (
    ConsolidateIndicatorRequest,
    ConsolidateIndicatorUseCase,
    ListConsolidatedIndicatorsRequest,
    ListConsolidatedIndicatorsUseCase,
)
from esg_pilotage.dependencies.pilotage import (
    CurrentActor,
    consolidate_indicator_uc,
    list_consolidated_uc,
)
from esg_pilotage.domain.entities.organization import ConsolidationScope

router = BaseRouter(version="v1", resource="organizations", tags=["Consolidation"])
presenter = PilotagePresenter()


@router.get(
    "/{organization_name}/consolidation",
    response_model=SuccessEnvelope[list[ConsolidatedIndicatorHTTP]],
    responses=BaseRouter.std_error_responses(),
    summary="Consolidate validated values over a hierarchy scope",
)
async def get_consolidation(
    request: Request,
    response: Response,
    organization_name: Annotated[str, Path(min_length=1)],
    _actor: CurrentActor,
    single: Annotated[ConsolidateIndicatorUseCase, Depends(consolidate_indicator_uc)],
    many: Annotated[ListConsolidatedIndicatorsUseCase, Depends(list_consolidated_uc)],
    year: Annotated[int, Query(ge=1900, le=9999)],
    indicator_code: str | None = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    business_line: str | None = None,
    subsidiary: str | None = None,
    site: str | None = None,
) -> Any:
    scope = ConsolidationScope(business_line=business_line, subsidiary=subsidiary, site=site)
    if indicator_code:
        items = await single.execute(
            ConsolidateIndicatorRequest(
                organization_name=organization_name,
                indicator_code=indicator_code,
                year=year,
                scope=scope,
                month=month,
            )
        )
    else:
        items = await many.execute(
            ListConsolidatedIndicatorsRequest(
                organization_name=organization_name, year=year, scope=scope, month=month
            )
        )
    result = presenter.consolidation(items, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)
