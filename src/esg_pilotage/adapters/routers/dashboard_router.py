# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Dashboard router (v1).

Purpose:
    * GET /v1/organizations/{organization_name}/dashboard

    Serves the yearly performance projection through the primary, fallback
    and raw tiers in order. ``degraded`` is true when the primary
    projection did not serve the rows.

Layer:
    adapters/routers
"""

from __future__ import annotations

from contextlib import suppress
from typing import Annotated, Any

from fastapi import Depends, Path, Query, Request, Response

from esg_pilotage.adapters.presenters.pilotage_presenter import PilotagePresenter
from esg_pilotage.adapters.routers.base_router import BaseRouter
from esg_pilotage.adapters.schemas.http.envelopes import SuccessEnvelope
from esg_pilotage.adapters.schemas.http.pilotage import DashboardHTTP
from esg_pilotage.application.use_cases.dashboard.get_dashboard_projection import (
    GetDashboardProjectionRequest,
    GetDashboardProjectionUseCase,
)
from esg_pilotage.config.settings import get_settings
from esg_pilotage.dependencies.pilotage import CurrentActor, dashboard_uc
from esg_pilotage.domain.exceptions.pilotage import ProjectionUnavailable
from esg_pilotage.infrastructure.observability.metrics import get_dashboard_reads_total

router = BaseRouter(version="v1", resource="organizations", tags=["Dashboard"])
presenter = PilotagePresenter()


def _count(tier: str) -> None:
    with suppress(Exception):
        get_dashboard_reads_total().labels(tier=tier).inc()


@router.get(
    "/{organization_name}/dashboard",
    response_model=SuccessEnvelope[DashboardHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Read the yearly performance dashboard of an organization",
)
async def get_dashboard(
    request: Request,
    response: Response,
    organization_name: Annotated[str, Path(min_length=1)],
    _actor: CurrentActor,
    uc: Annotated[GetDashboardProjectionUseCase, Depends(dashboard_uc)],
    year: Annotated[int, Query(ge=1900, le=9999)],
    site: str | None = None,
    refresh: Annotated[
        bool | None,
        Query(description="Refresh the materialization first; defaults to the service setting."),
    ] = None,
) -> Any:
    if refresh is None:
        refresh = get_settings().dashboard_refresh_on_read
    try:
        projection = await uc.execute(
            GetDashboardProjectionRequest(
                organization_name=organization_name,
                year=year,
                site_name=site,
                refresh=refresh,
            )
        )
    except ProjectionUnavailable:
        _count("unavailable")
        raise
    _count(projection.tier.value)
    result = presenter.dashboard(projection, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)
