# src/esg_pilotage/adapters/routers/api_router.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""API Router Aggregator (Adapters Layer).

Purpose:
    Compose and expose the top-level `router` that includes all feature routers.
    This is the canonical place to register resource-specific routers into the app.

Responsibilities:
    • Mount liveness and readiness at `/healthz` and `/readyz`.
    • Mount assignment, target, ledger, consolidation and dashboard endpoints
      under `/v1/organizations/...`.
    • Mount the indicator catalogue under `/v1/indicators/...` and single-row
      transitions under `/v1/values/...`.
    • Mount the Prometheus scrape endpoint at `/metrics`.

Layer:
    adapters/routers
"""

from __future__ import annotations

from fastapi import APIRouter

from esg_pilotage.adapters.routers.assignments_router import router as assignments_router
from esg_pilotage.adapters.routers.consolidation_router import (
    router as consolidation_router,
)
from esg_pilotage.adapters.routers.dashboard_router import router as dashboard_router
from esg_pilotage.adapters.routers.health_router import router as health_router
from esg_pilotage.adapters.routers.metrics_router import router as metrics_router
from esg_pilotage.adapters.routers.taxonomy_router import router as indicators_router
from esg_pilotage.adapters.routers.taxonomy_router import targets_router
from esg_pilotage.adapters.routers.values_router import router as ledger_router
from esg_pilotage.adapters.routers.values_router import values_router

router = APIRouter()

router.include_router(health_router)
router.include_router(metrics_router)

# BaseRouter instances already carry their /v1/... prefixes.
router.include_router(assignments_router)
router.include_router(indicators_router)
router.include_router(targets_router)
router.include_router(ledger_router)
router.include_router(values_router)
router.include_router(consolidation_router)
router.include_router(dashboard_router)
