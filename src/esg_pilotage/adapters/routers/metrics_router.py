# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Prometheus scrape endpoint (`/metrics`).

The pilotage collectors are created lazily; touching them here makes their
series visible on the very first scrape instead of after the first
transition or dashboard read.

Layer:
    adapters/routers
"""

from __future__ import annotations

from contextlib import suppress

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from esg_pilotage.infrastructure.observability.metrics import (
    get_dashboard_reads_total,
    get_db_errors_total,
    get_db_operation_duration_seconds,
    get_workflow_transitions_total,
)

router = APIRouter()


def _warm_collectors() -> None:
    for getter in (
        get_workflow_transitions_total,
        get_dashboard_reads_total,
        get_db_operation_duration_seconds,
        get_db_errors_total,
    ):
        with suppress(Exception):
            getter()


@router.get("/metrics", include_in_schema=False)
async def metrics_probe() -> Response:
    """Expose Prometheus metrics in the text exposition format."""
    _warm_collectors()
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
