# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Health endpoints (Adapters Layer).

Purpose:
    Expose liveness and readiness signals for container orchestrators.

Design:
    * No direct database imports: the readiness probe is injected, so tests
      override :func:`get_health_probe` with a stub.
    * ``/healthz`` never performs I/O; ``/readyz`` answers 503 when the
      database probe fails.
"""

from __future__ import annotations

import time
import typing as t
from typing import Annotated, Protocol

from fastapi import APIRouter, Depends, Response, status
from pydantic import Field

from esg_pilotage.adapters.schemas.http.base import BaseHTTPSchema
from esg_pilotage.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)
router = APIRouter(tags=["Health"])


class LivenessResponse(BaseHTTPSchema):
    """Liveness response indicating the process is running."""

    status: t.Literal["ok"] = "ok"


class CheckResult(BaseHTTPSchema):
    """Result of a single dependency check."""

    name: str = Field(..., examples=["db"])
    status: t.Literal["ok", "down"]
    detail: str | None = None
    duration_ms: float


class ReadinessResponse(BaseHTTPSchema):
    status: t.Literal["ok", "degraded"]
    checks: list[CheckResult] = Field(default_factory=list)


class HealthProbe(Protocol):
    """Non-destructive dependency check returning ``(is_ok, detail)``."""

    async def db(self) -> tuple[bool, str | None]: ...


class NoopProbe:
    """Probe used until the application wires a real one; always fails."""

    async def db(self) -> tuple[bool, str | None]:
        return False, "no db probe configured"


def get_health_probe() -> HealthProbe:
    """Return the default health probe (overridden by the app factory)."""
    return NoopProbe()


@router.get(
    "/healthz",
    summary="Liveness",
    operation_id="health_liveness",
    response_model=LivenessResponse,
    status_code=status.HTTP_200_OK,
)
async def liveness() -> LivenessResponse:
    """Return a fast liveness signal (no external I/O)."""
    return LivenessResponse()


@router.get(
    "/readyz",
    summary="Readiness",
    operation_id="health_readiness",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness(
    response: Response,
    probe: Annotated[HealthProbe, Depends(get_health_probe)],
) -> ReadinessResponse:
    start = time.perf_counter()
    ok, detail = await probe.db()
    check = CheckResult(
        name="db",
        status="ok" if ok else "down",
        detail=detail,
        duration_ms=(time.perf_counter() - start) * 1000.0,
    )
    if not ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("health.readiness.degraded", extra={"check": "db", "detail": detail})
    return ReadinessResponse(status="ok" if ok else "degraded", checks=[check])
