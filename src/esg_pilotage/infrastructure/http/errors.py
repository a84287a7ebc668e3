# src/esg_pilotage/infrastructure/http/errors.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""HTTP error handlers producing the canonical ``ErrorEnvelope`` payload.

Domain errors carry their own stable ``code``; the status they map to is
decided here, once, for every router.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.responses import Response

from esg_pilotage.domain.exceptions.base import DomainError
from esg_pilotage.domain.exceptions.pilotage import (
    DataStoreError,
    IncompleteHierarchy,
    InvalidAssignment,
    InvalidNumericValue,
    InvalidTransition,
    MissingComment,
    NotFound,
    ProjectionUnavailable,
    TransitionNotPermitted,
)

logger = logging.getLogger(__name__)

DOMAIN_STATUS: dict[type[DomainError], int] = {
    NotFound: 404,
    InvalidTransition: 409,
    TransitionNotPermitted: 403,
    MissingComment: 422,
    InvalidNumericValue: 422,
    IncompleteHierarchy: 422,
    InvalidAssignment: 422,
    ProjectionUnavailable: 503,
    DataStoreError: 503,
}


def status_for(exc: DomainError) -> int:
    """Return the HTTP status for ``exc`` (500 for unmapped domain errors)."""
    for kind, status in DOMAIN_STATUS.items():
        if isinstance(exc, kind):
            return status
    return 500


def _trace_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "trace_id", None)


def error_envelope(
    *,
    code: str,
    http_status: int,
    message: str,
    details: dict[str, Any] | None = None,
    trace_id: str | None = None,
) -> dict[str, Any]:
    err: dict[str, Any] = {
        "code": code,
        "http_status": http_status,
        "message": message,
    }
    if details is not None:
        err["details"] = details
    if trace_id is not None:
        err["trace_id"] = trace_id
    return {"error": err}


async def handle_domain_error(request: Request, exc: DomainError) -> Response:
    status = status_for(exc)
    log = logger.error if status >= 500 else logger.info
    log(
        "http.domain_error",
        extra={"code": exc.code, "http_status": status, "path": request.url.path},
    )
    payload = error_envelope(
        code=exc.code,
        http_status=status,
        message=exc.message,
        details=exc.details,
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=status, content=jsonable(payload))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> Response:
    payload = error_envelope(
        code="VALIDATION_ERROR",
        http_status=422,
        message="Request validation failed",
        details={"errors": exc.errors()},
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=422, content=jsonable(payload))


async def handle_http_exception(request: Request, exc: HTTPException) -> Response:
    payload = error_envelope(
        code="HTTP_ERROR",
        http_status=exc.status_code,
        message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
        details=None if isinstance(exc.detail, str) else {"detail": exc.detail},
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)


async def handle_unhandled_exception(request: Request, exc: Exception) -> Response:
    logger.exception("http.unhandled_error", extra={"path": request.url.path})
    payload = error_envelope(
        code="INTERNAL_ERROR",
        http_status=500,
        message="Internal server error",
        details=None,
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=500, content=payload)


def jsonable(payload: dict[str, Any]) -> Any:
    """Encode details that may hold non-JSON types (UUIDs, Decimals, ctx errors)."""
    return jsonable_encoder(payload, custom_encoder={Exception: str})


def install_exception_handlers(app: FastAPI) -> None:
    """Register the structured handlers on ``app``."""

    async def _domain(request: Request, exc: Exception) -> Response:
        if not isinstance(exc, DomainError):
            raise exc
        return await handle_domain_error(request, exc)

    async def _http(request: Request, exc: Exception) -> Response:
        if not isinstance(exc, HTTPException):
            raise exc
        return await handle_http_exception(request, exc)

    async def _validation(request: Request, exc: Exception) -> Response:
        if not isinstance(exc, RequestValidationError):
            raise exc
        return await handle_validation_error(request, exc)

    app.add_exception_handler(DomainError, _domain)
    app.add_exception_handler(HTTPException, _http)
    app.add_exception_handler(RequestValidationError, _validation)
    app.add_exception_handler(Exception, handle_unhandled_exception)
