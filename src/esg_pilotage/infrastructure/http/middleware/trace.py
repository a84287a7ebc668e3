# src/esg_pilotage/infrastructure/http/middleware/trace.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Trace ID Middleware.

Summary:
    Guarantees every request carries a correlation identifier, exposed as
    the ``x-trace-id`` header, on ``request.state.trace_id`` and in the
    structured log context. An inbound ``x-trace-id`` is reused when sane;
    otherwise a new UUIDv4 is generated.

Layer:
    infrastructure/http/middleware
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from esg_pilotage.infrastructure.logging.logger import set_request_context

TRACE_HEADER = "x-trace-id"

_MAX_TRACE_LEN = 128


def _sanitize_inbound_trace(raw: str | None) -> str | None:
    """Return the trimmed inbound value, or ``None`` when empty or oversized."""
    if raw is None:
        return None
    value = raw.strip()
    if not value or len(value) > _MAX_TRACE_LEN:
        return None
    return value


class TraceIdMiddleware(BaseHTTPMiddleware):
    """Attach and echo a correlation id for every request."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        trace_id = _sanitize_inbound_trace(request.headers.get(TRACE_HEADER)) or str(uuid.uuid4())

        request.state.trace_id = trace_id
        set_request_context(trace_id=trace_id)
        try:
            response = await call_next(request)
        finally:
            set_request_context(trace_id=None)

        if TRACE_HEADER not in response.headers:
            response.headers[TRACE_HEADER] = trace_id
        return response


__all__ = ["TRACE_HEADER", "TraceIdMiddleware"]
