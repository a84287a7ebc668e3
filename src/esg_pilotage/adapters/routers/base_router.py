# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""
Base Router (Adapters Layer)

Purpose:
    Provide a canonical APIRouter wrapper and shared utilities for pilotage
    HTTP endpoints:
      - Versioned routing with stable prefixes (e.g., "/v1/organizations").
      - Standard error response mapping using ErrorEnvelope.
      - A helper emitting presenter results with their headers (ETag).

Layer:
    adapters/routers
"""

from __future__ import annotations

from collections.abc import MutableMapping, Sequence
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from fastapi import APIRouter, Request

from esg_pilotage.adapters.presenters.base_presenter import PresentResult
from esg_pilotage.adapters.schemas.http.envelopes import ErrorEnvelope
from esg_pilotage.infrastructure.logging.logger import get_json_logger

_LOGGER = get_json_logger(__name__)

TagType = str | Enum


@runtime_checkable
class _ResponseLike(Protocol):
    """Duck-typed response that supports header updates (e.g., FastAPI Response)."""

    headers: MutableMapping[str, str]
    status_code: int


class BaseRouter(APIRouter):
    """Canonical router wrapper for pilotage HTTP endpoints.

    Args:
        version: API version segment (e.g., "v1").
        resource: Plural resource segment (e.g., "organizations").
        prefix: Optional explicit prefix (overrides version/resource).
        tags: Default tags applied to all routes mounted on this router.
        dependencies: Optional global dependencies for all routes.
        **kwargs: Additional APIRouter kwargs.
    """

    def __init__(
        self,
        *,
        version: str,
        resource: str,
        prefix: str | None = None,
        tags: Sequence[TagType] | None = None,
        dependencies: Sequence[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        computed_prefix = prefix if prefix is not None else f"/{version}/{resource}"
        super().__init__(
            prefix=computed_prefix,
            tags=list(tags) if tags is not None else None,
            dependencies=list(dependencies) if dependencies is not None else None,
            **kwargs,
        )
        _LOGGER.debug(
            "router_initialized",
            extra={"prefix": computed_prefix, "tags": [str(t) for t in tags or []]},
        )

    @staticmethod
    def trace_id(request: Request) -> str | None:
        """Return the correlation id stored by the trace middleware, if any."""
        return getattr(request.state, "trace_id", None)

    @staticmethod
    def send_success(response: _ResponseLike, result: PresentResult[Any]) -> Any:
        """Apply presenter headers and status to ``response`` and return the body."""
        response.headers.update(dict(result.headers))
        if result.status_code is not None:
            response.status_code = result.status_code
        return result.body

    @staticmethod
    def std_error_responses() -> dict[int | str, dict[str, Any]]:
        """Return the canonical error response mapping for endpoints.

        Use in routes via:

            responses=BaseRouter.std_error_responses()
        """
        return {
            401: {"model": ErrorEnvelope, "description": "Missing or unknown actor."},
            403: {"model": ErrorEnvelope, "description": "Role may not perform the transition."},
            404: {"model": ErrorEnvelope, "description": "Not found."},
            409: {"model": ErrorEnvelope, "description": "Invalid workflow transition."},
            422: {"model": ErrorEnvelope, "description": "Unprocessable content."},
            500: {"model": ErrorEnvelope, "description": "Internal server error."},
            503: {"model": ErrorEnvelope, "description": "Data store or projection unavailable."},
        }
