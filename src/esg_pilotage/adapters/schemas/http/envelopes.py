# src/esg_pilotage/adapters/schemas/http/envelopes.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""HTTP Envelopes (Adapters Layer).

Purpose:
    Canonical transport-facing HTTP envelopes:
      - ErrorEnvelope
      - SuccessEnvelope[T]
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from esg_pilotage.adapters.schemas.http.base import BaseHTTPSchema

__all__ = [
    "ErrorObject",
    "ErrorEnvelope",
    "SuccessEnvelope",
]


class ErrorObject(BaseModel):
    """Structured error object inside ErrorEnvelope.

    Error codes are UPPER_SNAKE_CASE and stable across releases, e.g.
    ``NOT_FOUND``, ``INVALID_TRANSITION``, ``MISSING_COMMENT``,
    ``PROJECTION_UNAVAILABLE``, ``VALIDATION_ERROR``.
    """

    model_config = ConfigDict(
        title="ErrorObject",
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "code": "MISSING_COMMENT",
                    "http_status": 422,
                    "message": "A rejection requires a comment.",
                    "details": {"transition": "reject"},
                    "trace_id": "req-123",
                }
            ]
        },
    )

    code: str = Field(..., description="Stable machine-readable error code.")
    http_status: int = Field(..., description="Associated HTTP status.")
    message: str = Field(..., description="Human-readable error description.")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Optional structured details safe for clients.",
    )
    trace_id: str | None = Field(
        default=None,
        description="Request correlation identifier.",
    )


class ErrorEnvelope(BaseHTTPSchema):
    r"""Canonical error envelope: {"error": ErrorObject}."""

    model_config = ConfigDict(title="ErrorEnvelope", extra="forbid")

    error: ErrorObject = Field(..., description="Structured error details.")


class SuccessEnvelope[T](BaseHTTPSchema):
    r"""Success envelope: {"data": T}."""

    model_config = ConfigDict(title="SuccessEnvelope", extra="forbid")

    data: T = Field(..., description="Returned resource or value.")
