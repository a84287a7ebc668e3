# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Presenter utilities and canonical envelope helpers.

Purpose:
    Thin, framework-aware helpers used by routers to consistently shape HTTP
    responses and headers.

Responsibilities:
    * Build SuccessEnvelope instances.
    * Compute strong, quoted ETags from canonical JSON material.
    * Apply standard headers such as X-Request-ID.

Layer:
    adapters/presenters
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from esg_pilotage.adapters.schemas.http.envelopes import SuccessEnvelope


def _compute_quoted_etag(payload: Mapping[str, Any]) -> str:
    """Return a quoted strong ETag (SHA-256 of canonical JSON for ``payload``)."""
    material = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return f'"{hashlib.sha256(material).hexdigest()}"'


@dataclass(slots=True)
class PresentResult[T]:
    """Presentation result envelope.

    Attributes:
        body: A Pydantic envelope instance.
        headers: Extra HTTP headers to apply.
        status_code: Optional HTTP status override.
    """

    body: T
    headers: Mapping[str, str]
    status_code: int | None = None


class BasePresenter:
    """Base presenter for HTTP response shaping in adapter layers."""

    def present_success(
        self,
        *,
        data: Any,
        trace_id: str | None = None,
        status_code: int | None = None,
    ) -> PresentResult[SuccessEnvelope[Any]]:
        """Build a SuccessEnvelope and attach headers.

        Behavior:
            * Echoes ``X-Request-ID`` when ``trace_id`` is provided.
            * Sets a **quoted** strong ``ETag`` computed from the JSON body.
        """
        body = SuccessEnvelope[Any](data=data)
        headers: dict[str, str] = {"ETag": _compute_quoted_etag(body.model_dump_http())}
        if trace_id:
            headers["X-Request-ID"] = trace_id
        return PresentResult(body=body, headers=headers, status_code=status_code)
