from __future__ import annotations

from decimal import Decimal
from uuid import UUID

import pytest
from fastapi import FastAPI, HTTPException, Request
from fastapi.testclient import TestClient
from pydantic import BaseModel

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
from esg_pilotage.infrastructure.http import errors


class Payload(BaseModel):
    """Simple request body model used to exercise validation handlers."""

    value: int


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (NotFound("x"), 404),
        (InvalidTransition("x"), 409),
        (TransitionNotPermitted("x"), 403),
        (MissingComment("x"), 422),
        (InvalidNumericValue("x"), 422),
        (IncompleteHierarchy("x"), 422),
        (InvalidAssignment("x"), 422),
        (ProjectionUnavailable("x"), 503),
        (DataStoreError("x"), 503),
        (DomainError("x"), 500),
    ],
)
def test_status_for_domain_errors(exc: DomainError, status: int) -> None:
    assert errors.status_for(exc) == status


def test_error_envelope_includes_optional_fields() -> None:
    """error_envelope should include all optional fields when provided."""
    payload = errors.error_envelope(
        code="INVALID_TRANSITION",
        http_status=409,
        message="Cannot approve a draft value",
        details={"operation": "approve"},
        trace_id="trace-123",
    )

    assert payload == {
        "error": {
            "code": "INVALID_TRANSITION",
            "http_status": 409,
            "message": "Cannot approve a draft value",
            "details": {"operation": "approve"},
            "trace_id": "trace-123",
        }
    }


def test_error_envelope_omits_absent_fields() -> None:
    err = errors.error_envelope(code="X", http_status=500, message="m")["error"]
    assert "details" not in err
    assert "trace_id" not in err


def _make_app() -> FastAPI:
    """Build a FastAPI app wired with the structured handlers under test."""
    app = FastAPI()
    errors.install_exception_handlers(app)

    @app.middleware("http")
    async def add_trace_id(request: Request, call_next):  # type: ignore[no-untyped-def]
        request.state.trace_id = "trace-xyz"
        return await call_next(request)

    @app.get("/missing")
    async def missing() -> None:
        raise NotFound(
            "Unknown indicator value.",
            details={"value_id": UUID(int=7), "value": Decimal("1.5")},
        )

    @app.get("/teapot")
    async def teapot() -> None:
        raise HTTPException(status_code=418, detail="short and stout")

    @app.post("/validate")
    async def validate(payload: Payload) -> dict[str, int]:
        return {"value": payload.value}

    @app.get("/crash")
    async def crash() -> None:
        raise RuntimeError("boom")

    return app


def test_domain_error_is_mapped_with_details_and_trace() -> None:
    r = TestClient(_make_app()).get("/missing")

    assert r.status_code == 404
    err = r.json()["error"]
    assert err["code"] == "NOT_FOUND"
    assert err["trace_id"] == "trace-xyz"
    assert err["details"] == {
        "value_id": "00000000-0000-0000-0000-000000000007",
        "value": 1.5,
    }


def test_http_exception_uses_http_error_code() -> None:
    r = TestClient(_make_app()).get("/teapot")

    assert r.status_code == 418
    assert r.json()["error"]["code"] == "HTTP_ERROR"
    assert r.json()["error"]["message"] == "short and stout"


def test_validation_error_is_422() -> None:
    r = TestClient(_make_app()).post("/validate", json={"value": "nope"})

    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "VALIDATION_ERROR"
    assert err["details"]["errors"]


def test_unhandled_exception_is_500() -> None:
    client = TestClient(_make_app(), raise_server_exceptions=False)

    r = client.get("/crash")

    assert r.status_code == 500
    assert r.json()["error"]["code"] == "INTERNAL_ERROR"
