# tests/integration/http/test_trace_id_middleware.py
import httpx
import pytest


@pytest.mark.anyio
async def test_trace_is_generated_and_echoed(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert "x-trace-id" in r.headers
    assert r.headers["x-trace-id"]


@pytest.mark.anyio
async def test_inbound_trace_is_reused_and_echoed(client: httpx.AsyncClient) -> None:
    hdr = {"x-trace-id": "test-123"}
    r = await client.get("/healthz", headers=hdr)
    assert r.headers.get("x-trace-id") == "test-123"


@pytest.mark.anyio
async def test_inbound_trace_is_trimmed_and_capped(client: httpx.AsyncClient) -> None:
    # long value gets rejected -> new UUID generated
    too_long = "x" * 129
    r = await client.get("/healthz", headers={"x-trace-id": too_long})
    assert r.status_code == 200
    assert r.headers["x-trace-id"] != too_long

    # whitespace-trimmed value is reused
    r2 = await client.get("/healthz", headers={"x-trace-id": "  trim-me  "})
    assert r2.headers["x-trace-id"] == "trim-me"


@pytest.mark.anyio
async def test_error_envelope_carries_request_trace(client: httpx.AsyncClient) -> None:
    r = await client.get(
        "/v1/organizations/Acme/values",
        params={"year": 2024, "month": 1},
        headers={"x-trace-id": "trace-err-1"},
    )

    assert r.status_code == 401
    assert r.headers["x-trace-id"] == "trace-err-1"
    assert r.json()["error"]["trace_id"] == "trace-err-1"
