from __future__ import annotations

import asyncio
from collections.abc import Callable

import httpx
import pytest
from fastapi import FastAPI

from esg_pilotage.adapters.routers.health_router import HealthProbe, get_health_probe


class _GoodProbe:
    async def db(self) -> tuple[bool, str | None]:
        await asyncio.sleep(0)
        return True, None


class _BadProbe:
    async def db(self) -> tuple[bool, str | None]:
        return False, "db down"


def _probe(probe: HealthProbe) -> Callable[[], HealthProbe]:
    return lambda: probe


@pytest.mark.anyio
async def test_healthz_is_always_ok(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_readyz_200_when_db_ok(app: FastAPI, client: httpx.AsyncClient) -> None:
    app.dependency_overrides[get_health_probe] = _probe(_GoodProbe())

    r = await client.get("/readyz")

    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["checks"][0]["name"] == "db"


@pytest.mark.anyio
async def test_readyz_503_when_db_down(app: FastAPI, client: httpx.AsyncClient) -> None:
    app.dependency_overrides[get_health_probe] = _probe(_BadProbe())

    r = await client.get("/readyz")

    assert r.status_code == 503
    body = r.json()
    assert body["status"] == "degraded"
    assert body["checks"][0]["detail"] == "db down"


@pytest.mark.anyio
async def test_metrics_exposes_pilotage_collectors(client: httpx.AsyncClient) -> None:
    r = await client.get("/metrics")

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert "esg_pilotage_workflow_transitions_total" in r.text
    assert "esg_pilotage_dashboard_reads_total" in r.text
