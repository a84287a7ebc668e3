"""HTTP contract of the pilotage endpoints over the in-memory unit of work."""

from __future__ import annotations

from decimal import Decimal

import httpx
import pytest

from esg_pilotage.domain.entities.consolidation import DashboardRow
from esg_pilotage.domain.enums.pilotage import ValueStatus
from esg_pilotage.domain.exceptions.pilotage import DataStoreError
from tests.fixtures.pilotage_fakes import FakeUnitOfWork, value_row

CONTRIBUTOR = {"X-Actor-Email": "carla@acme.test", "X-Actor-Role": "contributor"}
VALIDATOR = {"X-Actor-Email": "victor@acme.test", "X-Actor-Role": "validator"}
ADMIN = {"X-Actor-Email": "ada@acme.test", "X-Actor-Role": "admin"}


def _error(r: httpx.Response) -> dict[str, object]:
    body = r.json()
    assert set(body) == {"error"}
    err = body["error"]
    assert err["http_status"] == r.status_code
    return err  # type: ignore[no-any-return]


# --------------------------------------------------------------------------- #
# Actor resolution
# --------------------------------------------------------------------------- #
@pytest.mark.anyio
async def test_missing_actor_headers_yield_401(client: httpx.AsyncClient) -> None:
    r = await client.get("/v1/organizations/Acme/values", params={"year": 2024, "month": 1})
    assert r.status_code == 401
    assert _error(r)["code"] == "HTTP_ERROR"


@pytest.mark.anyio
async def test_unknown_role_yields_401(client: httpx.AsyncClient) -> None:
    r = await client.get(
        "/v1/organizations/Acme/assignments/standards",
        headers={"X-Actor-Email": "x@acme.test", "X-Actor-Role": "owner"},
    )
    assert r.status_code == 401


@pytest.mark.anyio
async def test_assignment_writes_require_admin(client: httpx.AsyncClient) -> None:
    r = await client.put(
        "/v1/organizations/Acme/assignments/standards",
        json={"codes": ["ISSB"]},
        headers=CONTRIBUTOR,
    )
    assert r.status_code == 403
    assert _error(r)["code"] == "HTTP_ERROR"


# --------------------------------------------------------------------------- #
# Ledger and workflow
# --------------------------------------------------------------------------- #
@pytest.mark.anyio
async def test_period_listing_includes_empty_slots(client: httpx.AsyncClient) -> None:
    r = await client.get(
        "/v1/organizations/Acme/values",
        params={"year": 2024, "month": 1},
        headers=CONTRIBUTOR,
    )

    assert r.status_code == 200
    assert r.headers["ETag"].startswith('"')
    assert r.headers["x-trace-id"]
    data = r.json()["data"]
    assert data["counts"]["total"] == 3
    assert data["counts"]["empty"] == 3
    assert {v["indicator_code"] for v in data["values"]} == {"CO2_TONS", "WATER_M3", "HEADCOUNT"}
    assert all(v["id"] is None for v in data["values"])


@pytest.mark.anyio
async def test_period_listing_requires_month(client: httpx.AsyncClient) -> None:
    r = await client.get(
        "/v1/organizations/Acme/values", params={"year": 2024}, headers=CONTRIBUTOR
    )
    assert r.status_code == 422
    assert _error(r)["code"] == "VALIDATION_ERROR"


@pytest.mark.anyio
async def test_enter_submit_reject_flow(client: httpx.AsyncClient) -> None:
    r = await client.put(
        "/v1/organizations/Acme/values",
        json={
            "process_code": "ENV",
            "indicator_code": "CO2_TONS",
            "year": 2024,
            "month": 3,
            "value": "12,5",
            "site": "Plant North",
        },
        headers=CONTRIBUTOR,
    )
    assert r.status_code == 200
    saved = r.json()["data"]
    assert saved["status"] == "draft"
    assert Decimal(saved["value"]) == Decimal("12.5")
    assert saved["business_line_name"] == "Energy"
    assert saved["subsidiary_name"] == "Acme Power"
    value_id = saved["id"]

    r = await client.post(f"/v1/values/{value_id}/submit", headers=CONTRIBUTOR)
    assert r.status_code == 200
    assert r.json()["data"]["submitted_by"] == "carla@acme.test"

    r = await client.post(f"/v1/values/{value_id}/reject", json={}, headers=VALIDATOR)
    assert r.status_code == 422
    assert _error(r)["code"] == "MISSING_COMMENT"

    r = await client.post(
        f"/v1/values/{value_id}/reject",
        json={"comment": "Meter reading missing"},
        headers=VALIDATOR,
    )
    assert r.status_code == 200
    rejected = r.json()["data"]
    assert rejected["status"] == "rejected"
    assert rejected["comment"] == "Meter reading missing"


@pytest.mark.anyio
async def test_contributor_cannot_approve(
    client: httpx.AsyncClient, uow: FakeUnitOfWork
) -> None:
    row = value_row(status=ValueStatus.SUBMITTED)
    uow.values.add(row)

    r = await client.post(f"/v1/values/{row.id}/approve", headers=CONTRIBUTOR)

    assert r.status_code == 403
    assert _error(r)["code"] == "TRANSITION_NOT_PERMITTED"


@pytest.mark.anyio
async def test_approving_a_validated_row_is_a_conflict(
    client: httpx.AsyncClient, uow: FakeUnitOfWork
) -> None:
    row = value_row()
    uow.values.add(row)

    r = await client.post(f"/v1/values/{row.id}/approve", headers=VALIDATOR)

    assert r.status_code == 409
    assert _error(r)["code"] == "INVALID_TRANSITION"


@pytest.mark.anyio
async def test_unknown_value_id_is_404(client: httpx.AsyncClient) -> None:
    r = await client.post(
        "/v1/values/00000000-0000-0000-0000-000000000000/submit", headers=CONTRIBUTOR
    )
    assert r.status_code == 404
    assert _error(r)["code"] == "NOT_FOUND"


@pytest.mark.anyio
async def test_batch_approve_all(client: httpx.AsyncClient, uow: FakeUnitOfWork) -> None:
    uow.values.add(
        value_row(site="Plant North", status=ValueStatus.SUBMITTED),
        value_row(site="Plant South", status=ValueStatus.SUBMITTED),
        value_row(site="HQ", subsidiary=None, business_line=None, status=ValueStatus.DRAFT),
    )

    r = await client.post(
        "/v1/organizations/Acme/values/approve-all",
        json={"year": 2024, "month": 1},
        headers=VALIDATOR,
    )

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["transition"] == "approve"
    assert len(data["transitioned"]) == 2
    assert data["skipped"] == 1
    assert data["failed"] == []


# --------------------------------------------------------------------------- #
# Assignments, indicators and targets
# --------------------------------------------------------------------------- #
@pytest.mark.anyio
async def test_assignment_round_trip(client: httpx.AsyncClient, uow: FakeUnitOfWork) -> None:
    r = await client.put(
        "/v1/organizations/Acme/assignments/sectors",
        json={"codes": ["Energy", "Renewables"]},
        headers=ADMIN,
    )
    assert r.status_code == 200
    assert r.json()["data"]["codes"] == ["Energy", "Renewables"]

    r = await client.get("/v1/organizations/Acme/assignments/sectors", headers=VALIDATOR)
    assert r.json()["data"]["codes"] == ["Energy", "Renewables"]

    uow.values.add(value_row(), value_row(month=2))
    r = await client.delete("/v1/organizations/Acme/assignments/indicators", headers=ADMIN)
    assert r.status_code == 200
    assert r.json()["data"]["removed_codes"] == ["CO2_TONS"]
    assert r.json()["data"]["deleted_values"] == 2


@pytest.mark.anyio
async def test_assignment_errors(client: httpx.AsyncClient) -> None:
    r = await client.patch(
        "/v1/organizations/Acme/assignments/criteria", json={"codes": []}, headers=ADMIN
    )
    assert r.status_code == 404

    r = await client.put(
        "/v1/organizations/Acme/assignments/sectors",
        json={"codes": ["Energy", "Renewables", "Utilities"]},
        headers=ADMIN,
    )
    assert r.status_code == 422
    assert _error(r)["code"] == "INVALID_ASSIGNMENT"

    r = await client.get("/v1/organizations/Acme/assignments/planets", headers=ADMIN)
    assert r.status_code == 422


@pytest.mark.anyio
async def test_ensure_indicator_reports_creation(client: httpx.AsyncClient) -> None:
    body = {"name_or_code": "Energy use", "unit": "MWh", "formula": "sum"}

    first = await client.post("/v1/indicators/ensure", json=body, headers=ADMIN)
    second = await client.post("/v1/indicators/ensure", json=body, headers=ADMIN)

    assert first.status_code == 201
    assert first.json()["data"]["indicator"]["code"] == "ENERGY_USE"
    assert first.json()["data"]["created"] is True
    assert second.status_code == 200
    assert second.json()["data"]["created"] is False


@pytest.mark.anyio
async def test_set_target(client: httpx.AsyncClient, uow: FakeUnitOfWork) -> None:
    r = await client.put(
        "/v1/organizations/Acme/targets/WATER_M3/2024",
        json={"target_value": "1 500"},
        headers=ADMIN,
    )

    assert r.status_code == 200
    assert Decimal(r.json()["data"]["target_value"]) == Decimal("1500")
    assert uow.taxonomy.targets[("Acme", "WATER_M3", 2024)].target_value == Decimal("1500")


# --------------------------------------------------------------------------- #
# Consolidation and dashboard
# --------------------------------------------------------------------------- #
@pytest.mark.anyio
async def test_consolidation_of_one_indicator(
    client: httpx.AsyncClient, uow: FakeUnitOfWork
) -> None:
    uow.values.add(
        value_row(site="Plant North", value="40", month=1),
        value_row(site="Plant South", value="45", month=2),
        value_row(site="Plant North", value="35", month=1, year=2023),
        value_row(site="Plant South", value="40", month=2, year=2023),
    )

    r = await client.get(
        "/v1/organizations/Acme/consolidation",
        params={"year": 2024, "indicator_code": "CO2_TONS"},
        headers=VALIDATOR,
    )

    assert r.status_code == 200
    [item] = r.json()["data"]
    assert Decimal(item["value"]) == Decimal("85")
    assert Decimal(item["previous_year_value"]) == Decimal("75")
    assert Decimal(item["performance"]) == Decimal("85")
    assert item["sites_list"] == ["Plant North", "Plant South"]


@pytest.mark.anyio
async def test_consolidation_rejects_inconsistent_scope(client: httpx.AsyncClient) -> None:
    r = await client.get(
        "/v1/organizations/Acme/consolidation",
        params={"year": 2024, "business_line": "Energy", "site": "HQ"},
        headers=VALIDATOR,
    )
    assert r.status_code == 422
    assert _error(r)["code"] == "INCOMPLETE_HIERARCHY"


@pytest.mark.anyio
async def test_dashboard_primary_tier(client: httpx.AsyncClient, uow: FakeUnitOfWork) -> None:
    uow.dashboard.primary = [
        DashboardRow(
            organization_name="Acme",
            process_code="ENV",
            indicator_code="CO2_TONS",
            year=2024,
            performance=Decimal("95"),
        )
    ]

    r = await client.get(
        "/v1/organizations/Acme/dashboard",
        params={"year": 2024, "refresh": "false"},
        headers=VALIDATOR,
    )

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["tier"] == "primary"
    assert data["degraded"] is False
    assert data["summary"]["total_indicators"] == 1
    assert data["rows"][0]["performance_band"] == "good"
    assert uow.dashboard.refreshed == []


@pytest.mark.anyio
async def test_dashboard_unavailable_is_503(
    client: httpx.AsyncClient, uow: FakeUnitOfWork, monkeypatch: pytest.MonkeyPatch
) -> None:
    uow.dashboard.primary_error = "down"
    uow.dashboard.fallback_error = "down"

    async def _boom(*args: object, **kwargs: object) -> None:
        raise DataStoreError("raw query failed")

    monkeypatch.setattr(uow.values, "list_for_period", _boom)

    r = await client.get(
        "/v1/organizations/Acme/dashboard",
        params={"year": 2024, "refresh": "false"},
        headers=VALIDATOR,
    )

    assert r.status_code == 503
    assert _error(r)["code"] == "PROJECTION_UNAVAILABLE"
