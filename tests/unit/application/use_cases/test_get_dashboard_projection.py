# tests/unit/application/use_cases/test_get_dashboard_projection.py
from __future__ import annotations

from decimal import Decimal

import pytest

from esg_pilotage.application.use_cases.dashboard.get_dashboard_projection import (
    GetDashboardProjectionRequest,
    GetDashboardProjectionUseCase,
)
from esg_pilotage.domain.entities.consolidation import DashboardRow
from esg_pilotage.domain.enums.pilotage import ProjectionTier
from esg_pilotage.domain.exceptions.pilotage import (
    DataStoreError,
    NotFound,
    ProjectionUnavailable,
)
from tests.fixtures.pilotage_fakes import FakeUnitOfWork, value_row


def _row(code: str, performance: str, site: str | None = None) -> DashboardRow:
    return DashboardRow(
        organization_name="Acme",
        process_code="ENV",
        indicator_code=code,
        year=2024,
        performance=Decimal(performance),
        site_name=site,
    )


def _request(**kwargs: object) -> GetDashboardProjectionRequest:
    return GetDashboardProjectionRequest(
        organization_name="Acme", year=2024, **kwargs  # type: ignore[arg-type]
    )


@pytest.mark.anyio
async def test_primary_tier_serves_sorted_rows(uow: FakeUnitOfWork) -> None:
    uow.dashboard.primary = [_row("WATER_M3", "60"), _row("CO2_TONS", "95")]

    projection = await GetDashboardProjectionUseCase(uow).execute(_request())

    assert projection.tier is ProjectionTier.PRIMARY
    assert [r.indicator_code for r in projection.rows] == ["CO2_TONS", "WATER_M3"]
    assert projection.summary.total_indicators == 2
    assert projection.summary.alerts == 1
    assert not projection.refresh_failed


@pytest.mark.anyio
async def test_failed_primary_falls_back(uow: FakeUnitOfWork) -> None:
    uow.dashboard.primary_error = "materialized view missing"
    uow.dashboard.fallback = [_row("CO2_TONS", "80")]

    projection = await GetDashboardProjectionUseCase(uow).execute(_request())

    assert projection.tier is ProjectionTier.FALLBACK
    assert len(projection.rows) == 1


@pytest.mark.anyio
async def test_both_views_failing_consolidates_raw_rows(uow: FakeUnitOfWork) -> None:
    uow.dashboard.primary_error = "down"
    uow.dashboard.fallback_error = "down"
    uow.values.add(value_row(value="40", month=1), value_row(value="45", month=2))

    projection = await GetDashboardProjectionUseCase(uow).execute(_request())

    assert projection.tier is ProjectionTier.RAW
    [row] = projection.rows
    assert row.indicator_code == "CO2_TONS"
    assert row.indicator_name == "CO2 emissions"
    assert row.process_name == "Environment"
    assert row.performance == Decimal("85")
    assert row.monthly_values[1] == Decimal("40")
    assert row.monthly_values[12] is None
    assert row.average_value == Decimal("42.5")


@pytest.mark.anyio
async def test_every_tier_failing_is_unavailable(uow: FakeUnitOfWork) -> None:
    uow.dashboard.primary_error = "down"
    uow.dashboard.fallback_error = "down"

    async def _boom(*args: object, **kwargs: object) -> list[object]:
        raise DataStoreError("ledger unreachable")

    uow.values.list_for_period = _boom  # type: ignore[method-assign]

    with pytest.raises(ProjectionUnavailable) as excinfo:
        await GetDashboardProjectionUseCase(uow).execute(_request())

    assert set(excinfo.value.details) >= {"primary", "fallback", "raw"}


@pytest.mark.anyio
async def test_refresh_failure_never_blocks_the_read(uow: FakeUnitOfWork) -> None:
    uow.dashboard.refresh_error = "lock timeout"
    uow.dashboard.primary = [_row("CO2_TONS", "100")]

    projection = await GetDashboardProjectionUseCase(uow).execute(_request(refresh=True))

    assert projection.tier is ProjectionTier.PRIMARY
    assert projection.refresh_failed


@pytest.mark.anyio
async def test_refresh_runs_before_read(uow: FakeUnitOfWork) -> None:
    projection = await GetDashboardProjectionUseCase(uow).execute(_request(refresh=True))

    assert uow.dashboard.refreshed == ["Acme"]
    assert not projection.refresh_failed
    assert projection.rows == ()


@pytest.mark.anyio
async def test_site_filter_keeps_site_and_organization_rows(uow: FakeUnitOfWork) -> None:
    uow.dashboard.primary = [
        _row("CO2_TONS", "90", site="Plant North"),
        _row("CO2_TONS", "70", site="Plant South"),
        _row("WATER_M3", "50"),
    ]

    projection = await GetDashboardProjectionUseCase(uow).execute(
        _request(site_name="Plant North")
    )

    assert [(r.indicator_code, r.site_name) for r in projection.rows] == [
        ("CO2_TONS", "Plant North"),
        ("WATER_M3", None),
    ]


@pytest.mark.anyio
async def test_unknown_organization(uow: FakeUnitOfWork) -> None:
    with pytest.raises(NotFound):
        await GetDashboardProjectionUseCase(uow).execute(
            GetDashboardProjectionRequest(organization_name="Initech", year=2024)
        )


@pytest.mark.anyio
@pytest.mark.parametrize("views_down", [False, True])
async def test_unknown_site_is_rejected_by_every_tier(
    uow: FakeUnitOfWork, views_down: bool
) -> None:
    uow.dashboard.primary = [_row("CO2_TONS", "90")]
    if views_down:
        uow.dashboard.primary_error = "down"
        uow.dashboard.fallback_error = "down"

    with pytest.raises(NotFound):
        await GetDashboardProjectionUseCase(uow).execute(_request(site_name="Ghost"))


@pytest.mark.anyio
async def test_raw_tier_honors_a_known_site(uow: FakeUnitOfWork) -> None:
    uow.dashboard.primary_error = "down"
    uow.dashboard.fallback_error = "down"
    uow.values.add(value_row(value="40"), value_row(site="Plant South", value="20"))

    projection = await GetDashboardProjectionUseCase(uow).execute(
        _request(site_name="Plant North")
    )

    assert projection.tier is ProjectionTier.RAW
    [row] = projection.rows
    assert row.site_name == "Plant North"
    assert row.monthly_values[1] == Decimal("40")
