# tests/unit/application/use_cases/test_get_period_values.py
from __future__ import annotations

from decimal import Decimal

import pytest

from esg_pilotage.application.use_cases.values.get_period_values import (
    GetPeriodValuesRequest,
    GetPeriodValuesUseCase,
    StatusCounts,
)
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.enums.pilotage import ValueStatus
from esg_pilotage.domain.exceptions.pilotage import NotFound
from tests.fixtures.pilotage_fakes import FakeUnitOfWork, value_row


@pytest.mark.anyio
async def test_empty_period_lists_one_slot_per_process_indicator(uow: FakeUnitOfWork) -> None:
    period = await GetPeriodValuesUseCase(uow).execute(
        GetPeriodValuesRequest(
            organization_name="Acme",
            year=2024,
            month=4,
            scope=ConsolidationScope(site="Plant North"),
        )
    )

    assert [(v.process_code, v.indicator_code) for v in period.values] == [
        ("ENV", "CO2_TONS"),
        ("ENV", "WATER_M3"),
        ("HR", "HEADCOUNT"),
    ]
    assert all(not v.is_persisted for v in period.values)
    assert {v.site_name for v in period.values} == {"Plant North"}
    assert {v.subsidiary_name for v in period.values} == {"Acme Power"}
    assert [v.unit for v in period.values] == ["t", "m3", "people"]
    assert period.counts == StatusCounts(total=3, empty=3, draft=3)
    assert uow.values.rows == {}


@pytest.mark.anyio
async def test_stored_rows_replace_their_slots(uow: FakeUnitOfWork) -> None:
    stored = value_row(month=4, status=ValueStatus.SUBMITTED, value="42")
    uow.values.add(stored)

    period = await GetPeriodValuesUseCase(uow).execute(
        GetPeriodValuesRequest(
            organization_name="Acme",
            year=2024,
            month=4,
            scope=ConsolidationScope(site="Plant North"),
        )
    )

    co2 = period.values[0]
    assert co2.id == stored.id
    assert co2.value == Decimal("42")
    assert period.counts == StatusCounts(total=3, empty=2, draft=2, submitted=1)


@pytest.mark.anyio
async def test_organization_anchor_includes_site_rows(uow: FakeUnitOfWork) -> None:
    uow.values.add(value_row(month=4, site="Plant South", status=ValueStatus.VALIDATED))

    period = await GetPeriodValuesUseCase(uow).execute(
        GetPeriodValuesRequest(organization_name="Acme", year=2024, month=4)
    )

    # One stored site row plus organization-level slots for all three pairs.
    assert period.counts.total == 4
    assert period.counts.validated == 1
    slots = [v for v in period.values if not v.is_persisted]
    assert {(v.business_line_name, v.subsidiary_name, v.site_name) for v in slots} == {
        (None, None, None)
    }


@pytest.mark.anyio
async def test_process_filter(uow: FakeUnitOfWork) -> None:
    period = await GetPeriodValuesUseCase(uow).execute(
        GetPeriodValuesRequest(
            organization_name="Acme", year=2024, month=4, process_codes=["HR"]
        )
    )

    assert [v.indicator_code for v in period.values] == ["HEADCOUNT"]


@pytest.mark.anyio
async def test_unknown_anchor(uow: FakeUnitOfWork) -> None:
    with pytest.raises(NotFound):
        await GetPeriodValuesUseCase(uow).execute(
            GetPeriodValuesRequest(
                organization_name="Acme",
                year=2024,
                month=4,
                scope=ConsolidationScope(site="Atlantis"),
            )
        )
