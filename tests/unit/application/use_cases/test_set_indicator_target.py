# tests/unit/application/use_cases/test_set_indicator_target.py
from __future__ import annotations

from decimal import Decimal

import pytest

from esg_pilotage.application.use_cases.taxonomy.set_indicator_target import (
    SetIndicatorTargetRequest,
    SetIndicatorTargetUseCase,
)
from esg_pilotage.domain.exceptions.pilotage import InvalidNumericValue, NotFound
from tests.fixtures.pilotage_fakes import FakeUnitOfWork


@pytest.mark.anyio
async def test_target_is_parsed_and_replaced(uow: FakeUnitOfWork) -> None:
    target = await SetIndicatorTargetUseCase(uow).execute(
        SetIndicatorTargetRequest("Acme", "CO2_TONS", 2024, "1 200,5")
    )

    assert target.target_value == Decimal("1200.5")
    assert uow.taxonomy.targets[("Acme", "CO2_TONS", 2024)] == target
    assert uow.commits == 1


@pytest.mark.anyio
@pytest.mark.parametrize("raw", ["", "lots"])
async def test_invalid_target_values(uow: FakeUnitOfWork, raw: str) -> None:
    with pytest.raises(InvalidNumericValue):
        await SetIndicatorTargetUseCase(uow).execute(
            SetIndicatorTargetRequest("Acme", "CO2_TONS", 2025, raw)
        )


@pytest.mark.anyio
async def test_unknown_indicator(uow: FakeUnitOfWork) -> None:
    with pytest.raises(NotFound):
        await SetIndicatorTargetUseCase(uow).execute(
            SetIndicatorTargetRequest("Acme", "NOPE", 2024, 5)
        )
