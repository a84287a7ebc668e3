# tests/unit/application/use_cases/test_handlers.py
from __future__ import annotations

import pytest

from esg_pilotage.application.use_cases.assignments.handlers import (
    CodeListAssignment,
    ProcessAssignment,
    SectorAssignment,
    handler_for,
)
from esg_pilotage.domain.enums.pilotage import ElementType
from esg_pilotage.domain.exceptions.pilotage import InvalidAssignment, NotFound
from tests.fixtures.pilotage_fakes import FakeUnitOfWork


def test_every_element_type_has_a_handler() -> None:
    for element_type in ElementType:
        assert handler_for(element_type).element_type is element_type
    assert isinstance(handler_for(ElementType.SECTORS), SectorAssignment)
    assert isinstance(handler_for(ElementType.PROCESSES), ProcessAssignment)
    assert isinstance(handler_for(ElementType.ISSUES), CodeListAssignment)


@pytest.mark.anyio
async def test_code_list_assign_dedupes_and_checks_taxonomy(uow: FakeUnitOfWork) -> None:
    handler = handler_for(ElementType.STANDARDS)

    codes = await handler.assign(uow, "Acme", ["ISSB", " GRI", "ISSB"])

    assert codes == ("ISSB", "GRI")
    assert uow.assignments.codes[("Acme", ElementType.STANDARDS)] == ("ISSB", "GRI")
    with pytest.raises(NotFound) as excinfo:
        await handler.assign(uow, "Acme", ["GRI", "SASB"])
    assert excinfo.value.details["missing_codes"] == ["SASB"]


@pytest.mark.anyio
async def test_code_list_modify_and_delete_require_existing(uow: FakeUnitOfWork) -> None:
    handler = handler_for(ElementType.ISSUES)

    assert await handler.list(uow, "Acme") == ()
    with pytest.raises(NotFound):
        await handler.modify(uow, "Acme", ["CLIMATE"])
    with pytest.raises(NotFound):
        await handler.delete(uow, "Acme")


@pytest.mark.anyio
async def test_sector_pair_round_trip(uow: FakeUnitOfWork) -> None:
    handler = handler_for(ElementType.SECTORS)

    assert await handler.assign(uow, "Acme", ["Energy", "Renewables"]) == ("Energy", "Renewables")
    assert await handler.list(uow, "Acme") == ("Energy", "Renewables")
    assert await handler.modify(uow, "Acme", ["Energy"]) == ("Energy",)
    assert await handler.delete(uow, "Acme") == ("Energy",)
    assert await handler.list(uow, "Acme") == ()


@pytest.mark.anyio
@pytest.mark.parametrize("codes", [[], ["Energy", "Renewables", "Utilities"]])
async def test_sector_payload_shape_is_enforced(uow: FakeUnitOfWork, codes: list[str]) -> None:
    with pytest.raises(InvalidAssignment):
        await handler_for(ElementType.SECTORS).assign(uow, "Acme", codes)


@pytest.mark.anyio
async def test_unknown_sector_or_subsector(uow: FakeUnitOfWork) -> None:
    handler = handler_for(ElementType.SECTORS)

    with pytest.raises(NotFound):
        await handler.assign(uow, "Acme", ["Mining"])
    with pytest.raises(NotFound):
        await handler.assign(uow, "Acme", ["Energy", "Coal"])


@pytest.mark.anyio
async def test_process_assignment_moves_ownership(uow: FakeUnitOfWork) -> None:
    handler = handler_for(ElementType.PROCESSES)

    assert await handler.list(uow, "Acme") == ("ENV", "HR")
    assert await handler.assign(uow, "Acme", ["OPS", "ENV"]) == ("OPS", "ENV")

    assert uow.taxonomy.processes["OPS"].organization_name == "Acme"
    assert uow.taxonomy.processes["HR"].organization_name is None
    assert await handler.delete(uow, "Acme") == ("ENV", "OPS")
    assert await handler.list(uow, "Acme") == ()


@pytest.mark.anyio
async def test_process_owned_elsewhere_cannot_be_taken(uow: FakeUnitOfWork) -> None:
    handler = handler_for(ElementType.PROCESSES)

    with pytest.raises(InvalidAssignment) as err:
        await handler.assign(uow, "Globex", ["OPS", "ENV"])

    assert err.value.details == {"process_code": "ENV", "owner": "Acme"}
    assert uow.taxonomy.processes["ENV"].organization_name == "Acme"
    assert uow.taxonomy.processes["OPS"].organization_name is None
    assert await handler.list(uow, "Acme") == ("ENV", "HR")


@pytest.mark.anyio
async def test_released_process_can_be_assigned_to_another_organization(
    uow: FakeUnitOfWork,
) -> None:
    handler = handler_for(ElementType.PROCESSES)

    await handler.assign(uow, "Acme", ["ENV"])

    assert await handler.assign(uow, "Globex", ["HR"]) == ("HR",)
    assert uow.taxonomy.processes["HR"].organization_name == "Globex"
