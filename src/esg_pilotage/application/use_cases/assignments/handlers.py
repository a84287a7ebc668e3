# src/esg_pilotage/application/use_cases/assignments/handlers.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Per-element-kind assignment handlers.

Purpose:
    One implementation of the {list, assign, modify, delete} capability per
    assignable element kind, selected by :class:`ElementType`:

        * code-list kinds (standards, issues, criteria, indicators) store a
          list of codes per organization;
        * sectors store a single sector with an optional subsector;
        * processes are owned through their ``organization_name``; a process
          owned by another organization cannot be reassigned.

Layer:
    application

Notes:
    - Assign and modify are full overwrites; modify additionally requires an
      existing assignment.
    - Delete removes the assignment and returns the codes it held.
    - Referenced codes must exist in the taxonomy (``NotFound`` otherwise).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol

from esg_pilotage.application.uow import UnitOfWork, repository
from esg_pilotage.domain.enums.pilotage import ElementType
from esg_pilotage.domain.exceptions.pilotage import InvalidAssignment, NotFound
from esg_pilotage.domain.interfaces.repositories.assignment_repository import (
    AssignmentRepository,
)
from esg_pilotage.domain.interfaces.repositories.taxonomy_repository import (
    TaxonomyRepository,
)
from esg_pilotage.domain.services.taxonomy_codes import dedupe_codes


class AssignmentHandler(Protocol):
    """Capability surface shared by every element kind."""

    element_type: ElementType

    async def list(self, tx: UnitOfWork, organization_name: str) -> tuple[str, ...]: ...

    async def assign(
        self, tx: UnitOfWork, organization_name: str, codes: Sequence[str]
    ) -> tuple[str, ...]: ...

    async def modify(
        self, tx: UnitOfWork, organization_name: str, codes: Sequence[str]
    ) -> tuple[str, ...]: ...

    async def delete(self, tx: UnitOfWork, organization_name: str) -> tuple[str, ...]: ...


def _not_assigned(element_type: ElementType, organization_name: str) -> NotFound:
    return NotFound(
        f"No {element_type.value} assigned to {organization_name!r}.",
        details={"organization": organization_name, "element_type": element_type.value},
    )


async def _require_known(tx: UnitOfWork, element_type: ElementType, codes: Sequence[str]) -> None:
    known = await repository(tx, TaxonomyRepository).existing_codes(element_type, codes)
    missing = [c for c in codes if c not in known]
    if missing:
        raise NotFound(
            f"Unknown {element_type.value}: {', '.join(missing)}.",
            details={"element_type": element_type.value, "missing_codes": missing},
        )


class CodeListAssignment:
    """Standards, issues, criteria and indicators."""

    def __init__(self, element_type: ElementType) -> None:
        self.element_type = element_type

    async def list(self, tx: UnitOfWork, organization_name: str) -> tuple[str, ...]:
        codes = await repository(tx, AssignmentRepository).get_codes(
            organization_name, self.element_type
        )
        return codes or ()

    async def assign(
        self, tx: UnitOfWork, organization_name: str, codes: Sequence[str]
    ) -> tuple[str, ...]:
        cleaned = dedupe_codes(codes)
        await _require_known(tx, self.element_type, cleaned)
        await repository(tx, AssignmentRepository).set_codes(
            organization_name, self.element_type, cleaned
        )
        return cleaned

    async def modify(
        self, tx: UnitOfWork, organization_name: str, codes: Sequence[str]
    ) -> tuple[str, ...]:
        current = await repository(tx, AssignmentRepository).get_codes(
            organization_name, self.element_type
        )
        if current is None:
            raise _not_assigned(self.element_type, organization_name)
        return await self.assign(tx, organization_name, codes)

    async def delete(self, tx: UnitOfWork, organization_name: str) -> tuple[str, ...]:
        repo = repository(tx, AssignmentRepository)
        current = await repo.get_codes(organization_name, self.element_type)
        if current is None:
            raise _not_assigned(self.element_type, organization_name)
        await repo.delete_codes(organization_name, self.element_type)
        return current


class SectorAssignment:
    """Single sector with an optional subsector, given as ``[sector, subsector?]``."""

    element_type = ElementType.SECTORS

    async def list(self, tx: UnitOfWork, organization_name: str) -> tuple[str, ...]:
        pair = await repository(tx, AssignmentRepository).get_sector(organization_name)
        if pair is None:
            return ()
        sector, subsector = pair
        return (sector,) if subsector is None else (sector, subsector)

    async def assign(
        self, tx: UnitOfWork, organization_name: str, codes: Sequence[str]
    ) -> tuple[str, ...]:
        cleaned = dedupe_codes(codes)
        if not 1 <= len(cleaned) <= 2:
            raise InvalidAssignment(
                "A sector assignment is one sector and at most one subsector.",
                details={"organization": organization_name, "codes": list(cleaned)},
            )
        sector_name = cleaned[0]
        subsector = cleaned[1] if len(cleaned) == 2 else None

        sector = await repository(tx, TaxonomyRepository).get_sector(sector_name)
        if sector is None:
            raise NotFound(f"Unknown sector {sector_name!r}.", details={"sector": sector_name})
        if subsector is not None and subsector not in sector.subsectors:
            raise NotFound(
                f"Unknown subsector {subsector!r} for sector {sector_name!r}.",
                details={"sector": sector_name, "subsector": subsector},
            )

        await repository(tx, AssignmentRepository).set_sector(
            organization_name, sector_name, subsector
        )
        return cleaned

    async def modify(
        self, tx: UnitOfWork, organization_name: str, codes: Sequence[str]
    ) -> tuple[str, ...]:
        if await repository(tx, AssignmentRepository).get_sector(organization_name) is None:
            raise _not_assigned(self.element_type, organization_name)
        return await self.assign(tx, organization_name, codes)

    async def delete(self, tx: UnitOfWork, organization_name: str) -> tuple[str, ...]:
        current = await self.list(tx, organization_name)
        if not current:
            raise _not_assigned(self.element_type, organization_name)
        await repository(tx, AssignmentRepository).delete_sector(organization_name)
        return current


class ProcessAssignment:
    """Processes, owned through their organization link."""

    element_type = ElementType.PROCESSES

    async def list(self, tx: UnitOfWork, organization_name: str) -> tuple[str, ...]:
        return await repository(tx, AssignmentRepository).get_process_codes(organization_name)

    async def assign(
        self, tx: UnitOfWork, organization_name: str, codes: Sequence[str]
    ) -> tuple[str, ...]:
        cleaned = dedupe_codes(codes)
        await _require_known(tx, self.element_type, cleaned)
        owners = await repository(tx, AssignmentRepository).get_process_owners(cleaned)
        for code in cleaned:
            owner = owners.get(code)
            if owner is not None and owner != organization_name:
                raise InvalidAssignment(
                    f"Process {code!r} already belongs to {owner!r}.",
                    details={"process_code": code, "owner": owner},
                )
        await repository(tx, AssignmentRepository).set_process_codes(organization_name, cleaned)
        return cleaned

    async def modify(
        self, tx: UnitOfWork, organization_name: str, codes: Sequence[str]
    ) -> tuple[str, ...]:
        if not await self.list(tx, organization_name):
            raise _not_assigned(self.element_type, organization_name)
        return await self.assign(tx, organization_name, codes)

    async def delete(self, tx: UnitOfWork, organization_name: str) -> tuple[str, ...]:
        current = await self.list(tx, organization_name)
        if not current:
            raise _not_assigned(self.element_type, organization_name)
        await repository(tx, AssignmentRepository).set_process_codes(organization_name, ())
        return current


HANDLERS: Mapping[ElementType, AssignmentHandler] = {
    ElementType.SECTORS: SectorAssignment(),
    ElementType.STANDARDS: CodeListAssignment(ElementType.STANDARDS),
    ElementType.ISSUES: CodeListAssignment(ElementType.ISSUES),
    ElementType.CRITERIA: CodeListAssignment(ElementType.CRITERIA),
    ElementType.INDICATORS: CodeListAssignment(ElementType.INDICATORS),
    ElementType.PROCESSES: ProcessAssignment(),
}


def handler_for(element_type: ElementType) -> AssignmentHandler:
    """Return the handler registered for ``element_type``."""
    return HANDLERS[element_type]
