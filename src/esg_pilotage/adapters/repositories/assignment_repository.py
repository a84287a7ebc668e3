# src/esg_pilotage/adapters/repositories/assignment_repository.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Organization assignment repository (SQLAlchemy).

Purpose:
    Persist the taxonomy elements each organization uses. Implements the
    ``AssignmentRepository`` protocol.

Layer:
    adapters/repositories

Notes:
    - Code-list kinds hold one row per organization with a ``text[]`` column.
    - Process ownership is the ``organization_name`` column of ``processes``;
      processes dropped from an assignment are detached, not deleted.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, select, update

from esg_pilotage.adapters.repositories.base_repository import BaseRepository
from esg_pilotage.domain.enums.pilotage import ElementType
from esg_pilotage.infrastructure.database.models.pilotage import (
    OrganizationCriterionModel,
    OrganizationIndicatorModel,
    OrganizationIssueModel,
    OrganizationSectorModel,
    OrganizationStandardModel,
    ProcessModel,
)

_CODE_LIST_MODELS: dict[ElementType, Any] = {
    ElementType.STANDARDS: OrganizationStandardModel,
    ElementType.ISSUES: OrganizationIssueModel,
    ElementType.CRITERIA: OrganizationCriterionModel,
    ElementType.INDICATORS: OrganizationIndicatorModel,
}


def _code_list_model(element_type: ElementType) -> Any:
    try:
        return _CODE_LIST_MODELS[element_type]
    except KeyError as exc:
        raise ValueError(f"{element_type.value} are not stored as a code list") from exc


class SqlAlchemyAssignmentRepository(BaseRepository[OrganizationSectorModel]):
    """SQLAlchemy-backed assignment repository."""

    # ------------------------------------------------------------------ #
    # Code lists                                                          #
    # ------------------------------------------------------------------ #

    async def get_codes(
        self, organization_name: str, element_type: ElementType
    ) -> tuple[str, ...] | None:
        model = _code_list_model(element_type)
        async with self.guard("get_codes"):
            row = await self._session.scalar(
                select(model).where(model.organization_name == organization_name)
            )
        return tuple(row.codes or ()) if row is not None else None

    async def set_codes(
        self, organization_name: str, element_type: ElementType, codes: Sequence[str]
    ) -> None:
        model = _code_list_model(element_type)
        async with self.guard("set_codes"):
            row = await self._session.scalar(
                select(model).where(model.organization_name == organization_name)
            )
            if row is None:
                self._session.add(model(organization_name=organization_name, codes=list(codes)))
            else:
                row.codes = list(codes)
            await self._session.flush()

    async def delete_codes(self, organization_name: str, element_type: ElementType) -> bool:
        model = _code_list_model(element_type)
        async with self.guard("delete_codes"):
            result = await self._session.execute(
                delete(model).where(model.organization_name == organization_name)
            )
        return bool(result.rowcount)

    # ------------------------------------------------------------------ #
    # Sector                                                              #
    # ------------------------------------------------------------------ #

    async def get_sector(self, organization_name: str) -> tuple[str, str | None] | None:
        async with self.guard("get_sector"):
            row = await self.fetch_optional(
                select(OrganizationSectorModel).where(
                    OrganizationSectorModel.organization_name == organization_name
                )
            )
        return (row.sector_name, row.subsector_name) if row is not None else None

    async def set_sector(
        self, organization_name: str, sector: str, subsector: str | None
    ) -> None:
        async with self.guard("set_sector"):
            row = await self.fetch_optional(
                select(OrganizationSectorModel).where(
                    OrganizationSectorModel.organization_name == organization_name
                )
            )
            if row is None:
                self._session.add(
                    OrganizationSectorModel(
                        organization_name=organization_name,
                        sector_name=sector,
                        subsector_name=subsector,
                    )
                )
            else:
                row.sector_name = sector
                row.subsector_name = subsector
            await self._session.flush()

    async def delete_sector(self, organization_name: str) -> bool:
        async with self.guard("delete_sector"):
            result = await self._session.execute(
                delete(OrganizationSectorModel).where(
                    OrganizationSectorModel.organization_name == organization_name
                )
            )
        return bool(result.rowcount)

    # ------------------------------------------------------------------ #
    # Processes                                                           #
    # ------------------------------------------------------------------ #

    async def get_process_codes(self, organization_name: str) -> tuple[str, ...]:
        async with self.guard("get_process_codes"):
            result = await self._session.execute(
                select(ProcessModel.code)
                .where(ProcessModel.organization_name == organization_name)
                .order_by(ProcessModel.code)
            )
        return tuple(result.scalars().all())

    async def get_process_owners(self, codes: Sequence[str]) -> dict[str, str | None]:
        if not codes:
            return {}
        async with self.guard("get_process_owners"):
            result = await self._session.execute(
                select(ProcessModel.code, ProcessModel.organization_name).where(
                    ProcessModel.code.in_(list(codes))
                )
            )
        return {code: owner for code, owner in result.all()}

    async def set_process_codes(self, organization_name: str, codes: Sequence[str]) -> None:
        wanted = list(codes)
        async with self.guard("set_process_codes"):
            detach = update(ProcessModel).where(
                ProcessModel.organization_name == organization_name
            )
            if wanted:
                detach = detach.where(ProcessModel.code.not_in(wanted))
            await self._session.execute(detach.values(organization_name=None))
            if wanted:
                await self._session.execute(
                    update(ProcessModel)
                    .where(ProcessModel.code.in_(wanted))
                    .values(organization_name=organization_name)
                )
