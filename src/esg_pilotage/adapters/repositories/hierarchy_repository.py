# src/esg_pilotage/adapters/repositories/hierarchy_repository.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Organization hierarchy repository (SQLAlchemy).

Purpose:
    Read organizations and their business lines, subsidiaries and sites.
    Implements the ``HierarchyRepository`` protocol.

Layer:
    adapters/repositories
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.sql import ColumnElement

from esg_pilotage.adapters.repositories.base_repository import BaseRepository
from esg_pilotage.domain.entities.organization import (
    BusinessLine,
    Organization,
    Site,
    Subsidiary,
)
from esg_pilotage.domain.enums.pilotage import OrganizationType
from esg_pilotage.domain.interfaces.repositories.hierarchy_repository import (
    HierarchySnapshot,
)
from esg_pilotage.infrastructure.database.models.pilotage import (
    BusinessLineModel,
    OrganizationModel,
    SiteModel,
    SubsidiaryModel,
)


class SqlAlchemyHierarchyRepository(BaseRepository[OrganizationModel]):
    """SQLAlchemy-backed hierarchy repository."""

    async def get_organization(self, name: str) -> Organization | None:
        async with self.guard("get_organization"):
            row = await self.fetch_optional(
                select(OrganizationModel).where(OrganizationModel.name == name)
            )
        return _map_organization(row) if row is not None else None

    async def load_hierarchy(self, organization_name: str) -> HierarchySnapshot:
        """Load the organization's nodes plus foreign parents they name."""
        async with self.guard("load_hierarchy"):
            sites = await self._sites(SiteModel.organization_name == organization_name)
            subsidiaries = await self._subsidiaries(
                SubsidiaryModel.organization_name == organization_name
            )
            missing_subs = _missing(
                (s.subsidiary_name for s in sites), (s.name for s in subsidiaries)
            )
            if missing_subs:
                subsidiaries += await self._subsidiaries(
                    SubsidiaryModel.name.in_(sorted(missing_subs))
                )

            business_lines = await self._business_lines(
                BusinessLineModel.organization_name == organization_name
            )
            referenced = [s.business_line_name for s in sites]
            referenced += [s.business_line_name for s in subsidiaries]
            missing_lines = _missing(referenced, (b.name for b in business_lines))
            if missing_lines:
                business_lines += await self._business_lines(
                    BusinessLineModel.name.in_(sorted(missing_lines))
                )

        return HierarchySnapshot(
            business_lines=tuple(business_lines),
            subsidiaries=tuple(subsidiaries),
            sites=tuple(sites),
        )

    async def _sites(self, clause: ColumnElement[bool]) -> list[Site]:
        result = await self._session.execute(select(SiteModel).where(clause))
        return [
            Site(
                name=r.name,
                organization_name=r.organization_name,
                subsidiary_name=r.subsidiary_name,
                business_line_name=r.business_line_name,
            )
            for r in result.scalars().all()
        ]

    async def _subsidiaries(self, clause: ColumnElement[bool]) -> list[Subsidiary]:
        result = await self._session.execute(select(SubsidiaryModel).where(clause))
        return [
            Subsidiary(
                name=r.name,
                organization_name=r.organization_name,
                business_line_name=r.business_line_name,
            )
            for r in result.scalars().all()
        ]

    async def _business_lines(self, clause: ColumnElement[bool]) -> list[BusinessLine]:
        result = await self._session.execute(select(BusinessLineModel).where(clause))
        return [
            BusinessLine(name=r.name, organization_name=r.organization_name)
            for r in result.scalars().all()
        ]


def _missing(referenced: Iterable[str | None], known: Iterable[str]) -> set[str]:
    return {name for name in referenced if name} - set(known)


def _map_organization(row: OrganizationModel) -> Organization:
    return Organization(
        name=row.name,
        organization_type=OrganizationType(row.organization_type),
        city=row.city,
        country=row.country,
    )
