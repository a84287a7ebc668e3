# src/esg_pilotage/domain/interfaces/repositories/hierarchy_repository.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Hierarchy repository interface.

Purpose:
    Read organizations and their business lines, subsidiaries and sites.

Layer:
    domain/interfaces/repositories

Notes:
    Implementations must translate low-level DB/driver errors into
    ``DataStoreError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from esg_pilotage.domain.entities.organization import BusinessLine, Organization, Site, Subsidiary


@dataclass(frozen=True)
class HierarchySnapshot:
    """Nodes of one organization plus any foreign parents they reference."""

    business_lines: tuple[BusinessLine, ...] = ()
    subsidiaries: tuple[Subsidiary, ...] = ()
    sites: tuple[Site, ...] = ()


class HierarchyRepository(Protocol):
    """Protocol for repositories reading the organization hierarchy."""

    async def get_organization(self, name: str) -> Organization | None:
        """Return the organization named ``name`` or ``None``."""

    async def load_hierarchy(self, organization_name: str) -> HierarchySnapshot:
        """Return the organization's nodes.

        Parents referenced by name but owned by another organization are
        included so validation can report them as cross-organization links.
        """
