# src/esg_pilotage/application/use_cases/common.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Helpers shared by the pilotage use cases.

Layer:
    application
"""

from __future__ import annotations

from datetime import UTC, datetime

from esg_pilotage.application.uow import UnitOfWork, repository
from esg_pilotage.domain.entities.organization import (
    ConsolidationScope,
    HierarchyPath,
    NodeRef,
    Organization,
)
from esg_pilotage.domain.entities.taxonomy import Indicator, Process
from esg_pilotage.domain.enums.pilotage import HierarchyLevel
from esg_pilotage.domain.exceptions.pilotage import IncompleteHierarchy, NotFound
from esg_pilotage.domain.interfaces.repositories.hierarchy_repository import (
    HierarchyRepository,
)
from esg_pilotage.domain.interfaces.repositories.taxonomy_repository import (
    TaxonomyRepository,
)
from esg_pilotage.domain.services.hierarchy_registry import HierarchyRegistry


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


async def require_organization(tx: UnitOfWork, name: str) -> Organization:
    """Return the organization or raise ``NotFound``."""
    organization = await repository(tx, HierarchyRepository).get_organization(name)
    if organization is None:
        raise NotFound(f"Unknown organization {name!r}.", details={"organization": name})
    return organization


async def require_indicator(tx: UnitOfWork, code: str) -> Indicator:
    """Return the indicator or raise ``NotFound``."""
    indicator = await repository(tx, TaxonomyRepository).get_indicator(code)
    if indicator is None:
        raise NotFound(f"Unknown indicator {code!r}.", details={"indicator_code": code})
    return indicator


async def require_process_indicator(
    tx: UnitOfWork, organization_name: str, process_code: str, indicator_code: str
) -> Process:
    """Return the organization's process when it collects ``indicator_code``.

    Raises:
        NotFound: If the organization does not own the process or the
            process does not carry the indicator.
    """
    processes = await repository(tx, TaxonomyRepository).list_processes(organization_name)
    process = next((p for p in processes if p.code == process_code), None)
    if process is None or indicator_code not in process.indicator_codes:
        raise NotFound(
            f"Indicator {indicator_code!r} is not collected under process {process_code!r}.",
            details={
                "organization": organization_name,
                "process_code": process_code,
                "indicator_code": indicator_code,
            },
        )
    return process


def resolve_anchor(registry: HierarchyRegistry, scope: ConsolidationScope) -> HierarchyPath:
    """Resolve the full path of the deepest node named by ``scope``.

    Every other member set on ``scope`` must agree with the resolved path.

    Raises:
        NotFound: If the deepest node is unknown.
        IncompleteHierarchy: If the node's ancestry is inconsistent or
            disagrees with the other members of ``scope``.
    """
    level = scope.level
    if level is HierarchyLevel.ORGANIZATION:
        return HierarchyPath()

    name = {
        HierarchyLevel.SITE: scope.site,
        HierarchyLevel.SUBSIDIARY: scope.subsidiary,
        HierarchyLevel.BUSINESS_LINE: scope.business_line,
    }[level]
    path = registry.resolve_path(NodeRef(level=level, name=name or ""))
    if not scope.contains(path):
        raise IncompleteHierarchy(
            "Requested hierarchy path is inconsistent with the registered hierarchy.",
            details={
                "organization": registry.organization_name,
                "reason": "path_mismatch",
                "requested": {
                    "business_line": scope.business_line,
                    "subsidiary": scope.subsidiary,
                    "site": scope.site,
                },
                "resolved": {
                    "business_line": path.business_line,
                    "subsidiary": path.subsidiary,
                    "site": path.site,
                },
            },
        )
    return path


async def load_registry(tx: UnitOfWork, organization_name: str) -> HierarchyRegistry:
    """Build the hierarchy registry of one organization."""
    snapshot = await repository(tx, HierarchyRepository).load_hierarchy(organization_name)
    return HierarchyRegistry(
        organization_name,
        business_lines=snapshot.business_lines,
        subsidiaries=snapshot.subsidiaries,
        sites=snapshot.sites,
    )
