# src/esg_pilotage/domain/entities/organization.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Organization hierarchy (Domain Entities).

Synopsis:
    Organizations and the nodes below them (business lines, subsidiaries,
    sites), plus the value objects used to address a node or a scope within
    one organization's tree.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass

from esg_pilotage.domain.entities.base import BaseEntity, require_text
from esg_pilotage.domain.enums.pilotage import HierarchyLevel, OrganizationType


@dataclass(frozen=True)
class Organization(BaseEntity):
    """Root of a hierarchy, keyed by its unique name.

    Attributes:
        name: Unique organization name.
        organization_type: Shape of the hierarchy below the organization.
        city: Optional city.
        country: Optional country.
    """

    name: str
    organization_type: OrganizationType = OrganizationType.SIMPLE
    city: str | None = None
    country: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        require_text(self.name, "Organization.name")


@dataclass(frozen=True)
class BusinessLine(BaseEntity):
    """First level below a group organization."""

    name: str
    organization_name: str

    def __post_init__(self) -> None:
        super().__post_init__()
        require_text(self.name, "BusinessLine.name")
        require_text(self.organization_name, "BusinessLine.organization_name")


@dataclass(frozen=True)
class Subsidiary(BaseEntity):
    """Legal entity optionally attached to a business line."""

    name: str
    organization_name: str
    business_line_name: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        require_text(self.name, "Subsidiary.name")
        require_text(self.organization_name, "Subsidiary.organization_name")


@dataclass(frozen=True)
class Site(BaseEntity):
    """Physical site where indicator values are collected.

    A site may reference a subsidiary, a business line, both, or neither.
    Consistency of those references is checked by the hierarchy registry,
    not here, because it needs the rest of the tree.
    """

    name: str
    organization_name: str
    subsidiary_name: str | None = None
    business_line_name: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        require_text(self.name, "Site.name")
        require_text(self.organization_name, "Site.organization_name")


HierarchyNode = BusinessLine | Subsidiary | Site


@dataclass(frozen=True)
class NodeRef:
    """Reference to one hierarchy node by level and name."""

    level: HierarchyLevel
    name: str


@dataclass(frozen=True)
class HierarchyPath:
    """Resolved ancestry of a node; every member is optional."""

    business_line: str | None = None
    subsidiary: str | None = None
    site: str | None = None


@dataclass(frozen=True)
class ConsolidationScope:
    """Part of an organization's tree a query or aggregation is anchored on.

    The empty scope covers the whole organization. When several members are
    set, rows must match all of them.
    """

    business_line: str | None = None
    subsidiary: str | None = None
    site: str | None = None

    @property
    def level(self) -> HierarchyLevel:
        if self.site is not None:
            return HierarchyLevel.SITE
        if self.subsidiary is not None:
            return HierarchyLevel.SUBSIDIARY
        if self.business_line is not None:
            return HierarchyLevel.BUSINESS_LINE
        return HierarchyLevel.ORGANIZATION

    def contains(self, path: HierarchyPath) -> bool:
        """Return True when a row stored at ``path`` falls inside this scope."""
        if self.business_line is not None and path.business_line != self.business_line:
            return False
        if self.subsidiary is not None and path.subsidiary != self.subsidiary:
            return False
        return self.site is None or path.site == self.site
