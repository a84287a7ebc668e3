# src/esg_pilotage/domain/services/hierarchy_registry.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Hierarchy registry.

Purpose:
    Index one organization's business lines, subsidiaries and sites, resolve
    the ancestry of any node and reject structurally inconsistent nodes.

Layer:
    domain

Notes:
    - Pure domain logic: no logging, no persistence.
    - Incomplete ancestry is always rejected with ``IncompleteHierarchy``;
      missing ancestors are never replaced by placeholder names.
    - Nodes belonging to other organizations may be passed in; they are kept
      so that cross-organization references can be reported precisely.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TypeVar

from esg_pilotage.domain.entities.organization import (
    BusinessLine,
    ConsolidationScope,
    HierarchyNode,
    HierarchyPath,
    NodeRef,
    Site,
    Subsidiary,
)
from esg_pilotage.domain.enums.pilotage import HierarchyLevel
from esg_pilotage.domain.exceptions.pilotage import IncompleteHierarchy, NotFound

TNode = TypeVar("TNode", BusinessLine, Subsidiary, Site)


class HierarchyRegistry:
    """Read-only view over an organization's hierarchy nodes.

    Args:
        organization_name: Organization the registry answers for.
        business_lines: Business line records.
        subsidiaries: Subsidiary records.
        sites: Site records.
    """

    def __init__(
        self,
        organization_name: str,
        *,
        business_lines: Iterable[BusinessLine] = (),
        subsidiaries: Iterable[Subsidiary] = (),
        sites: Iterable[Site] = (),
    ) -> None:
        self._organization_name = organization_name
        self._business_lines = self._index(business_lines)
        self._subsidiaries = self._index(subsidiaries)
        self._sites = self._index(sites)

    @property
    def organization_name(self) -> str:
        return self._organization_name

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #
    def node(self, ref: NodeRef) -> HierarchyNode:
        """Return the node addressed by ``ref``.

        Raises:
            NotFound: If no node of that level and name is known.
        """
        table: dict[str, BusinessLine] | dict[str, Subsidiary] | dict[str, Site]
        if ref.level is HierarchyLevel.BUSINESS_LINE:
            table = self._business_lines
        elif ref.level is HierarchyLevel.SUBSIDIARY:
            table = self._subsidiaries
        elif ref.level is HierarchyLevel.SITE:
            table = self._sites
        else:
            raise NotFound(
                "Organizations are not hierarchy nodes.",
                details={"level": ref.level.value, "name": ref.name},
            )

        found = table.get(ref.name)
        if found is None or found.organization_name != self._organization_name:
            raise NotFound(
                f"Unknown {ref.level.value} {ref.name!r}.",
                details={
                    "organization": self._organization_name,
                    "level": ref.level.value,
                    "name": ref.name,
                },
            )
        return found

    def resolve_path(self, ref: NodeRef) -> HierarchyPath:
        """Resolve the ancestry of a node after validating it.

        Args:
            ref: Node to resolve.

        Returns:
            HierarchyPath: Business line, subsidiary and site of the node.

        Raises:
            NotFound: If the node is unknown.
            IncompleteHierarchy: If the node's ancestry is inconsistent.
        """
        return self.validate(self.node(ref))

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #
    def validate(self, node: HierarchyNode) -> HierarchyPath:
        """Validate a node's parent references and return its resolved path.

        Rules:
            * The node itself belongs to the registry's organization.
            * Every parent reference names a known node of the same
              organization.
            * A site with a subsidiary resolves a business line, either its
              own or the subsidiary's; when both are set they agree.

        Raises:
            IncompleteHierarchy: On the first violated rule.
        """
        self._check_owner(node)

        if isinstance(node, BusinessLine):
            return HierarchyPath(business_line=node.name)

        if isinstance(node, Subsidiary):
            if node.business_line_name is not None:
                self._parent_business_line(node, node.business_line_name)
            return HierarchyPath(
                business_line=node.business_line_name,
                subsidiary=node.name,
            )

        business_line = node.business_line_name
        if business_line is not None:
            self._parent_business_line(node, business_line)

        if node.subsidiary_name is None:
            return HierarchyPath(business_line=business_line, site=node.name)

        subsidiary = self._parent_subsidiary(node, node.subsidiary_name)
        inherited = subsidiary.business_line_name
        if business_line is not None and inherited is not None and inherited != business_line:
            raise IncompleteHierarchy(
                "Site references a subsidiary outside its business line.",
                details=self._details(
                    node,
                    reason="business_line_mismatch",
                    business_line=business_line,
                    subsidiary_business_line=inherited,
                ),
            )
        resolved = business_line or inherited
        if resolved is None:
            raise IncompleteHierarchy(
                "Site references a subsidiary but no business line can be resolved.",
                details=self._details(node, reason="missing_business_line"),
            )
        if inherited is not None:
            self._parent_business_line(subsidiary, inherited)

        return HierarchyPath(business_line=resolved, subsidiary=subsidiary.name, site=node.name)

    def validate_all(self) -> None:
        """Validate every node of the registry's organization."""
        for node in self.nodes():
            self.validate(node)

    def nodes(self) -> list[HierarchyNode]:
        """Return all nodes owned by the organization, parents first."""
        owned: list[HierarchyNode] = []
        for table in (self._business_lines, self._subsidiaries, self._sites):
            owned.extend(
                n for n in table.values() if n.organization_name == self._organization_name
            )
        return owned

    def sites_in_scope(self, scope: ConsolidationScope) -> list[str]:
        """List the names of sites falling inside ``scope``, sorted."""
        names: list[str] = []
        for site in self._sites.values():
            if site.organization_name != self._organization_name:
                continue
            if scope.contains(self.validate(site)):
                names.append(site.name)
        return sorted(names)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _index(self, nodes: Iterable[TNode]) -> dict[str, TNode]:
        # Own-organization nodes win over foreign nodes sharing a name.
        indexed: dict[str, TNode] = {}
        for n in nodes:
            if n.name not in indexed or n.organization_name == self._organization_name:
                indexed[n.name] = n
        return indexed

    def _check_owner(self, node: HierarchyNode) -> None:
        if node.organization_name != self._organization_name:
            raise IncompleteHierarchy(
                f"{type(node).__name__} {node.name!r} belongs to another organization.",
                details=self._details(node, reason="foreign_node"),
            )

    def _parent_business_line(self, node: HierarchyNode, name: str) -> BusinessLine:
        parent = self._business_lines.get(name)
        if parent is None:
            raise IncompleteHierarchy(
                f"Unknown business line {name!r}.",
                details=self._details(node, reason="unknown_business_line", business_line=name),
            )
        if parent.organization_name != node.organization_name:
            raise IncompleteHierarchy(
                f"Business line {name!r} belongs to another organization.",
                details=self._details(
                    node,
                    reason="cross_organization_parent",
                    business_line=name,
                    parent_organization=parent.organization_name,
                ),
            )
        return parent

    def _parent_subsidiary(self, node: Site, name: str) -> Subsidiary:
        parent = self._subsidiaries.get(name)
        if parent is None:
            raise IncompleteHierarchy(
                f"Unknown subsidiary {name!r}.",
                details=self._details(node, reason="unknown_subsidiary", subsidiary=name),
            )
        if parent.organization_name != node.organization_name:
            raise IncompleteHierarchy(
                f"Subsidiary {name!r} belongs to another organization.",
                details=self._details(
                    node,
                    reason="cross_organization_parent",
                    subsidiary=name,
                    parent_organization=parent.organization_name,
                ),
            )
        return parent

    @staticmethod
    def _details(node: HierarchyNode, *, reason: str, **extra: str) -> dict[str, str]:
        return {
            "reason": reason,
            "node": node.name,
            "node_type": type(node).__name__,
            "organization": node.organization_name,
            **extra,
        }
