# tests/unit/domain/test_hierarchy_registry.py
from __future__ import annotations

import pytest

from esg_pilotage.domain.entities.organization import (
    BusinessLine,
    ConsolidationScope,
    HierarchyPath,
    NodeRef,
    Site,
    Subsidiary,
)
from esg_pilotage.domain.enums.pilotage import HierarchyLevel
from esg_pilotage.domain.exceptions.pilotage import IncompleteHierarchy, NotFound
from esg_pilotage.domain.services.hierarchy_registry import HierarchyRegistry


def _registry(**overrides: object) -> HierarchyRegistry:
    nodes: dict[str, object] = {
        "business_lines": [
            BusinessLine(name="Energy", organization_name="Acme"),
            BusinessLine(name="Retail", organization_name="Acme"),
        ],
        "subsidiaries": [
            Subsidiary(name="Acme Power", organization_name="Acme", business_line_name="Energy"),
            Subsidiary(name="Acme Labs", organization_name="Acme"),
        ],
        "sites": [
            Site(name="Plant North", organization_name="Acme", subsidiary_name="Acme Power"),
            Site(name="HQ", organization_name="Acme"),
        ],
    }
    nodes.update(overrides)
    return HierarchyRegistry("Acme", **nodes)  # type: ignore[arg-type]


def test_site_inherits_business_line_from_subsidiary() -> None:
    path = _registry().resolve_path(NodeRef(HierarchyLevel.SITE, "Plant North"))

    assert path == HierarchyPath(
        business_line="Energy", subsidiary="Acme Power", site="Plant North"
    )


def test_site_without_parents_resolves_alone() -> None:
    path = _registry().resolve_path(NodeRef(HierarchyLevel.SITE, "HQ"))

    assert path == HierarchyPath(site="HQ")


def test_subsidiary_path() -> None:
    registry = _registry()

    assert registry.resolve_path(NodeRef(HierarchyLevel.SUBSIDIARY, "Acme Power")) == (
        HierarchyPath(business_line="Energy", subsidiary="Acme Power")
    )
    assert registry.resolve_path(NodeRef(HierarchyLevel.SUBSIDIARY, "Acme Labs")) == (
        HierarchyPath(subsidiary="Acme Labs")
    )


def test_unknown_node_is_not_found() -> None:
    with pytest.raises(NotFound):
        _registry().resolve_path(NodeRef(HierarchyLevel.SITE, "Atlantis"))


def test_site_under_subsidiary_without_business_line_is_rejected() -> None:
    registry = _registry(
        sites=[Site(name="Lab 1", organization_name="Acme", subsidiary_name="Acme Labs")]
    )

    with pytest.raises(IncompleteHierarchy) as excinfo:
        registry.resolve_path(NodeRef(HierarchyLevel.SITE, "Lab 1"))

    assert excinfo.value.details["reason"] == "missing_business_line"


def test_site_own_business_line_resolves_subsidiary_without_one() -> None:
    registry = _registry(
        sites=[
            Site(
                name="Lab 1",
                organization_name="Acme",
                subsidiary_name="Acme Labs",
                business_line_name="Retail",
            )
        ]
    )

    path = registry.resolve_path(NodeRef(HierarchyLevel.SITE, "Lab 1"))

    assert path == HierarchyPath(business_line="Retail", subsidiary="Acme Labs", site="Lab 1")


def test_conflicting_business_lines_are_rejected() -> None:
    registry = _registry(
        sites=[
            Site(
                name="Plant East",
                organization_name="Acme",
                subsidiary_name="Acme Power",
                business_line_name="Retail",
            )
        ]
    )

    with pytest.raises(IncompleteHierarchy) as excinfo:
        registry.resolve_path(NodeRef(HierarchyLevel.SITE, "Plant East"))

    assert excinfo.value.details["reason"] == "business_line_mismatch"


def test_unknown_parent_reference_is_rejected() -> None:
    registry = _registry(
        sites=[Site(name="Ghost", organization_name="Acme", subsidiary_name="Nowhere Ltd")]
    )

    with pytest.raises(IncompleteHierarchy) as excinfo:
        registry.validate_all()

    assert excinfo.value.details["reason"] == "unknown_subsidiary"


def test_cross_organization_parent_is_rejected() -> None:
    registry = _registry(
        subsidiaries=[
            Subsidiary(name="Acme Power", organization_name="Acme", business_line_name="Energy"),
            Subsidiary(name="Globex Power", organization_name="Globex"),
        ],
        sites=[Site(name="Borrowed", organization_name="Acme", subsidiary_name="Globex Power")],
    )

    with pytest.raises(IncompleteHierarchy) as excinfo:
        registry.resolve_path(NodeRef(HierarchyLevel.SITE, "Borrowed"))

    assert excinfo.value.details["reason"] == "cross_organization_parent"


def test_foreign_node_is_not_addressable() -> None:
    registry = _registry(sites=[Site(name="Globex Site", organization_name="Globex")])

    with pytest.raises(NotFound):
        registry.node(NodeRef(HierarchyLevel.SITE, "Globex Site"))


def test_sites_in_scope() -> None:
    registry = _registry()

    assert registry.sites_in_scope(ConsolidationScope()) == ["HQ", "Plant North"]
    assert registry.sites_in_scope(ConsolidationScope(business_line="Energy")) == ["Plant North"]
    assert registry.nodes()[0] == BusinessLine(name="Energy", organization_name="Acme")
