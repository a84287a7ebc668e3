# src/esg_pilotage/domain/entities/taxonomy.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Taxonomy reference data (Domain Entities).

Synopsis:
    Organization-agnostic ESG reference elements (sectors, standards, issues,
    criteria, indicators, processes), the per-organization assignment that
    scopes them, and the yearly indicator targets.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from esg_pilotage.domain.entities.base import BaseEntity, require_text
from esg_pilotage.domain.enums.pilotage import (
    Axis,
    ElementType,
    Formula,
    Frequency,
    IndicatorType,
)


@dataclass(frozen=True)
class TaxonomyElement(BaseEntity):
    """Standard, issue or criterion reference row.

    Attributes:
        element_type: Kind of element; one of standards, issues, criteria.
        code: Unique code within the element type.
        name: Display name.
        description: Optional long description.
    """

    element_type: ElementType
    code: str
    name: str
    description: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        require_text(self.code, "TaxonomyElement.code")


@dataclass(frozen=True)
class Sector(BaseEntity):
    """Sector with the names of its subsectors."""

    name: str
    subsectors: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        require_text(self.name, "Sector.name")


@dataclass(frozen=True)
class Indicator(BaseEntity):
    """Measured ESG quantity and the metadata that drives its consolidation.

    Attributes:
        code: Normalized unique code (upper-case, underscores).
        name: Display name.
        unit: Unit of measure (free text, e.g. ``t CO2e``).
        axis: ESG axis.
        formula: Aggregation applied when consolidating.
        frequency: Collection frequency.
        indicator_type: Primary (collected) or calculated.
        description: Optional long description.
    """

    code: str
    name: str
    unit: str | None = None
    axis: Axis = Axis.ENVIRONMENT
    formula: Formula = Formula.SUM
    frequency: Frequency = Frequency.MONTHLY
    indicator_type: IndicatorType = IndicatorType.PRIMARY
    description: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        require_text(self.code, "Indicator.code")
        require_text(self.name, "Indicator.name")


@dataclass(frozen=True)
class Process(BaseEntity):
    """Business process grouping indicators; owned by at most one organization."""

    code: str
    name: str
    indicator_codes: tuple[str, ...] = ()
    organization_name: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        require_text(self.code, "Process.code")


@dataclass(frozen=True)
class OrganizationAssignment(BaseEntity):
    """Codes of one element type assigned to an organization.

    For sectors ``codes`` holds the sector name followed by the optional
    subsector name.
    """

    organization_name: str
    element_type: ElementType
    codes: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        super().__post_init__()
        require_text(self.organization_name, "OrganizationAssignment.organization_name")
        if self.element_type is ElementType.SECTORS and len(self.codes) > 2:
            raise ValueError("A sector assignment holds one sector and at most one subsector.")


@dataclass(frozen=True)
class IndicatorTarget(BaseEntity):
    """Yearly target an organization set for one indicator."""

    organization_name: str
    indicator_code: str
    year: int
    target_value: Decimal

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.target_value.is_finite():
            raise ValueError("IndicatorTarget.target_value must be finite.")
