# src/esg_pilotage/domain/entities/indicator_value.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Value Ledger rows (Domain Entities).

Synopsis:
    One ledger row per (organization, hierarchy path, process, indicator,
    year, month). A row with ``id=None`` is an unsaved slot: the period has
    been viewed but nothing was written yet.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from esg_pilotage.domain.entities.base import BaseEntity, require_text
from esg_pilotage.domain.entities.organization import HierarchyPath
from esg_pilotage.domain.enums.pilotage import Role, ValueStatus


@dataclass(frozen=True)
class Actor:
    """Authenticated caller."""

    email: str
    role: Role


@dataclass(frozen=True)
class ValueKey:
    """Composite identity of a ledger row."""

    organization_name: str
    process_code: str
    indicator_code: str
    year: int
    month: int
    business_line_name: str | None = None
    subsidiary_name: str | None = None
    site_name: str | None = None

    @property
    def path(self) -> HierarchyPath:
        return HierarchyPath(
            business_line=self.business_line_name,
            subsidiary=self.subsidiary_name,
            site=self.site_name,
        )


@dataclass(frozen=True)
class IndicatorValue(BaseEntity):
    """Monthly indicator value with its workflow metadata.

    Attributes:
        organization_name: Owning organization.
        process_code: Process the indicator is collected under.
        indicator_code: Indicator code.
        year: Reporting year.
        month: Reporting month (1..12).
        business_line_name: Optional business line of the path.
        subsidiary_name: Optional subsidiary of the path.
        site_name: Optional site of the path.
        value: Numeric value, or ``None`` while not entered.
        unit: Unit copied from the indicator at entry time.
        status: Workflow state.
        comment: Free-text comment (mandatory rationale on rejection).
        submitted_by: Contributor e-mail of the last submission.
        submitted_at: Timestamp of the last submission.
        validated_by: Validator e-mail of the last decision.
        validated_at: Timestamp of the last decision.
        updated_at: Last write timestamp.
        id: Store identifier, ``None`` for an unsaved slot.
    """

    organization_name: str
    process_code: str
    indicator_code: str
    year: int
    month: int
    business_line_name: str | None = None
    subsidiary_name: str | None = None
    site_name: str | None = None
    value: Decimal | None = None
    unit: str | None = None
    status: ValueStatus = ValueStatus.DRAFT
    comment: str | None = None
    submitted_by: str | None = None
    submitted_at: datetime | None = None
    validated_by: str | None = None
    validated_at: datetime | None = None
    updated_at: datetime | None = None
    id: UUID | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        require_text(self.organization_name, "IndicatorValue.organization_name")
        require_text(self.process_code, "IndicatorValue.process_code")
        require_text(self.indicator_code, "IndicatorValue.indicator_code")
        if not 1 <= self.month <= 12:
            raise ValueError("IndicatorValue.month must be within 1..12.")
        if self.value is not None and not self.value.is_finite():
            raise ValueError("IndicatorValue.value must be finite.")

    @property
    def key(self) -> ValueKey:
        return ValueKey(
            organization_name=self.organization_name,
            process_code=self.process_code,
            indicator_code=self.indicator_code,
            year=self.year,
            month=self.month,
            business_line_name=self.business_line_name,
            subsidiary_name=self.subsidiary_name,
            site_name=self.site_name,
        )

    @property
    def path(self) -> HierarchyPath:
        return self.key.path

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @classmethod
    def slot(cls, key: ValueKey, *, unit: str | None = None) -> IndicatorValue:
        """Build an empty, unsaved draft row for ``key``."""
        return cls(
            organization_name=key.organization_name,
            process_code=key.process_code,
            indicator_code=key.indicator_code,
            year=key.year,
            month=key.month,
            business_line_name=key.business_line_name,
            subsidiary_name=key.subsidiary_name,
            site_name=key.site_name,
            unit=unit,
        )
