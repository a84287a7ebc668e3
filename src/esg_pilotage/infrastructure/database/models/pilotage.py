# src/esg_pilotage/infrastructure/database/models/pilotage.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""ESG pilotage ORM models.

Tables:
    Hierarchy:      organizations, business_lines, subsidiaries, sites
    Taxonomy:       sectors, subsectors, standards, issues, criteria,
                    indicators, processes
    Assignments:    organization_sectors, organization_standards,
                    organization_issues, organization_criteria,
                    organization_indicators
    Targets:        indicator_targets
    Value ledger:   indicator_values

Notes:
    - Hierarchy nodes and taxonomy elements are keyed by unique names/codes;
      child rows reference them by name, as clients address them.
    - Enum-valued columns store the enum ``value`` as text.
    - Code-list assignments store one ``text[]`` per organization.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from esg_pilotage.infrastructure.database.models.base import (
    Base,
    IdentityMixin,
    TimestampMixin,
    fk,
    schema_args,
)

_ORG_FK = "organizations.name"


# --------------------------------------------------------------------------- #
# Hierarchy
# --------------------------------------------------------------------------- #
class OrganizationModel(IdentityMixin, TimestampMixin, Base):
    """Organization registry."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    organization_type: Mapped[str] = mapped_column(String(32), nullable=False, default="simple")
    city: Mapped[str | None] = mapped_column(String(255))
    country: Mapped[str | None] = mapped_column(String(255))


class BusinessLineModel(IdentityMixin, TimestampMixin, Base):
    """Business line (filière) of an organization."""

    __tablename__ = "business_lines"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    organization_name: Mapped[str] = mapped_column(
        String(255), fk(_ORG_FK, ondelete="CASCADE"), nullable=False, index=True
    )


class SubsidiaryModel(IdentityMixin, TimestampMixin, Base):
    """Subsidiary of an organization."""

    __tablename__ = "subsidiaries"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    organization_name: Mapped[str] = mapped_column(
        String(255), fk(_ORG_FK, ondelete="CASCADE"), nullable=False, index=True
    )
    business_line_name: Mapped[str | None] = mapped_column(
        String(255), fk("business_lines.name", ondelete="SET NULL")
    )


class SiteModel(IdentityMixin, TimestampMixin, Base):
    """Collection site of an organization."""

    __tablename__ = "sites"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    organization_name: Mapped[str] = mapped_column(
        String(255), fk(_ORG_FK, ondelete="CASCADE"), nullable=False, index=True
    )
    subsidiary_name: Mapped[str | None] = mapped_column(
        String(255), fk("subsidiaries.name", ondelete="SET NULL")
    )
    business_line_name: Mapped[str | None] = mapped_column(
        String(255), fk("business_lines.name", ondelete="SET NULL")
    )


# --------------------------------------------------------------------------- #
# Taxonomy
# --------------------------------------------------------------------------- #
class SectorModel(IdentityMixin, Base):
    __tablename__ = "sectors"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class SubsectorModel(IdentityMixin, Base):
    __tablename__ = "subsectors"
    __table_args__ = schema_args(UniqueConstraint("sector_name", "name"))

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sector_name: Mapped[str] = mapped_column(
        String(255), fk("sectors.name", ondelete="CASCADE"), nullable=False
    )


class _ReferenceElement(IdentityMixin, TimestampMixin):
    code: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)


class StandardModel(_ReferenceElement, Base):
    __tablename__ = "standards"


class IssueModel(_ReferenceElement, Base):
    __tablename__ = "issues"


class CriterionModel(_ReferenceElement, Base):
    __tablename__ = "criteria"


class IndicatorModel(_ReferenceElement, Base):
    """Indicator with the metadata driving its consolidation."""

    __tablename__ = "indicators"

    unit: Mapped[str | None] = mapped_column(String(64))
    axis: Mapped[str] = mapped_column(String(32), nullable=False, default="environment")
    formula: Mapped[str] = mapped_column(String(32), nullable=False, default="sum")
    frequency: Mapped[str] = mapped_column(String(32), nullable=False, default="monthly")
    indicator_type: Mapped[str] = mapped_column(String(32), nullable=False, default="primary")


class ProcessModel(_ReferenceElement, Base):
    """Process grouping indicators; optionally owned by an organization."""

    __tablename__ = "processes"

    organization_name: Mapped[str | None] = mapped_column(
        String(255), fk(_ORG_FK, ondelete="SET NULL"), index=True
    )
    indicator_codes: Mapped[list[str]] = mapped_column(
        ARRAY(String(128)), nullable=False, default=list
    )


# --------------------------------------------------------------------------- #
# Assignments
# --------------------------------------------------------------------------- #
class OrganizationSectorModel(IdentityMixin, TimestampMixin, Base):
    __tablename__ = "organization_sectors"

    organization_name: Mapped[str] = mapped_column(
        String(255), fk(_ORG_FK, ondelete="CASCADE"), unique=True, nullable=False
    )
    sector_name: Mapped[str] = mapped_column(String(255), fk("sectors.name"), nullable=False)
    subsector_name: Mapped[str | None] = mapped_column(String(255))


class _CodeListAssignment(IdentityMixin, TimestampMixin):
    organization_name: Mapped[str] = mapped_column(
        String(255), fk(_ORG_FK, ondelete="CASCADE"), unique=True, nullable=False
    )


class OrganizationStandardModel(_CodeListAssignment, Base):
    __tablename__ = "organization_standards"

    codes: Mapped[list[str]] = mapped_column(
        "standard_codes", ARRAY(String(128)), nullable=False, default=list
    )


class OrganizationIssueModel(_CodeListAssignment, Base):
    __tablename__ = "organization_issues"

    codes: Mapped[list[str]] = mapped_column(
        "issue_codes", ARRAY(String(128)), nullable=False, default=list
    )


class OrganizationCriterionModel(_CodeListAssignment, Base):
    __tablename__ = "organization_criteria"

    codes: Mapped[list[str]] = mapped_column(
        "criteria_codes", ARRAY(String(128)), nullable=False, default=list
    )


class OrganizationIndicatorModel(_CodeListAssignment, Base):
    __tablename__ = "organization_indicators"

    codes: Mapped[list[str]] = mapped_column(
        "indicator_codes", ARRAY(String(128)), nullable=False, default=list
    )


# --------------------------------------------------------------------------- #
# Targets and value ledger
# --------------------------------------------------------------------------- #
class IndicatorTargetModel(IdentityMixin, TimestampMixin, Base):
    __tablename__ = "indicator_targets"
    __table_args__ = schema_args(
        UniqueConstraint("organization_name", "indicator_code", "year"),
    )

    organization_name: Mapped[str] = mapped_column(
        String(255), fk(_ORG_FK, ondelete="CASCADE"), nullable=False
    )
    indicator_code: Mapped[str] = mapped_column(
        String(128), fk("indicators.code", ondelete="CASCADE"), nullable=False
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    target_value: Mapped[Decimal] = mapped_column(Numeric(20, 6), nullable=False)


class IndicatorValueModel(Base):
    """Value ledger row, unique per organization/path/process/indicator/period."""

    __tablename__ = "indicator_values"
    __table_args__ = schema_args(
        UniqueConstraint(
            "organization_name",
            "business_line_name",
            "subsidiary_name",
            "site_name",
            "process_code",
            "indicator_code",
            "year",
            "month",
            name="uq_indicator_values_identity",
            postgresql_nulls_not_distinct=True,
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_name: Mapped[str] = mapped_column(
        String(255), fk(_ORG_FK, ondelete="CASCADE"), nullable=False, index=True
    )
    business_line_name: Mapped[str | None] = mapped_column(String(255))
    subsidiary_name: Mapped[str | None] = mapped_column(String(255))
    site_name: Mapped[str | None] = mapped_column(String(255), index=True)
    process_code: Mapped[str] = mapped_column(String(128), nullable=False)
    indicator_code: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[Decimal | None] = mapped_column(Numeric(20, 6))
    unit: Mapped[str | None] = mapped_column(String(64))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft", index=True)
    comment: Mapped[str | None] = mapped_column(Text)
    submitted_by: Mapped[str | None] = mapped_column(String(255))
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    validated_by: Mapped[str | None] = mapped_column(String(255))
    validated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
