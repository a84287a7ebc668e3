# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""HTTP Schemas: ESG pilotage.

Synopsis:
    Request/response contracts for assignments, indicators and targets, the
    value ledger and its workflow, consolidation and the dashboard.

Layer:
    adapters/schemas/http

Notes:
    Numeric values accept a JSON number or a string on input (decimal
    commas and spaces are tolerated by the ledger parser) and serialize
    as decimal strings.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from esg_pilotage.adapters.schemas.http.base import BaseHTTPSchema
from esg_pilotage.domain.enums.pilotage import (
    Axis,
    ElementType,
    Formula,
    Frequency,
    IndicatorType,
    PerformanceBand,
    ProjectionTier,
    Transition,
    ValueStatus,
)

RawNumber = str | int | float


# --------------------------------------------------------------------------- #
# Assignments
# --------------------------------------------------------------------------- #
class AssignmentWriteHTTP(BaseHTTPSchema):
    """Body of PUT/PATCH on an assignment."""

    codes: list[str] = Field(
        ...,
        description="Element codes; for sectors: [sector, subsector?].",
        examples=[["GRI", "ISO_14001"]],
    )


class AssignmentHTTP(BaseHTTPSchema):
    organization_name: str
    element_type: ElementType
    codes: list[str]


class DeletedAssignmentHTTP(BaseHTTPSchema):
    organization_name: str
    element_type: ElementType
    removed_codes: list[str]
    deleted_values: int = Field(..., description="Ledger rows removed with the assignment.")


# --------------------------------------------------------------------------- #
# Indicators and targets
# --------------------------------------------------------------------------- #
class EnsureIndicatorHTTP(BaseHTTPSchema):
    """Body of POST /v1/indicators/ensure."""

    name_or_code: str = Field(..., min_length=1, examples=["CO2 tons"])
    name: str | None = None
    unit: str | None = Field(default=None, examples=["t CO2e"])
    axis: Axis = Axis.ENVIRONMENT
    formula: Formula = Formula.SUM
    frequency: Frequency = Frequency.MONTHLY
    indicator_type: IndicatorType = IndicatorType.PRIMARY
    description: str | None = None


class IndicatorHTTP(BaseHTTPSchema):
    code: str = Field(..., examples=["CO2_TONS"])
    name: str
    unit: str | None = None
    axis: Axis
    formula: Formula
    frequency: Frequency
    indicator_type: IndicatorType
    description: str | None = None


class EnsuredIndicatorHTTP(BaseHTTPSchema):
    indicator: IndicatorHTTP
    created: bool


class TargetWriteHTTP(BaseHTTPSchema):
    target_value: RawNumber = Field(..., examples=["1 200,5", 85])


class TargetHTTP(BaseHTTPSchema):
    organization_name: str
    indicator_code: str
    year: int
    target_value: Decimal


# --------------------------------------------------------------------------- #
# Value ledger
# --------------------------------------------------------------------------- #
class IndicatorValueHTTP(BaseHTTPSchema):
    """One ledger row; ``id`` is null for an unsaved slot."""

    id: UUID | None = None
    organization_name: str
    business_line_name: str | None = None
    subsidiary_name: str | None = None
    site_name: str | None = None
    process_code: str
    indicator_code: str
    year: int
    month: int
    value: Decimal | None = None
    unit: str | None = None
    status: ValueStatus
    comment: str | None = None
    submitted_by: str | None = None
    submitted_at: datetime | None = None
    validated_by: str | None = None
    validated_at: datetime | None = None
    updated_at: datetime | None = None


class StatusCountsHTTP(BaseHTTPSchema):
    total: int
    empty: int
    draft: int
    submitted: int
    validated: int
    rejected: int


class PeriodValuesHTTP(BaseHTTPSchema):
    values: list[IndicatorValueHTTP]
    counts: StatusCountsHTTP


class EnterValueHTTP(BaseHTTPSchema):
    """Body of PUT /v1/organizations/{org}/values."""

    process_code: str = Field(..., min_length=1)
    indicator_code: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=9999)
    month: int = Field(..., ge=1, le=12)
    value: RawNumber | None = Field(default=None, examples=["12,5"])
    business_line: str | None = None
    subsidiary: str | None = None
    site: str | None = None
    comment: str | None = None


class TransitionHTTP(BaseHTTPSchema):
    comment: str | None = Field(default=None, description="Mandatory when rejecting.")


class BatchTransitionHTTP(BaseHTTPSchema):
    """Body of POST /v1/organizations/{org}/values/{transition}-all."""

    year: int = Field(..., ge=1900, le=9999)
    month: int | None = Field(default=None, ge=1, le=12)
    comment: str | None = None
    business_line: str | None = None
    subsidiary: str | None = None
    site: str | None = None
    process_codes: list[str] | None = None


class BatchFailureHTTP(BaseHTTPSchema):
    value_id: UUID | None = None
    code: str
    message: str


class BatchResultHTTP(BaseHTTPSchema):
    transition: Transition
    transitioned: list[IndicatorValueHTTP]
    skipped: int
    failed: list[BatchFailureHTTP]


# --------------------------------------------------------------------------- #
# Consolidation and dashboard
# --------------------------------------------------------------------------- #
class ConsolidatedIndicatorHTTP(BaseHTTPSchema):
    organization_name: str
    business_line: str | None = None
    subsidiary: str | None = None
    site: str | None = None
    process_code: str
    indicator_code: str
    year: int
    month: int | None = None
    formula: Formula
    unit: str | None = None
    monthly_values: dict[int, Decimal]
    value: Decimal | None = None
    target_value: Decimal | None = None
    previous_year_value: Decimal | None = None
    variation: Decimal | None = None
    performance: Decimal | None = None
    sites_count: int
    sites_list: list[str]


class DashboardRowHTTP(BaseHTTPSchema):
    organization_name: str
    process_code: str
    indicator_code: str
    year: int
    process_name: str | None = None
    indicator_name: str | None = None
    axis: Axis | None = None
    issues: str | None = None
    standards: str | None = None
    criteria: str | None = None
    unit: str | None = None
    frequency: Frequency | None = None
    indicator_type: IndicatorType | None = None
    formula: Formula | None = None
    monthly_values: dict[int, Decimal | None]
    target_value: Decimal | None = None
    previous_year_value: Decimal | None = None
    variation: Decimal | None = None
    performance: Decimal | None = None
    performance_band: PerformanceBand
    average_value: Decimal | None = None
    last_updated: datetime | None = None
    site_name: str | None = None


class DashboardSummaryHTTP(BaseHTTPSchema):
    total_indicators: int
    average_performance: Decimal | None = None
    targets_met: int
    alerts: int
    axis_performance: dict[str, Decimal]


class DashboardHTTP(BaseHTTPSchema):
    organization_name: str
    year: int
    tier: ProjectionTier = Field(..., description="Read tier that served the rows.")
    degraded: bool = Field(..., description="True when the primary projection was not used.")
    refresh_failed: bool
    summary: DashboardSummaryHTTP
    rows: list[DashboardRowHTTP]
