# src/esg_pilotage/domain/entities/consolidation.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Consolidated read models (Domain Entities).

Synopsis:
    Derived, recomputable results of the consolidation engine and the rows
    of the dashboard projection. Neither has a lifecycle of its own.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.enums.pilotage import Axis, Formula, Frequency, IndicatorType


@dataclass(frozen=True)
class ConsolidatedIndicator:
    """Aggregation of validated ledger rows for one process/indicator/year.

    Attributes:
        organization_name: Owning organization.
        scope: Hierarchy scope the aggregation is anchored on.
        process_code: Process the rows were collected under.
        indicator_code: Indicator code.
        year: Reporting year.
        month: Month the roll-up is restricted to, or ``None`` for the year.
        formula: Formula applied within and across months.
        unit: Unit of the underlying rows, if any.
        monthly_values: Per-month aggregate keyed by month number.
        value: Roll-up of ``monthly_values`` (or the single month).
        target_value: Configured target, if any.
        previous_year_value: Same roll-up over the prior year, if any rows.
        variation: Percent change against the prior year; ``None`` when
            the prior year is missing or zero.
        performance: Percent of target; ``None`` without a usable target.
        sites_list: Distinct sites with a validated value in ``year``,
            sorted; not narrowed by ``month``.
    """

    organization_name: str
    scope: ConsolidationScope
    process_code: str
    indicator_code: str
    year: int
    month: int | None
    formula: Formula
    unit: str | None
    monthly_values: dict[int, Decimal]
    value: Decimal | None
    target_value: Decimal | None
    previous_year_value: Decimal | None
    variation: Decimal | None
    performance: Decimal | None
    sites_list: tuple[str, ...] = ()

    @property
    def sites_count(self) -> int:
        return len(self.sites_list)


@dataclass(frozen=True)
class DashboardRow:
    """One tabular dashboard line joined with taxonomy display metadata."""

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
    monthly_values: dict[int, Decimal | None] = field(default_factory=dict)
    target_value: Decimal | None = None
    previous_year_value: Decimal | None = None
    variation: Decimal | None = None
    performance: Decimal | None = None
    average_value: Decimal | None = None
    last_updated: datetime | None = None
    site_name: str | None = None
