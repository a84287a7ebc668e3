# src/esg_pilotage/domain/services/dashboard_summary.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Dashboard summary statistics.

Purpose:
    Headline figures over a set of dashboard rows: how many indicators are
    reported, their average performance, how many met target and how many
    are in alert, plus the same average per ESG axis.

Layer:
    domain

Notes:
    - Pure functions; rows without a performance are counted in the total
      but excluded from averages and thresholds.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from esg_pilotage.domain.entities.consolidation import DashboardRow
from esg_pilotage.domain.enums.pilotage import Axis, PerformanceBand

TARGET_MET_THRESHOLD = Decimal("100")
GOOD_THRESHOLD = Decimal("90")
WATCH_THRESHOLD = Decimal("70")


def classify(performance: Decimal | None) -> PerformanceBand:
    """Map a performance percentage to its traffic-light band."""
    if performance is None:
        return PerformanceBand.UNKNOWN
    if performance >= GOOD_THRESHOLD:
        return PerformanceBand.GOOD
    if performance >= WATCH_THRESHOLD:
        return PerformanceBand.WATCH
    return PerformanceBand.ALERT


@dataclass(frozen=True)
class DashboardSummary:
    """Headline statistics of a dashboard projection."""

    total_indicators: int = 0
    average_performance: Decimal | None = None
    targets_met: int = 0
    alerts: int = 0
    axis_performance: dict[Axis, Decimal] = field(default_factory=dict)


def _mean(values: Sequence[Decimal]) -> Decimal | None:
    if not values:
        return None
    return sum(values, Decimal("0")) / Decimal(len(values))


def summarize(rows: Sequence[DashboardRow]) -> DashboardSummary:
    """Compute :class:`DashboardSummary` over ``rows``."""
    scored = [r.performance for r in rows if r.performance is not None]

    by_axis: dict[Axis, list[Decimal]] = defaultdict(list)
    for r in rows:
        if r.axis is not None and r.performance is not None:
            by_axis[r.axis].append(r.performance)

    axis_performance: dict[Axis, Decimal] = {}
    for axis, values in by_axis.items():
        mean = _mean(values)
        if mean is not None:
            axis_performance[axis] = mean

    return DashboardSummary(
        total_indicators=len(rows),
        average_performance=_mean(scored),
        targets_met=sum(1 for p in scored if p >= TARGET_MET_THRESHOLD),
        alerts=sum(1 for p in scored if p < WATCH_THRESHOLD),
        axis_performance=axis_performance,
    )
