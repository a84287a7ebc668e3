# src/esg_pilotage/domain/services/consolidation_engine.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Consolidation engine.

Purpose:
    Aggregate validated ledger rows upward through the hierarchy according
    to each indicator's declared formula, and derive variation against the
    prior year and performance against target.

Layer:
    domain

Notes:
    - Pure domain logic: no logging, no persistence. Output depends only on
      the rows passed in, so recomputing over unchanged inputs yields equal
      results.
    - All numeric values are :class:`decimal.Decimal`.
    - Missing targets and missing or zero prior-year values are data-quality
      gaps reported as ``None``, never as errors or non-finite numbers.
    - Rows that are not validated, carry no value, or fall outside the
      requested indicator/year/scope are ignored.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from decimal import Decimal

from esg_pilotage.domain.entities.consolidation import ConsolidatedIndicator
from esg_pilotage.domain.entities.indicator_value import IndicatorValue
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.enums.pilotage import Formula, ValueStatus

DECIMAL_ZERO = Decimal("0")
DECIMAL_HUNDRED = Decimal("100")

_EPOCH = datetime.min.replace(tzinfo=UTC)


def variation(current: Decimal | None, previous: Decimal | None) -> Decimal | None:
    """Percent change of ``current`` over ``previous``.

    Returns:
        Decimal | None: ``None`` when either side is missing or the prior
        value is zero.
    """
    if current is None or previous is None or previous == DECIMAL_ZERO:
        return None
    return (current - previous) / previous * DECIMAL_HUNDRED


def performance(current: Decimal | None, target: Decimal | None) -> Decimal | None:
    """Percent of ``target`` reached by ``current``.

    Returns:
        Decimal | None: ``None`` without a value or a non-zero target.
    """
    if current is None or target is None or target == DECIMAL_ZERO:
        return None
    return current / target * DECIMAL_HUNDRED


class ConsolidationEngine:
    """Stateless aggregator over ledger rows."""

    def aggregate(self, rows: Sequence[IndicatorValue], formula: Formula) -> Decimal | None:
        """Apply ``formula`` to the values of one month group.

        ``last_month`` keeps the most recently dated row: the latest month,
        ties broken by the latest ``validated_at``.

        Returns:
            Decimal | None: Aggregate, or ``None`` when no row has a value.
        """
        valued = [r for r in rows if r.value is not None]
        if not valued:
            return None
        if formula is Formula.LAST_MONTH:
            latest = max(valued, key=lambda r: (r.month, r.validated_at or _EPOCH))
            return latest.value
        return self._reduce([r.value for r in valued if r.value is not None], formula)

    def roll_up(self, monthly_values: dict[int, Decimal], formula: Formula) -> Decimal | None:
        """Combine per-month aggregates into one figure for the period.

        ``last_month`` keeps the latest month; the other formulas reduce
        across months the way they reduce across sites.
        """
        if not monthly_values:
            return None
        if formula is Formula.LAST_MONTH:
            return monthly_values[max(monthly_values)]
        return self._reduce(list(monthly_values.values()), formula)

    def consolidate(
        self,
        rows: Iterable[IndicatorValue],
        *,
        organization_name: str,
        scope: ConsolidationScope,
        indicator_code: str,
        year: int,
        formula: Formula,
        target: Decimal | None = None,
        previous_rows: Iterable[IndicatorValue] = (),
        month: int | None = None,
    ) -> list[ConsolidatedIndicator]:
        """Consolidate one indicator for one year, per process.

        Args:
            rows: Candidate ledger rows for ``year``.
            organization_name: Organization being consolidated.
            scope: Hierarchy scope; the empty scope covers the organization.
            indicator_code: Indicator to consolidate.
            year: Reporting year.
            formula: The indicator's declared formula.
            target: Configured target for ``year``, if any.
            previous_rows: Candidate ledger rows for ``year - 1``.
            month: Restrict the figure to one month when set.
                The sites list still covers every validated month of
                ``year``.

        Returns:
            list[ConsolidatedIndicator]: One entry per process, sorted by
            process code; empty when no validated row is in scope.
        """
        rows = list(rows)
        current = self._group_by_process(
            rows, organization_name, scope, indicator_code, year, month
        )
        whole_year = (
            current
            if month is None
            else self._group_by_process(rows, organization_name, scope, indicator_code, year, None)
        )
        previous = self._group_by_process(
            previous_rows, organization_name, scope, indicator_code, year - 1, month
        )

        results: list[ConsolidatedIndicator] = []
        for process_code in sorted(current):
            process_rows = current[process_code]
            monthly = self._monthly(process_rows, formula)
            value = self.roll_up(monthly, formula)
            previous_value = self.roll_up(
                self._monthly(previous.get(process_code, []), formula), formula
            )
            units = {r.unit for r in process_rows if r.unit}
            results.append(
                ConsolidatedIndicator(
                    organization_name=organization_name,
                    scope=scope,
                    process_code=process_code,
                    indicator_code=indicator_code,
                    year=year,
                    month=month,
                    formula=formula,
                    unit=min(units) if units else None,
                    monthly_values=monthly,
                    value=value,
                    target_value=target,
                    previous_year_value=previous_value,
                    variation=variation(value, previous_value),
                    performance=performance(value, target),
                    sites_list=_sites(whole_year[process_code]),
                )
            )
        return results

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _monthly(self, rows: Sequence[IndicatorValue], formula: Formula) -> dict[int, Decimal]:
        by_month: dict[int, list[IndicatorValue]] = defaultdict(list)
        for r in rows:
            by_month[r.month].append(r)
        monthly: dict[int, Decimal] = {}
        for m in sorted(by_month):
            aggregated = self.aggregate(by_month[m], formula)
            if aggregated is not None:
                monthly[m] = aggregated
        return monthly

    @staticmethod
    def _group_by_process(
        rows: Iterable[IndicatorValue],
        organization_name: str,
        scope: ConsolidationScope,
        indicator_code: str,
        year: int,
        month: int | None,
    ) -> dict[str, list[IndicatorValue]]:
        grouped: dict[str, list[IndicatorValue]] = defaultdict(list)
        for r in rows:
            if (
                r.status is ValueStatus.VALIDATED
                and r.value is not None
                and r.organization_name == organization_name
                and r.indicator_code == indicator_code
                and r.year == year
                and (month is None or r.month == month)
                and scope.contains(r.path)
            ):
                grouped[r.process_code].append(r)
        return grouped

    @staticmethod
    def _reduce(values: list[Decimal], formula: Formula) -> Decimal:
        if formula is Formula.AVERAGE:
            return sum(values, DECIMAL_ZERO) / Decimal(len(values))
        if formula is Formula.MAX:
            return max(values)
        if formula is Formula.MIN:
            return min(values)
        return sum(values, DECIMAL_ZERO)


def _sites(rows: Iterable[IndicatorValue]) -> tuple[str, ...]:
    return tuple(sorted({r.site_name for r in rows if r.site_name}))
