# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Presenter: pilotage entities and results → HTTP SuccessEnvelope.

Synopsis:
    Maps domain entities and use-case results onto the HTTP schemas and
    wraps them in the canonical envelope with an ETag.

Layer:
    adapters/presenters
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from esg_pilotage.adapters.presenters.base_presenter import BasePresenter, PresentResult
from esg_pilotage.adapters.schemas.http.envelopes import SuccessEnvelope
from esg_pilotage.adapters.schemas.http.pilotage import (
    AssignmentHTTP,
    BatchFailureHTTP,
    BatchResultHTTP,
    ConsolidatedIndicatorHTTP,
    DashboardHTTP,
    DashboardRowHTTP,
    DashboardSummaryHTTP,
    DeletedAssignmentHTTP,
    EnsuredIndicatorHTTP,
    IndicatorHTTP,
    IndicatorValueHTTP,
    PeriodValuesHTTP,
    StatusCountsHTTP,
    TargetHTTP,
)
from esg_pilotage.application.use_cases.assignments.delete_organization_assignments import (
    DeletedAssignment,
)
from esg_pilotage.application.use_cases.dashboard.get_dashboard_projection import (
    DashboardProjection,
)
from esg_pilotage.application.use_cases.taxonomy.ensure_indicator_exists import (
    EnsuredIndicator,
)
from esg_pilotage.application.use_cases.values.batch_transition import BatchResult
from esg_pilotage.application.use_cases.values.get_period_values import PeriodValues
from esg_pilotage.domain.entities.consolidation import ConsolidatedIndicator, DashboardRow
from esg_pilotage.domain.entities.indicator_value import IndicatorValue
from esg_pilotage.domain.entities.taxonomy import (
    Indicator,
    IndicatorTarget,
    OrganizationAssignment,
)
from esg_pilotage.domain.enums.pilotage import ProjectionTier
from esg_pilotage.domain.services.dashboard_summary import classify


def indicator_http(i: Indicator) -> IndicatorHTTP:
    return IndicatorHTTP(
        code=i.code,
        name=i.name,
        unit=i.unit,
        axis=i.axis,
        formula=i.formula,
        frequency=i.frequency,
        indicator_type=i.indicator_type,
        description=i.description,
    )


def value_http(v: IndicatorValue) -> IndicatorValueHTTP:
    return IndicatorValueHTTP(
        id=v.id,
        organization_name=v.organization_name,
        business_line_name=v.business_line_name,
        subsidiary_name=v.subsidiary_name,
        site_name=v.site_name,
        process_code=v.process_code,
        indicator_code=v.indicator_code,
        year=v.year,
        month=v.month,
        value=v.value,
        unit=v.unit,
        status=v.status,
        comment=v.comment,
        submitted_by=v.submitted_by,
        submitted_at=v.submitted_at,
        validated_by=v.validated_by,
        validated_at=v.validated_at,
        updated_at=v.updated_at,
    )


def consolidated_http(c: ConsolidatedIndicator) -> ConsolidatedIndicatorHTTP:
    return ConsolidatedIndicatorHTTP(
        organization_name=c.organization_name,
        business_line=c.scope.business_line,
        subsidiary=c.scope.subsidiary,
        site=c.scope.site,
        process_code=c.process_code,
        indicator_code=c.indicator_code,
        year=c.year,
        month=c.month,
        formula=c.formula,
        unit=c.unit,
        monthly_values=dict(c.monthly_values),
        value=c.value,
        target_value=c.target_value,
        previous_year_value=c.previous_year_value,
        variation=c.variation,
        performance=c.performance,
        sites_count=c.sites_count,
        sites_list=list(c.sites_list),
    )


def dashboard_row_http(r: DashboardRow) -> DashboardRowHTTP:
    return DashboardRowHTTP(
        organization_name=r.organization_name,
        process_code=r.process_code,
        indicator_code=r.indicator_code,
        year=r.year,
        process_name=r.process_name,
        indicator_name=r.indicator_name,
        axis=r.axis,
        issues=r.issues,
        standards=r.standards,
        criteria=r.criteria,
        unit=r.unit,
        frequency=r.frequency,
        indicator_type=r.indicator_type,
        formula=r.formula,
        monthly_values=dict(r.monthly_values),
        target_value=r.target_value,
        previous_year_value=r.previous_year_value,
        variation=r.variation,
        performance=r.performance,
        performance_band=classify(r.performance),
        average_value=r.average_value,
        last_updated=r.last_updated,
        site_name=r.site_name,
    )


class PilotagePresenter(BasePresenter):
    """Presenter for every ``/v1`` pilotage endpoint."""

    def _envelope(
        self, data: Any, trace_id: str | None, status_code: int | None = None
    ) -> PresentResult[SuccessEnvelope[Any]]:
        return self.present_success(data=data, trace_id=trace_id, status_code=status_code)

    def assignment(
        self, a: OrganizationAssignment, *, trace_id: str | None = None
    ) -> PresentResult[SuccessEnvelope[Any]]:
        return self._envelope(
            AssignmentHTTP(
                organization_name=a.organization_name,
                element_type=a.element_type,
                codes=list(a.codes),
            ),
            trace_id,
        )

    def deleted_assignment(
        self, d: DeletedAssignment, *, trace_id: str | None = None
    ) -> PresentResult[SuccessEnvelope[Any]]:
        return self._envelope(
            DeletedAssignmentHTTP(
                organization_name=d.organization_name,
                element_type=d.element_type,
                removed_codes=list(d.removed_codes),
                deleted_values=d.deleted_values,
            ),
            trace_id,
        )

    def ensured_indicator(
        self, e: EnsuredIndicator, *, trace_id: str | None = None
    ) -> PresentResult[SuccessEnvelope[Any]]:
        return self._envelope(
            EnsuredIndicatorHTTP(indicator=indicator_http(e.indicator), created=e.created),
            trace_id,
            201 if e.created else None,
        )

    def target(
        self, t: IndicatorTarget, *, trace_id: str | None = None
    ) -> PresentResult[SuccessEnvelope[Any]]:
        return self._envelope(
            TargetHTTP(
                organization_name=t.organization_name,
                indicator_code=t.indicator_code,
                year=t.year,
                target_value=t.target_value,
            ),
            trace_id,
        )

    def value(
        self, v: IndicatorValue, *, trace_id: str | None = None
    ) -> PresentResult[SuccessEnvelope[Any]]:
        return self._envelope(value_http(v), trace_id)

    def period_values(
        self, p: PeriodValues, *, trace_id: str | None = None
    ) -> PresentResult[SuccessEnvelope[Any]]:
        c = p.counts
        return self._envelope(
            PeriodValuesHTTP(
                values=[value_http(v) for v in p.values],
                counts=StatusCountsHTTP(
                    total=c.total,
                    empty=c.empty,
                    draft=c.draft,
                    submitted=c.submitted,
                    validated=c.validated,
                    rejected=c.rejected,
                ),
            ),
            trace_id,
        )

    def batch_result(
        self, b: BatchResult, *, trace_id: str | None = None
    ) -> PresentResult[SuccessEnvelope[Any]]:
        return self._envelope(
            BatchResultHTTP(
                transition=b.transition,
                transitioned=[value_http(v) for v in b.transitioned],
                skipped=b.skipped,
                failed=[
                    BatchFailureHTTP(value_id=f.value_id, code=f.code, message=f.message)
                    for f in b.failed
                ],
            ),
            trace_id,
        )

    def consolidation(
        self, items: Sequence[ConsolidatedIndicator], *, trace_id: str | None = None
    ) -> PresentResult[SuccessEnvelope[Any]]:
        return self._envelope([consolidated_http(c) for c in items], trace_id)

    def dashboard(
        self, d: DashboardProjection, *, trace_id: str | None = None
    ) -> PresentResult[SuccessEnvelope[Any]]:
        s = d.summary
        return self._envelope(
            DashboardHTTP(
                organization_name=d.organization_name,
                year=d.year,
                tier=d.tier,
                degraded=d.tier is not ProjectionTier.PRIMARY,
                refresh_failed=d.refresh_failed,
                summary=DashboardSummaryHTTP(
                    total_indicators=s.total_indicators,
                    average_performance=s.average_performance,
                    targets_met=s.targets_met,
                    alerts=s.alerts,
                    axis_performance={a.value: p for a, p in s.axis_performance.items()},
                ),
                rows=[dashboard_row_http(r) for r in d.rows],
            ),
            trace_id,
        )
