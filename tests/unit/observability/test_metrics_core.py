from __future__ import annotations

from prometheus_client import REGISTRY

from esg_pilotage.infrastructure.observability.metrics import (
    get_dashboard_reads_total,
    get_db_errors_total,
    get_db_operation_duration_seconds,
    get_workflow_transitions_total,
)


def test_collectors_are_singletons_per_registry() -> None:
    """Getters should return the same collector on every call."""
    assert get_workflow_transitions_total() is get_workflow_transitions_total()
    assert get_dashboard_reads_total() is get_dashboard_reads_total()
    assert get_db_operation_duration_seconds() is get_db_operation_duration_seconds()
    assert get_db_errors_total() is get_db_errors_total()


def test_workflow_counter_accumulates_by_label() -> None:
    counter = get_workflow_transitions_total()
    labels = {"transition": "approve", "outcome": "success"}
    before = REGISTRY.get_sample_value("esg_pilotage_workflow_transitions_total", labels) or 0.0

    counter.labels(**labels).inc(3)

    after = REGISTRY.get_sample_value("esg_pilotage_workflow_transitions_total", labels)
    assert after == before + 3


def test_persistence_collectors_accept_observations() -> None:
    get_db_operation_duration_seconds().labels(
        operation="values.update", model="SqlAlchemyIndicatorValueRepository", outcome="success"
    ).observe(0.004)
    get_db_errors_total().labels(
        operation="values.update",
        model="SqlAlchemyIndicatorValueRepository",
        reason="OperationalError",
    ).inc()
    get_dashboard_reads_total().labels(tier="fallback").inc()

    assert (
        REGISTRY.get_sample_value("esg_pilotage_dashboard_reads_total", {"tier": "fallback"})
        or 0.0
    ) >= 1.0
