# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Prometheus metrics utilities (registry-aware, hot-reload safe).

Accessors return collectors bound to the **current**
``prometheus_client.REGISTRY``. The module cache resets automatically when
the active registry changes, so tests can swap the default registry and call
the accessors again without duplicate-registration errors.

Example:
    get_workflow_transitions_total().labels(transition="submit", outcome="success").inc()
    get_dashboard_reads_total().labels(tier="fallback").inc()
"""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from typing import Final

import prometheus_client as prom
from prometheus_client import Counter, Histogram

_log = logging.getLogger(__name__)

_BUCKETS: Final[tuple[float, ...]] = (
    0.005,
    0.010,
    0.025,
    0.050,
    0.100,
    0.250,
    0.500,
    1.000,
    2.500,
    5.000,
)

_registry_id: int | None = None
_cache: dict[str, Counter | Histogram] = {}
_lock = threading.RLock()


def _ensure_registry() -> None:
    """Reset the cache if the active registry changed."""
    global _registry_id
    with _lock:
        rid = id(prom.REGISTRY)
        if _registry_id != rid:
            _cache.clear()
            _registry_id = rid


def _lookup_existing(
    name: str, kind: type[Counter] | type[Histogram]
) -> Counter | Histogram | None:
    """Return a collector already registered under ``name`` on the active registry."""
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, kind):
                return col
    return None


def _get_or_create(
    kind: type[Counter] | type[Histogram],
    name: str,
    help_text: str,
    labelnames: tuple[str, ...],
) -> Counter | Histogram:
    """Get or create a registry-bound collector with stable identity.

    Strategy:
        1. Return from the module cache if present for the active registry.
        2. Reuse a collector the registry already holds under ``name``.
        3. Otherwise register a new collector on the active registry.
    """
    _ensure_registry()
    with _lock:
        cached = _cache.get(name)
        if isinstance(cached, kind):
            return cached

        existing = _lookup_existing(name, kind)
        if existing is not None:
            _cache[name] = existing
            return existing

        try:
            if kind is Histogram:
                col: Counter | Histogram = Histogram(
                    name, help_text, labelnames, buckets=_BUCKETS, registry=prom.REGISTRY
                )
            else:
                col = Counter(name, help_text, labelnames, registry=prom.REGISTRY)
        except ValueError as exc:
            # Duplicated timeseries: another thread registered it first.
            if "Duplicated timeseries" in str(exc):
                again = _lookup_existing(name, kind)
                if again is not None:
                    _cache[name] = again
                    return again
            _log.exception("Failed to register Prometheus collector %s", name)
            raise
        _cache[name] = col
        return col


def _counter(name: str, help_text: str, labelnames: tuple[str, ...]) -> Counter:
    col = _get_or_create(Counter, name, help_text, labelnames)
    assert isinstance(col, Counter)
    return col


def _histogram(name: str, help_text: str, labelnames: tuple[str, ...]) -> Histogram:
    col = _get_or_create(Histogram, name, help_text, labelnames)
    assert isinstance(col, Histogram)
    return col


# ---------------------------------------------------------------------------
# Workflow and dashboard


def get_workflow_transitions_total() -> Counter:
    """Return the counter of workflow transitions.

    Labels:
        transition: ``edit``, ``submit``, ``approve`` or ``reject``.
        outcome: ``success`` or the domain error code.
    """
    return _counter(
        "esg_pilotage_workflow_transitions_total",
        "Workflow transitions applied to ledger rows",
        ("transition", "outcome"),
    )


def get_dashboard_reads_total() -> Counter:
    """Return the counter of dashboard reads by tier served.

    Labels:
        tier: ``primary``, ``fallback``, ``raw`` or ``unavailable``.
    """
    return _counter(
        "esg_pilotage_dashboard_reads_total",
        "Dashboard reads by projection tier served",
        ("tier",),
    )


# ---------------------------------------------------------------------------
# Persistence


def get_db_operation_duration_seconds() -> Histogram:
    """Return the histogram of repository operation latency.

    Labels:
        operation: Repository operation label.
        model: Repository name.
        outcome: ``success`` or ``error``.
    """
    return _histogram(
        "esg_pilotage_db_operation_duration_seconds",
        "Latency (seconds) of repository operations",
        ("operation", "model", "outcome"),
    )


def get_db_errors_total() -> Counter:
    """Return the counter of repository failures.

    Labels:
        operation: Repository operation label.
        model: Repository name.
        reason: Exception class name.
    """
    return _counter(
        "esg_pilotage_db_errors_total",
        "Repository operations that failed in the data store",
        ("operation", "model", "reason"),
    )
