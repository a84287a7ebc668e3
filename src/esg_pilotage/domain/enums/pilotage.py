# src/esg_pilotage/domain/enums/pilotage.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""
ESG pilotage enumerations.

Purpose:
    Provide the closed vocabularies of the ESG data model: organization
    shapes, hierarchy levels, assignable taxonomy kinds, indicator metadata
    and the ledger workflow states.

Layer:
    domain

Notes:
    - Values are the persisted tokens; adapters store and read them verbatim.
    - ``Formula.LAST_MONTH`` is persisted as ``last_month``.
"""

from __future__ import annotations

from enum import Enum


class OrganizationType(str, Enum):
    """Shape of an organization's hierarchy."""

    SIMPLE = "simple"
    WITH_SUBSIDIARIES = "with_subsidiaries"
    GROUP = "group"


class HierarchyLevel(str, Enum):
    """Level at which a hierarchy node or a query scope is anchored."""

    ORGANIZATION = "organization"
    BUSINESS_LINE = "business_line"
    SUBSIDIARY = "subsidiary"
    SITE = "site"


class ElementType(str, Enum):
    """Taxonomy element kinds that can be assigned to an organization."""

    SECTORS = "sectors"
    STANDARDS = "standards"
    ISSUES = "issues"
    CRITERIA = "criteria"
    INDICATORS = "indicators"
    PROCESSES = "processes"


class Axis(str, Enum):
    """ESG classification axis of an indicator."""

    ENVIRONMENT = "environment"
    SOCIAL = "social"
    GOVERNANCE = "governance"


class Formula(str, Enum):
    """Aggregation function declared per indicator."""

    SUM = "sum"
    AVERAGE = "average"
    MAX = "max"
    MIN = "min"
    LAST_MONTH = "last_month"


class Frequency(str, Enum):
    """Collection frequency of an indicator."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class IndicatorType(str, Enum):
    """Whether an indicator is collected or derived from others."""

    PRIMARY = "primary"
    CALCULATED = "calculated"


class ValueStatus(str, Enum):
    """Workflow state of a ledger row."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    VALIDATED = "validated"
    REJECTED = "rejected"


class Transition(str, Enum):
    """Workflow transitions that move a ledger row between states."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"


class Role(str, Enum):
    """Caller role as asserted by the upstream gateway."""

    ADMIN = "admin"
    CONTRIBUTOR = "contributor"
    VALIDATOR = "validator"


class ProjectionTier(str, Enum):
    """Read tier that served a dashboard projection."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    RAW = "raw"


class PerformanceBand(str, Enum):
    """Traffic-light classification of a performance percentage."""

    GOOD = "good"
    WATCH = "watch"
    ALERT = "alert"
    UNKNOWN = "unknown"
