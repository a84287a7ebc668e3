# src/esg_pilotage/domain/exceptions/pilotage.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""
ESG pilotage domain exceptions.

Purpose:
    Error taxonomy for the taxonomy store, hierarchy registry, value ledger
    workflow and dashboard projection.

Layer:
    domain

Notes:
    - Validation and transition errors are user-facing and recoverable: the
      caller must change its input.
    - ``DataStoreError`` is raised by adapters to wrap backing-store failures
      so application code never depends on driver exception types.
"""

from __future__ import annotations

from esg_pilotage.domain.exceptions.base import DomainError


class NotFound(DomainError):
    """Raised when an organization, hierarchy node, taxonomy element or value is absent."""

    code = "NOT_FOUND"


class InvalidTransition(DomainError):
    """Raised when a ledger row is not in the source state a transition requires."""

    code = "INVALID_TRANSITION"


class TransitionNotPermitted(DomainError):
    """Raised when the caller's role may not invoke a workflow operation."""

    code = "TRANSITION_NOT_PERMITTED"


class MissingComment(DomainError):
    """Raised when a rejection is attempted without a rationale."""

    code = "MISSING_COMMENT"


class InvalidNumericValue(DomainError):
    """Raised when a supplied value does not parse as a finite number."""

    code = "INVALID_NUMERIC_VALUE"


class IncompleteHierarchy(DomainError):
    """Raised when a hierarchy node's ancestry is missing or inconsistent."""

    code = "INCOMPLETE_HIERARCHY"


class InvalidAssignment(DomainError):
    """Raised when an assignment payload does not fit its element type."""

    code = "INVALID_ASSIGNMENT"


class ProjectionUnavailable(DomainError):
    """Raised when every dashboard read tier failed."""

    code = "PROJECTION_UNAVAILABLE"


class DataStoreError(DomainError):
    """Raised by adapters when the backing store fails or is unreachable."""

    code = "DATA_STORE_ERROR"
