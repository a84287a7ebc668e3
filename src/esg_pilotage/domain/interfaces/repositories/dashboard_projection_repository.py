# src/esg_pilotage/domain/interfaces/repositories/dashboard_projection_repository.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Dashboard projection repository interface.

Purpose:
    Read the materialized dashboard projection and its fallback, and ask the
    store to refresh the materialization.

Layer:
    domain/interfaces/repositories

Notes:
    - Both read methods filter on ``site_name`` when given, keeping rows of
      that site and rows with no site.
    - Both read methods order rows by process code then indicator code.
    - Failures surface as ``DataStoreError`` so callers can degrade.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from esg_pilotage.domain.entities.consolidation import DashboardRow


class DashboardProjectionRepository(Protocol):
    """Protocol for the dashboard read model."""

    async def refresh(self, organization_name: str) -> None:
        """Refresh the materialized projection."""

    async def fetch_primary(
        self, organization_name: str, year: int, site_name: str | None = None
    ) -> Sequence[DashboardRow]:
        """Read the materialized projection."""

    async def fetch_fallback(
        self, organization_name: str, year: int, site_name: str | None = None
    ) -> Sequence[DashboardRow]:
        """Read the fallback projection."""
