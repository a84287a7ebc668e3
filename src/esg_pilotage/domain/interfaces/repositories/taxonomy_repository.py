# src/esg_pilotage/domain/interfaces/repositories/taxonomy_repository.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Taxonomy repository interface.

Purpose:
    Read and extend organization-agnostic reference data (sectors,
    standards, issues, criteria, indicators, processes) and the yearly
    indicator targets set per organization.

Layer:
    domain/interfaces/repositories
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from esg_pilotage.domain.entities.taxonomy import (
    Indicator,
    IndicatorTarget,
    Process,
    Sector,
    TaxonomyElement,
)
from esg_pilotage.domain.enums.pilotage import ElementType


class TaxonomyRepository(Protocol):
    """Protocol for taxonomy reference data."""

    async def existing_codes(self, element_type: ElementType, codes: Iterable[str]) -> set[str]:
        """Return the subset of ``codes`` that exist for ``element_type``."""

    async def list_elements(
        self, element_type: ElementType, codes: Iterable[str]
    ) -> Sequence[TaxonomyElement]:
        """Return standards, issues or criteria matching ``codes``."""

    async def get_sector(self, name: str) -> Sector | None:
        """Return a sector with its subsectors."""

    async def get_indicator(self, code: str) -> Indicator | None:
        """Return the indicator with ``code`` or ``None``."""

    async def list_indicators(self, codes: Iterable[str]) -> Sequence[Indicator]:
        """Return indicators matching ``codes`` ordered by code."""

    async def add_indicator(self, indicator: Indicator) -> bool:
        """Insert an indicator unless its code exists; return whether a row was written."""

    async def list_processes(self, organization_name: str) -> Sequence[Process]:
        """Return processes owned by an organization ordered by code."""

    async def get_target(
        self, organization_name: str, indicator_code: str, year: int
    ) -> IndicatorTarget | None:
        """Return the target for one indicator and year."""

    async def set_target(self, target: IndicatorTarget) -> IndicatorTarget:
        """Insert or replace a target."""
