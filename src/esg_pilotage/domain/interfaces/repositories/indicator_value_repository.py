# src/esg_pilotage/domain/interfaces/repositories/indicator_value_repository.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Value ledger repository interface.

Purpose:
    Store and query monthly indicator values.

Layer:
    domain/interfaces/repositories

Notes:
    - Rows are unique by :class:`ValueKey`.
    - Updates are last-write-wins; no version check is performed.
    - Implementations must translate low-level DB/driver errors into
      ``DataStoreError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol
from uuid import UUID

from esg_pilotage.domain.entities.indicator_value import IndicatorValue, ValueKey
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.enums.pilotage import ValueStatus


class IndicatorValueRepository(Protocol):
    """Protocol for value ledger persistence."""

    async def get(self, value_id: UUID) -> IndicatorValue | None:
        """Return a row by identifier."""

    async def find(self, key: ValueKey) -> IndicatorValue | None:
        """Return the row with composite identity ``key``."""

    async def list_for_period(
        self,
        organization_name: str,
        *,
        year: int,
        month: int | None = None,
        scope: ConsolidationScope | None = None,
        statuses: Iterable[ValueStatus] | None = None,
        process_codes: Iterable[str] | None = None,
        indicator_codes: Iterable[str] | None = None,
    ) -> Sequence[IndicatorValue]:
        """List rows of one organization and year, optionally narrowed.

        Ordering: process code, indicator code, month, site.
        """

    async def insert(self, row: IndicatorValue) -> IndicatorValue:
        """Insert a row, overwriting one with the same key; return it with its identifier."""

    async def update(self, row: IndicatorValue) -> IndicatorValue:
        """Overwrite the stored row with the same identifier."""

    async def delete_for_codes(
        self,
        organization_name: str,
        *,
        indicator_codes: Iterable[str] | None = None,
        process_codes: Iterable[str] | None = None,
    ) -> int:
        """Delete rows bound to the given indicators or processes; return the count."""
