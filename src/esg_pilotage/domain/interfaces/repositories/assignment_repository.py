# src/esg_pilotage/domain/interfaces/repositories/assignment_repository.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Organization assignment repository interface.

Purpose:
    Persist which taxonomy elements an organization uses. Code-list kinds
    (standards, issues, criteria, indicators) are stored as one list per
    organization; sectors as one sector/subsector pair; processes through
    their owning organization.

Layer:
    domain/interfaces/repositories

Notes:
    Writes are full overwrites. Deletes remove the assignment outright.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from esg_pilotage.domain.enums.pilotage import ElementType


class AssignmentRepository(Protocol):
    """Protocol for organization-to-element assignments."""

    async def get_codes(
        self, organization_name: str, element_type: ElementType
    ) -> tuple[str, ...] | None:
        """Return the assigned code list, or ``None`` when nothing is assigned."""

    async def set_codes(
        self, organization_name: str, element_type: ElementType, codes: Sequence[str]
    ) -> None:
        """Replace the assigned code list."""

    async def delete_codes(self, organization_name: str, element_type: ElementType) -> bool:
        """Delete the code list; return whether one existed."""

    async def get_sector(self, organization_name: str) -> tuple[str, str | None] | None:
        """Return the assigned ``(sector, subsector)`` pair."""

    async def set_sector(
        self, organization_name: str, sector: str, subsector: str | None
    ) -> None:
        """Replace the assigned sector pair."""

    async def delete_sector(self, organization_name: str) -> bool:
        """Delete the sector assignment; return whether one existed."""

    async def get_process_codes(self, organization_name: str) -> tuple[str, ...]:
        """Return codes of processes owned by the organization."""

    async def get_process_owners(self, codes: Sequence[str]) -> dict[str, str | None]:
        """Return the owning organization (or ``None``) of each known process code."""

    async def set_process_codes(self, organization_name: str, codes: Sequence[str]) -> None:
        """Make the organization own exactly ``codes``; others are detached."""
