# src/esg_pilotage/application/use_cases/assignments/set_organization_assignments.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Use cases: assign or modify the taxonomy codes of an organization.

Purpose:
    Replace the full code list of one element kind for an organization.
    ``assign`` creates or overwrites; ``modify`` only overwrites an existing
    assignment.

Layer:
    application

Notes:
    - Replacement is a full overwrite, never a merge.
    - Duplicate codes collapse, first occurrence wins.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from esg_pilotage.application.uow import UnitOfWork
from esg_pilotage.application.use_cases.assignments.handlers import handler_for
from esg_pilotage.application.use_cases.common import require_organization
from esg_pilotage.domain.entities.taxonomy import OrganizationAssignment
from esg_pilotage.domain.enums.pilotage import ElementType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetOrganizationAssignmentsRequest:
    """New code list for one element kind of an organization.

    Attributes:
        organization_name: Target organization.
        element_type: Element kind being assigned.
        codes: Complete new code list. For sectors: ``[sector, subsector?]``.
    """

    organization_name: str
    element_type: ElementType
    codes: Sequence[str] = field(default_factory=tuple)


class SetOrganizationAssignmentsUseCase:
    """Create or overwrite an organization's assignment.

    Raises:
        NotFound: If the organization or any referenced code is unknown.
        InvalidAssignment: If a sector payload is malformed.
    """

    operation = "assign"

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: SetOrganizationAssignmentsRequest) -> OrganizationAssignment:
        logger.info(
            f"assignments.{self.operation}.start",
            extra={
                "organization": req.organization_name,
                "element_type": req.element_type.value,
                "requested": len(req.codes),
            },
        )

        async with self._uow as tx:
            await require_organization(tx, req.organization_name)
            codes = await self._write(tx, req)
            await tx.commit()

        logger.info(
            f"assignments.{self.operation}.success",
            extra={
                "organization": req.organization_name,
                "element_type": req.element_type.value,
                "count": len(codes),
            },
        )
        return OrganizationAssignment(
            organization_name=req.organization_name,
            element_type=req.element_type,
            codes=codes,
        )

    async def _write(
        self, tx: UnitOfWork, req: SetOrganizationAssignmentsRequest
    ) -> tuple[str, ...]:
        return await handler_for(req.element_type).assign(
            tx, req.organization_name, req.codes
        )


class ModifyOrganizationAssignmentsUseCase(SetOrganizationAssignmentsUseCase):
    """Overwrite an existing assignment.

    Raises:
        NotFound: If the organization, the current assignment or any
            referenced code is unknown.
        InvalidAssignment: If a sector payload is malformed.
    """

    operation = "modify"

    async def _write(
        self, tx: UnitOfWork, req: SetOrganizationAssignmentsRequest
    ) -> tuple[str, ...]:
        return await handler_for(req.element_type).modify(
            tx, req.organization_name, req.codes
        )
