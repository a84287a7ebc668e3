# src/esg_pilotage/application/use_cases/assignments/get_organization_assignments.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Use case: list the taxonomy codes assigned to an organization.

Layer:
    application
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from esg_pilotage.application.uow import UnitOfWork
from esg_pilotage.application.use_cases.assignments.handlers import handler_for
from esg_pilotage.application.use_cases.common import require_organization
from esg_pilotage.domain.entities.taxonomy import OrganizationAssignment
from esg_pilotage.domain.enums.pilotage import ElementType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GetOrganizationAssignmentsRequest:
    """Organization and element kind to read."""

    organization_name: str
    element_type: ElementType


class GetOrganizationAssignmentsUseCase:
    """Return the codes of one element kind assigned to an organization.

    An organization without an assignment yields an empty code list.

    Raises:
        NotFound: If the organization does not exist.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: GetOrganizationAssignmentsRequest) -> OrganizationAssignment:
        async with self._uow as tx:
            await require_organization(tx, req.organization_name)
            codes = await handler_for(req.element_type).list(tx, req.organization_name)

        logger.info(
            "assignments.get.success",
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
