# src/esg_pilotage/application/use_cases/assignments/delete_organization_assignments.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Use case: remove an organization's assignment of one element kind.

Purpose:
    Delete the assignment outright. When indicators or processes are
    removed, the ledger rows bound to them are deleted in the same
    transaction; this is the only path that deletes ledger rows.

Layer:
    application
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from esg_pilotage.application.uow import UnitOfWork, repository
from esg_pilotage.application.use_cases.assignments.handlers import handler_for
from esg_pilotage.application.use_cases.common import require_organization
from esg_pilotage.domain.enums.pilotage import ElementType
from esg_pilotage.domain.interfaces.repositories.indicator_value_repository import (
    IndicatorValueRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeleteOrganizationAssignmentsRequest:
    """Organization and element kind to unassign."""

    organization_name: str
    element_type: ElementType


@dataclass(frozen=True)
class DeletedAssignment:
    """Codes that were unassigned and ledger rows removed with them."""

    organization_name: str
    element_type: ElementType
    removed_codes: tuple[str, ...]
    deleted_values: int = 0


class DeleteOrganizationAssignmentsUseCase:
    """Delete an assignment and the ledger rows depending on it.

    Raises:
        NotFound: If the organization or the assignment does not exist.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: DeleteOrganizationAssignmentsRequest) -> DeletedAssignment:
        async with self._uow as tx:
            await require_organization(tx, req.organization_name)
            removed = await handler_for(req.element_type).delete(tx, req.organization_name)

            deleted_values = 0
            values = repository(tx, IndicatorValueRepository)
            if req.element_type is ElementType.INDICATORS:
                deleted_values = await values.delete_for_codes(
                    req.organization_name, indicator_codes=removed
                )
            elif req.element_type is ElementType.PROCESSES:
                deleted_values = await values.delete_for_codes(
                    req.organization_name, process_codes=removed
                )
            await tx.commit()

        logger.info(
            "assignments.delete.success",
            extra={
                "organization": req.organization_name,
                "element_type": req.element_type.value,
                "removed": len(removed),
                "deleted_values": deleted_values,
            },
        )
        return DeletedAssignment(
            organization_name=req.organization_name,
            element_type=req.element_type,
            removed_codes=removed,
            deleted_values=deleted_values,
        )
