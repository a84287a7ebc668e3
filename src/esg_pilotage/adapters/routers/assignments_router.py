# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Organization assignments router (v1).

Purpose:
    Read and maintain which taxonomy elements (sectors, standards, issues,
    criteria, indicators, processes) are assigned to an organization.

        * GET    /v1/organizations/{organization_name}/assignments/{element_type}
        * PUT    /v1/organizations/{organization_name}/assignments/{element_type}
        * PATCH  /v1/organizations/{organization_name}/assignments/{element_type}
        * DELETE /v1/organizations/{organization_name}/assignments/{element_type}

    Writes require the admin role. Deleting an indicator or process
    assignment also removes the ledger rows bound to the removed codes.

Layer:
    adapters/routers
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, Path, Request, Response

from esg_pilotage.adapters.presenters.pilotage_presenter import PilotagePresenter
from esg_pilotage.adapters.routers.base_router import BaseRouter
from esg_pilotage.adapters.schemas.http.envelopes import SuccessEnvelope
from esg_pilotage.adapters.schemas.http.pilotage import (
    AssignmentHTTP,
    AssignmentWriteHTTP,
    DeletedAssignmentHTTP,
)
from esg_pilotage.application.use_cases.assignments.delete_organization_assignments import (
    DeleteOrganizationAssignmentsRequest,
    DeleteOrganizationAssignmentsUseCase,
)
from esg_pilotage.application.use_cases.assignments.get_organization_assignments import (
    GetOrganizationAssignmentsRequest,
    GetOrganizationAssignmentsUseCase,
)
from esg_pilotage.application.use_cases.assignments.set_organization_assignments import (
    ModifyOrganizationAssignmentsUseCase,
    SetOrganizationAssignmentsRequest,
    SetOrganizationAssignmentsUseCase,
)
from esg_pilotage.dependencies.pilotage import (
    AdminActor,
    CurrentActor,
    delete_assignments_uc,
    get_assignments_uc,
    modify_assignments_uc,
    set_assignments_uc,
)
from esg_pilotage.domain.enums.pilotage import ElementType

router = BaseRouter(version="v1", resource="organizations", tags=["Assignments"])
presenter = PilotagePresenter()

OrganizationName = Annotated[str, Path(min_length=1, description="Organization name.")]


@router.get(
    "/{organization_name}/assignments/{element_type}",
    response_model=SuccessEnvelope[AssignmentHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Get the codes of one element kind assigned to an organization",
)
async def get_assignments(
    request: Request,
    response: Response,
    organization_name: OrganizationName,
    element_type: ElementType,
    _actor: CurrentActor,
    uc: Annotated[GetOrganizationAssignmentsUseCase, Depends(get_assignments_uc)],
) -> Any:
    assignment = await uc.execute(
        GetOrganizationAssignmentsRequest(
            organization_name=organization_name, element_type=element_type
        )
    )
    result = presenter.assignment(assignment, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)


@router.put(
    "/{organization_name}/assignments/{element_type}",
    response_model=SuccessEnvelope[AssignmentHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Replace the codes of one element kind assigned to an organization",
)
async def set_assignments(
    request: Request,
    response: Response,
    organization_name: OrganizationName,
    element_type: ElementType,
    body: AssignmentWriteHTTP,
    _admin: AdminActor,
    uc: Annotated[SetOrganizationAssignmentsUseCase, Depends(set_assignments_uc)],
) -> Any:
    assignment = await uc.execute(
        SetOrganizationAssignmentsRequest(
            organization_name=organization_name,
            element_type=element_type,
            codes=tuple(body.codes),
        )
    )
    result = presenter.assignment(assignment, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)


@router.patch(
    "/{organization_name}/assignments/{element_type}",
    response_model=SuccessEnvelope[AssignmentHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Modify the codes of one element kind assigned to an organization",
)
async def modify_assignments(
    request: Request,
    response: Response,
    organization_name: OrganizationName,
    element_type: ElementType,
    body: AssignmentWriteHTTP,
    _admin: AdminActor,
    uc: Annotated[ModifyOrganizationAssignmentsUseCase, Depends(modify_assignments_uc)],
) -> Any:
    assignment = await uc.execute(
        SetOrganizationAssignmentsRequest(
            organization_name=organization_name,
            element_type=element_type,
            codes=tuple(body.codes),
        )
    )
    result = presenter.assignment(assignment, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)


@router.delete(
    "/{organization_name}/assignments/{element_type}",
    response_model=SuccessEnvelope[DeletedAssignmentHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Unassign every code of one element kind from an organization",
)
async def delete_assignments(
    request: Request,
    response: Response,
    organization_name: OrganizationName,
    element_type: ElementType,
    _admin: AdminActor,
    uc: Annotated[DeleteOrganizationAssignmentsUseCase, Depends(delete_assignments_uc)],
) -> Any:
    deleted = await uc.execute(
        DeleteOrganizationAssignmentsRequest(
            organization_name=organization_name, element_type=element_type
        )
    )
    result = presenter.deleted_assignment(deleted, trace_id=BaseRouter.trace_id(request))
    return BaseRouter.send_success(response, result)
