# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Dependency wiring for the pilotage HTTP layer.

Purpose:
    Provide FastAPI dependency hooks building the unit of work, the use
    cases on top of it, and the calling actor.

Layer:
    dependencies

Notes:
    Tests override :func:`get_uow` with an in-memory unit of work; every use
    case provider follows from it.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from esg_pilotage.adapters.uow.sqlalchemy_uow import SqlAlchemyUnitOfWork
from esg_pilotage.application.uow import UnitOfWork
from esg_pilotage.application.use_cases.assignments.delete_organization_assignments import (
    DeleteOrganizationAssignmentsUseCase,
)
from esg_pilotage.application.use_cases.assignments.get_organization_assignments import (
    GetOrganizationAssignmentsUseCase,
)
from esg_pilotage.application.use_cases.assignments.set_organization_assignments import (
    ModifyOrganizationAssignmentsUseCase,
    SetOrganizationAssignmentsUseCase,
)
from esg_pilotage.application.use_cases.consolidation.consolidate_indicators import (
    ConsolidateIndicatorUseCase,
    ListConsolidatedIndicatorsUseCase,
)
from esg_pilotage.application.use_cases.dashboard.get_dashboard_projection import (
    GetDashboardProjectionUseCase,
)
from esg_pilotage.application.use_cases.taxonomy.ensure_indicator_exists import (
    EnsureIndicatorExistsUseCase,
)
from esg_pilotage.application.use_cases.taxonomy.set_indicator_target import (
    SetIndicatorTargetUseCase,
)
from esg_pilotage.application.use_cases.values.batch_transition import BatchTransitionUseCase
from esg_pilotage.application.use_cases.values.enter_indicator_value import (
    EnterIndicatorValueUseCase,
)
from esg_pilotage.application.use_cases.values.get_period_values import GetPeriodValuesUseCase
from esg_pilotage.application.use_cases.values.transition_indicator_value import (
    TransitionIndicatorValueUseCase,
)
from esg_pilotage.domain.entities.indicator_value import Actor
from esg_pilotage.domain.enums.pilotage import Role
from esg_pilotage.infrastructure.database.session import get_sessionmaker

ACTOR_EMAIL_HEADER = "X-Actor-Email"
ACTOR_ROLE_HEADER = "X-Actor-Role"


def get_uow() -> UnitOfWork:
    """Return a unit of work bound to the application sessionmaker."""
    return SqlAlchemyUnitOfWork(session_factory=get_sessionmaker())


UoW = Annotated[UnitOfWork, Depends(get_uow)]


def get_actor(
    email: Annotated[str | None, Header(alias=ACTOR_EMAIL_HEADER)] = None,
    role: Annotated[str | None, Header(alias=ACTOR_ROLE_HEADER)] = None,
) -> Actor:
    """Return the caller identity forwarded by the gateway.

    Raises:
        HTTPException: 401 when either header is missing or the role is unknown.
    """
    if not email or not email.strip() or not role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{ACTOR_EMAIL_HEADER} and {ACTOR_ROLE_HEADER} headers are required",
        )
    try:
        parsed = Role(role.strip().lower())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role {role!r}",
        ) from exc
    return Actor(email=email.strip(), role=parsed)


def get_admin(actor: Annotated[Actor, Depends(get_actor)]) -> Actor:
    """Return the caller when it holds the admin role, else raise 403."""
    if actor.role is not Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This operation requires the admin role",
        )
    return actor


CurrentActor = Annotated[Actor, Depends(get_actor)]
AdminActor = Annotated[Actor, Depends(get_admin)]


def get_assignments_uc(uow: UoW) -> GetOrganizationAssignmentsUseCase:
    return GetOrganizationAssignmentsUseCase(uow)


def set_assignments_uc(uow: UoW) -> SetOrganizationAssignmentsUseCase:
    return SetOrganizationAssignmentsUseCase(uow)


def modify_assignments_uc(uow: UoW) -> ModifyOrganizationAssignmentsUseCase:
    return ModifyOrganizationAssignmentsUseCase(uow)


def delete_assignments_uc(uow: UoW) -> DeleteOrganizationAssignmentsUseCase:
    return DeleteOrganizationAssignmentsUseCase(uow)


def ensure_indicator_uc(uow: UoW) -> EnsureIndicatorExistsUseCase:
    return EnsureIndicatorExistsUseCase(uow)


def set_target_uc(uow: UoW) -> SetIndicatorTargetUseCase:
    return SetIndicatorTargetUseCase(uow)


def get_period_values_uc(uow: UoW) -> GetPeriodValuesUseCase:
    return GetPeriodValuesUseCase(uow)


def enter_value_uc(uow: UoW) -> EnterIndicatorValueUseCase:
    return EnterIndicatorValueUseCase(uow)


def transition_value_uc(uow: UoW) -> TransitionIndicatorValueUseCase:
    return TransitionIndicatorValueUseCase(uow)


def batch_transition_uc(uow: UoW) -> BatchTransitionUseCase:
    return BatchTransitionUseCase(uow)


def consolidate_indicator_uc(uow: UoW) -> ConsolidateIndicatorUseCase:
    return ConsolidateIndicatorUseCase(uow)


def list_consolidated_uc(uow: UoW) -> ListConsolidatedIndicatorsUseCase:
    return ListConsolidatedIndicatorsUseCase(uow)


def dashboard_uc(uow: UoW) -> GetDashboardProjectionUseCase:
    return GetDashboardProjectionUseCase(uow)
