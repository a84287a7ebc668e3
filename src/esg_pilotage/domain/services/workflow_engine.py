# src/esg_pilotage/domain/services/workflow_engine.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Value ledger workflow engine.

Purpose:
    Enforce the draft → submitted → validated/rejected state machine on
    ledger rows and the roles allowed to drive each transition.

Layer:
    domain

Notes:
    - Pure functions over immutable rows; every operation returns a new
      :class:`IndicatorValue` built with :func:`dataclasses.replace`.
    - Checks run before any change: a failing call never yields a partially
      updated row.
    - ``validated`` is terminal. ``rejected`` re-enters ``draft`` through
      :func:`edit`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime
from decimal import Decimal, InvalidOperation

from esg_pilotage.domain.entities.indicator_value import Actor, IndicatorValue
from esg_pilotage.domain.enums.pilotage import Role, Transition, ValueStatus
from esg_pilotage.domain.exceptions.pilotage import (
    InvalidNumericValue,
    InvalidTransition,
    MissingComment,
    TransitionNotPermitted,
)

EDIT_ROLES: frozenset[Role] = frozenset({Role.CONTRIBUTOR, Role.ADMIN})
EDITABLE_STATES: frozenset[ValueStatus] = frozenset({ValueStatus.DRAFT, ValueStatus.REJECTED})

TRANSITION_ROLES: Mapping[Transition, frozenset[Role]] = {
    Transition.SUBMIT: frozenset({Role.CONTRIBUTOR, Role.ADMIN}),
    Transition.APPROVE: frozenset({Role.VALIDATOR, Role.ADMIN}),
    Transition.REJECT: frozenset({Role.VALIDATOR, Role.ADMIN}),
}

SOURCE_STATES: Mapping[Transition, ValueStatus] = {
    Transition.SUBMIT: ValueStatus.DRAFT,
    Transition.APPROVE: ValueStatus.SUBMITTED,
    Transition.REJECT: ValueStatus.SUBMITTED,
}


def parse_value(raw: str | int | float | Decimal | None) -> Decimal | None:
    """Parse user input into a finite decimal.

    Blank input clears the value. A single decimal comma is accepted
    (``"12,5"``).

    Args:
        raw: Raw input as typed by the contributor or sent by a client.

    Returns:
        Decimal | None: Parsed value, or ``None`` for blank input.

    Raises:
        InvalidNumericValue: If the input is not a finite number.
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise InvalidNumericValue("Booleans are not numeric values.", details={"value": raw})
    if isinstance(raw, Decimal):
        parsed = raw
    elif isinstance(raw, int | float):
        parsed = Decimal(str(raw))
    else:
        text = raw.strip().replace("\u00a0", "").replace(" ", "")
        if not text:
            return None
        if text.count(",") == 1 and "." not in text:
            text = text.replace(",", ".")
        try:
            parsed = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidNumericValue(
                f"{raw!r} is not a number.", details={"value": raw}
            ) from exc

    if not parsed.is_finite():
        raise InvalidNumericValue(f"{raw!r} is not a finite number.", details={"value": str(raw)})
    return parsed


def ensure_permitted(actor: Actor, transition: Transition) -> None:
    """Raise ``TransitionNotPermitted`` unless ``actor`` may drive ``transition``."""
    if actor.role not in TRANSITION_ROLES[transition]:
        raise TransitionNotPermitted(
            f"Role {actor.role.value!r} may not {transition.value} values.",
            details={"operation": transition.value, "role": actor.role.value},
        )


def can_apply(transition: Transition, row: IndicatorValue) -> bool:
    """Return True when ``row`` is eligible for ``transition`` by state alone.

    Used by batch operations to pick rows; role checks still apply.
    """
    if row.status is not SOURCE_STATES[transition]:
        return False
    if transition is Transition.SUBMIT:
        return row.value is not None and row.is_persisted
    return True


def edit(
    row: IndicatorValue, new_value: Decimal | None, *, actor: Actor, now: datetime
) -> IndicatorValue:
    """Set a new value and return the row to ``draft``.

    Submission and validation metadata are cleared; the comment is kept so
    the contributor still sees a rejection rationale.

    Raises:
        TransitionNotPermitted: If the actor may not edit values.
        InvalidTransition: If the row is submitted or validated.
    """
    _require_role(actor, EDIT_ROLES, "edit", row)
    if row.status not in EDITABLE_STATES:
        raise InvalidTransition(
            f"Cannot edit a {row.status.value} value.",
            details=_details(row, operation="edit"),
        )
    return replace(
        row,
        value=new_value,
        status=ValueStatus.DRAFT,
        submitted_by=None,
        submitted_at=None,
        validated_by=None,
        validated_at=None,
        updated_at=now,
    )


def submit(row: IndicatorValue, *, actor: Actor, now: datetime) -> IndicatorValue:
    """Move a filled draft to ``submitted``.

    Raises:
        TransitionNotPermitted: If the actor may not submit.
        InvalidTransition: If the row is not a draft or has no value.
    """
    _require_role(actor, TRANSITION_ROLES[Transition.SUBMIT], Transition.SUBMIT.value, row)
    _require_state(row, Transition.SUBMIT)
    if row.value is None:
        raise InvalidTransition(
            "Cannot submit an empty value.",
            details=_details(row, operation=Transition.SUBMIT.value),
        )
    return replace(
        row,
        status=ValueStatus.SUBMITTED,
        submitted_by=actor.email,
        submitted_at=now,
        updated_at=now,
    )


def approve(
    row: IndicatorValue, *, actor: Actor, now: datetime, comment: str | None = None
) -> IndicatorValue:
    """Validate a submitted row, optionally with a comment.

    Raises:
        TransitionNotPermitted: If the actor may not validate.
        InvalidTransition: If the row is not submitted.
    """
    _require_role(actor, TRANSITION_ROLES[Transition.APPROVE], Transition.APPROVE.value, row)
    _require_state(row, Transition.APPROVE)
    cleaned = comment.strip() if comment else None
    return replace(
        row,
        status=ValueStatus.VALIDATED,
        validated_by=actor.email,
        validated_at=now,
        comment=cleaned or row.comment,
        updated_at=now,
    )


def reject(
    row: IndicatorValue, *, actor: Actor, now: datetime, comment: str | None
) -> IndicatorValue:
    """Reject a submitted row with a mandatory rationale.

    Raises:
        MissingComment: If ``comment`` is empty or whitespace.
        TransitionNotPermitted: If the actor may not validate.
        InvalidTransition: If the row is not submitted.
    """
    if comment is None or not comment.strip():
        raise MissingComment(
            "A comment is required to reject a value.",
            details=_details(row, operation=Transition.REJECT.value),
        )
    _require_role(actor, TRANSITION_ROLES[Transition.REJECT], Transition.REJECT.value, row)
    _require_state(row, Transition.REJECT)
    return replace(
        row,
        status=ValueStatus.REJECTED,
        validated_by=actor.email,
        validated_at=now,
        comment=comment.strip(),
        updated_at=now,
    )


def apply(
    transition: Transition,
    row: IndicatorValue,
    *,
    actor: Actor,
    now: datetime,
    comment: str | None = None,
) -> IndicatorValue:
    """Dispatch ``transition`` to its operation."""
    if transition is Transition.SUBMIT:
        return submit(row, actor=actor, now=now)
    if transition is Transition.APPROVE:
        return approve(row, actor=actor, now=now, comment=comment)
    return reject(row, actor=actor, now=now, comment=comment)


def _require_role(
    actor: Actor, allowed: frozenset[Role], operation: str, row: IndicatorValue
) -> None:
    if actor.role not in allowed:
        raise TransitionNotPermitted(
            f"Role {actor.role.value!r} may not {operation} values.",
            details=_details(row, operation=operation, role=actor.role.value),
        )


def _require_state(row: IndicatorValue, transition: Transition) -> None:
    required = SOURCE_STATES[transition]
    if row.status is not required:
        raise InvalidTransition(
            f"Cannot {transition.value} a {row.status.value} value; expected {required.value}.",
            details=_details(row, operation=transition.value),
        )


def _details(row: IndicatorValue, **extra: str) -> dict[str, str | None]:
    return {
        "value_id": str(row.id) if row.id is not None else None,
        "indicator_code": row.indicator_code,
        "status": row.status.value,
        **extra,
    }
