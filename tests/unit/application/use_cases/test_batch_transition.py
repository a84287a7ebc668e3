# tests/unit/application/use_cases/test_batch_transition.py
from __future__ import annotations

import pytest

from esg_pilotage.application.use_cases.values.batch_transition import (
    BatchTransitionRequest,
    BatchTransitionUseCase,
)
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.enums.pilotage import Transition, ValueStatus
from esg_pilotage.domain.exceptions.pilotage import (
    MissingComment,
    NotFound,
    TransitionNotPermitted,
)
from tests.fixtures.pilotage_fakes import CONTRIBUTOR, VALIDATOR, FakeUnitOfWork, value_row


def _seed_march(uow: FakeUnitOfWork) -> None:
    sites = ["Plant North", "Plant South", "Plant North", "Plant South", "Plant North"]
    indicators = ["CO2_TONS", "CO2_TONS", "WATER_M3", "WATER_M3", "HEADCOUNT"]
    for site, code in zip(sites, indicators, strict=True):
        uow.values.add(
            value_row(
                site=site,
                indicator_code=code,
                process_code="HR" if code == "HEADCOUNT" else "ENV",
                month=3,
                status=ValueStatus.SUBMITTED,
            )
        )
    for site in ("Plant North", "Plant South", "HQ"):
        uow.values.add(value_row(site=site, month=3, status=ValueStatus.DRAFT))


@pytest.mark.anyio
async def test_approve_all_transitions_submitted_rows_and_skips_drafts(
    uow: FakeUnitOfWork,
) -> None:
    _seed_march(uow)

    result = await BatchTransitionUseCase(uow).execute(
        BatchTransitionRequest(
            organization_name="Acme",
            year=2024,
            month=3,
            transition=Transition.APPROVE,
            actor=VALIDATOR,
        )
    )

    assert len(result.transitioned) == 5
    assert result.skipped == 3
    assert result.failed == ()
    assert all(r.status is ValueStatus.VALIDATED for r in result.transitioned)
    statuses = sorted(r.status.value for r in uow.values.rows.values())
    assert statuses == ["draft"] * 3 + ["validated"] * 5


@pytest.mark.anyio
async def test_failed_row_does_not_abort_the_batch(uow: FakeUnitOfWork) -> None:
    _seed_march(uow)
    broken = next(r for r in uow.values.rows.values() if r.status is ValueStatus.SUBMITTED)
    assert broken.id is not None
    uow.values.failing_updates.add(broken.id)

    result = await BatchTransitionUseCase(uow).execute(
        BatchTransitionRequest(
            organization_name="Acme",
            year=2024,
            month=3,
            transition=Transition.APPROVE,
            actor=VALIDATOR,
        )
    )

    assert len(result.transitioned) == 4
    assert [(f.value_id, f.code) for f in result.failed] == [(broken.id, "DATA_STORE_ERROR")]
    assert uow.values.rows[broken.id].status is ValueStatus.SUBMITTED


@pytest.mark.anyio
async def test_submit_all_within_scope_and_process_filter(uow: FakeUnitOfWork) -> None:
    uow.values.add(
        value_row(site="Plant North", month=5, status=ValueStatus.DRAFT),
        value_row(site="Plant North", month=5, status=ValueStatus.DRAFT, value=None),
        value_row(
            site="HQ", subsidiary=None, business_line=None, month=5, status=ValueStatus.DRAFT
        ),
        value_row(
            site="Plant North",
            process_code="HR",
            indicator_code="HEADCOUNT",
            month=5,
            status=ValueStatus.DRAFT,
        ),
    )

    result = await BatchTransitionUseCase(uow).execute(
        BatchTransitionRequest(
            organization_name="Acme",
            year=2024,
            month=5,
            transition=Transition.SUBMIT,
            actor=CONTRIBUTOR,
            scope=ConsolidationScope(subsidiary="Acme Power"),
            process_codes=["ENV"],
        )
    )

    assert len(result.transitioned) == 1
    assert result.transitioned[0].submitted_by == CONTRIBUTOR.email
    # The empty draft is selected by scope but not eligible.
    assert result.skipped == 1


@pytest.mark.anyio
async def test_reject_all_requires_comment(uow: FakeUnitOfWork) -> None:
    with pytest.raises(MissingComment):
        await BatchTransitionUseCase(uow).execute(
            BatchTransitionRequest(
                organization_name="Acme",
                year=2024,
                month=3,
                transition=Transition.REJECT,
                actor=VALIDATOR,
            )
        )
    assert uow.entered == 0


@pytest.mark.anyio
async def test_reject_all_stores_comment_on_each_row(uow: FakeUnitOfWork) -> None:
    _seed_march(uow)

    result = await BatchTransitionUseCase(uow).execute(
        BatchTransitionRequest(
            organization_name="Acme",
            year=2024,
            month=3,
            transition=Transition.REJECT,
            actor=VALIDATOR,
            comment="March invoices missing",
        )
    )

    assert len(result.transitioned) == 5
    assert {r.comment for r in result.transitioned} == {"March invoices missing"}


@pytest.mark.anyio
async def test_role_is_checked_once_up_front(uow: FakeUnitOfWork) -> None:
    _seed_march(uow)

    with pytest.raises(TransitionNotPermitted):
        await BatchTransitionUseCase(uow).execute(
            BatchTransitionRequest(
                organization_name="Acme",
                year=2024,
                month=3,
                transition=Transition.APPROVE,
                actor=CONTRIBUTOR,
            )
        )
    assert uow.commits == 0


@pytest.mark.anyio
async def test_unknown_organization(uow: FakeUnitOfWork) -> None:
    with pytest.raises(NotFound):
        await BatchTransitionUseCase(uow).execute(
            BatchTransitionRequest(
                organization_name="Initech",
                year=2024,
                month=3,
                transition=Transition.SUBMIT,
                actor=CONTRIBUTOR,
            )
        )
