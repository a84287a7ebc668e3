# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""Pilotage CLI: operational commands (dashboard refresh, consolidation).

Commands:
    dashboard refresh   Refresh the dashboard materialization and report the tier served.
    consolidate run     Consolidate one indicator and print the figures as JSON lines.

Environment:
    DATABASE_URL        Async SQLAlchemy URL (postgresql+asyncpg).
"""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime

import typer

from esg_pilotage.adapters.uow.sqlalchemy_uow import SqlAlchemyUnitOfWork
from esg_pilotage.application.use_cases.consolidation.consolidate_indicators import (
    ConsolidateIndicatorRequest,
    ConsolidateIndicatorUseCase,
)
from esg_pilotage.application.use_cases.dashboard.get_dashboard_projection import (
    GetDashboardProjectionRequest,
    GetDashboardProjectionUseCase,
)
from esg_pilotage.domain.entities.organization import ConsolidationScope
from esg_pilotage.domain.exceptions.base import DomainError
from esg_pilotage.infrastructure.database.session import build_sessionmaker
from esg_pilotage.infrastructure.logging.logger import configure_root_logging, get_json_logger

configure_root_logging()
log = get_json_logger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)
dashboard_app = typer.Typer(no_args_is_help=True)
consolidate_app = typer.Typer(no_args_is_help=True)
app.add_typer(dashboard_app, name="dashboard")
app.add_typer(consolidate_app, name="consolidate")


def _fail(exc: DomainError) -> None:
    log.error("cli.command.failed", extra={"code": exc.code, "error": exc.message})
    typer.echo(f"{exc.code}: {exc.message}", err=True)
    raise typer.Exit(code=1)


@dashboard_app.command("refresh")
def dashboard_refresh(
    org: str = typer.Option(..., "--org", help="Organization name."),  # noqa: B008
    year: int = typer.Option(  # noqa: B008
        datetime.now(UTC).year, "--year", help="Reporting year to read back."
    ),
    database_url: str = typer.Option(  # noqa: B008
        ..., envvar="DATABASE_URL", help="Async SQLAlchemy URL."
    ),
) -> None:
    """Refresh the dashboard materialization, then read it back for ``org``."""
    engine, sessionmaker = build_sessionmaker(database_url)

    async def _run() -> None:
        try:
            uc = GetDashboardProjectionUseCase(SqlAlchemyUnitOfWork(session_factory=sessionmaker))
            projection = await uc.execute(
                GetDashboardProjectionRequest(organization_name=org, year=year, refresh=True)
            )
        finally:
            await engine.dispose()
        log.info(
            "cli.dashboard.refresh.done",
            extra={
                "organization": org,
                "year": year,
                "tier": projection.tier.value,
                "rows": len(projection.rows),
                "refresh_failed": projection.refresh_failed,
            },
        )
        typer.echo(
            f"tier={projection.tier.value} rows={len(projection.rows)} "
            f"refresh_failed={str(projection.refresh_failed).lower()}"
        )
        if projection.refresh_failed:
            raise typer.Exit(code=2)

    try:
        asyncio.run(_run())
    except DomainError as exc:
        _fail(exc)


@consolidate_app.command("run")
def consolidate_run(
    org: str = typer.Option(..., "--org", help="Organization name."),  # noqa: B008
    indicator: str = typer.Option(..., "--indicator", help="Indicator code."),  # noqa: B008
    year: int = typer.Option(..., "--year", help="Reporting year."),  # noqa: B008
    site: str | None = typer.Option(None, "--site", help="Restrict to one site."),  # noqa: B008
    database_url: str = typer.Option(  # noqa: B008
        ..., envvar="DATABASE_URL", help="Async SQLAlchemy URL."
    ),
) -> None:
    """Consolidate ``indicator`` for ``org`` and print one JSON object per process."""
    engine, sessionmaker = build_sessionmaker(database_url)

    async def _run() -> None:
        try:
            uc = ConsolidateIndicatorUseCase(SqlAlchemyUnitOfWork(session_factory=sessionmaker))
            items = await uc.execute(
                ConsolidateIndicatorRequest(
                    organization_name=org,
                    indicator_code=indicator,
                    year=year,
                    scope=ConsolidationScope(site=site),
                )
            )
        finally:
            await engine.dispose()
        for item in items:
            typer.echo(
                json.dumps(
                    {
                        "process_code": item.process_code,
                        "indicator_code": item.indicator_code,
                        "year": item.year,
                        "formula": item.formula.value,
                        "value": item.value,
                        "target_value": item.target_value,
                        "previous_year_value": item.previous_year_value,
                        "variation": item.variation,
                        "performance": item.performance,
                        "sites_count": item.sites_count,
                    },
                    default=str,
                )
            )
        log.info(
            "cli.consolidate.done",
            extra={"organization": org, "indicator_code": indicator, "rows": len(items)},
        )

    try:
        asyncio.run(_run())
    except DomainError as exc:
        _fail(exc)


if __name__ == "__main__":  # pragma: no cover
    app()
