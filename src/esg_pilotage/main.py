# src/esg_pilotage/main.py
# Copyright (c) Pilotage.
# SPDX-License-Identifier: MIT
"""
Application Entry (Adapters Bootstrap)

Synopsis:
    FastAPI bootstrap that wires middleware, exception handlers and all
    routers. Provides an application factory (`create_app`) used by uvicorn
    (`--factory`) and by the test suite.

Design:
    • Bootstrap only (no business logic): routers + middleware + handlers.
    • Lifespan initializes the database engine and disposes it on shutdown.
    • Root JSON logging is configured at import time.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.middleware.gzip import GZipMiddleware

from esg_pilotage.adapters.routers.api_router import router as api_router
from esg_pilotage.adapters.routers.health_router import get_health_probe
from esg_pilotage.config.settings import Settings, get_settings
from esg_pilotage.dependencies.health import get_database_probe
from esg_pilotage.infrastructure.database.session import (
    dispose_engine,
    init_engine_and_sessionmaker,
)
from esg_pilotage.infrastructure.http.errors import install_exception_handlers
from esg_pilotage.infrastructure.http.middleware.trace import TraceIdMiddleware
from esg_pilotage.infrastructure.logging.logger import (
    configure_root_logging,
    get_json_logger,
)

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
configure_root_logging()
logger = get_json_logger(__name__)


def _service_version() -> str:
    try:
        return version("esg-pilotage")
    except PackageNotFoundError:
        return "0.0.0"


def _stable_operation_id(route: APIRoute) -> str:
    """Deterministic operationId, e.g. ``get__v1_organizations_organization_name_values``."""
    methods = ",".join(sorted(route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "")
    return f"{methods.lower()}_{path.lower()}"


# -----------------------------------------------------------------------------
# Lifespan
# -----------------------------------------------------------------------------
@asynccontextmanager
async def runtime_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the database engine on startup and dispose it on shutdown."""
    settings: Settings = app.state.settings
    init_engine_and_sessionmaker(settings)
    logger.info("service.lifespan.started", extra={"service": settings.service_name})
    try:
        yield
    finally:
        await dispose_engine()
        logger.info("service.lifespan.stopped", extra={"service": settings.service_name})


def _attach_cors(app: FastAPI, settings: Settings) -> None:
    """Attach CORS middleware when origins are configured.

    Args:
        app: FastAPI application.
        settings: Runtime settings containing CORS config.
    """
    origins = settings.cors_allow_origins
    if not origins:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------
def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional explicit settings (tests); defaults to ``get_settings()``.

    Returns:
        FastAPI: Fully configured application instance.
    """
    settings = settings or get_settings()
    configure_root_logging(settings.log_level)
    service_version = _service_version()

    app = FastAPI(
        title="ESG Pilotage API",
        version=service_version,
        description="ESG data collection, validation workflow and consolidation.",
        lifespan=runtime_lifespan,
        generate_unique_id_function=_stable_operation_id,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
    )
    app.state.settings = settings

    app.add_middleware(GZipMiddleware, minimum_size=1024)
    _attach_cors(app, settings)
    # Added last so it runs first and every log line carries the trace id.
    app.add_middleware(TraceIdMiddleware)

    install_exception_handlers(app)
    app.dependency_overrides[get_health_probe] = get_database_probe
    app.include_router(api_router)

    logger.info(
        "service_startup",
        extra={
            "service": settings.service_name,
            "env": settings.environment.value,
            "version": service_version,
            "docs_enabled": settings.api_docs_enabled,
        },
    )
    return app


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(
        "esg_pilotage.main:create_app",
        factory=True,
        host="127.0.0.1",
        port=int(os.getenv("PORT", "8080")),
        reload=True,
    )
