"""FastAPI application entry-point.

Assembles routers, middleware, exception handlers, and lifecycle hooks.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from ai_gateway import __version__
from ai_gateway.adapters.inbound.rest.routers import gateway_router, health_router
from ai_gateway.config import Settings, get_settings
from ai_gateway.dependencies import GatewayContainer, build_container
from ai_gateway.shared.errors import register_exception_handlers
from ai_gateway.shared.middleware import (
    LoggingMiddleware,
    MetricsMiddleware,
    RequestIdMiddleware,
)
from ai_gateway.shared.observability import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifecycle — startup & shutdown hooks."""
    settings: Settings = app.state.settings
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.is_production,
    )

    owns_container = getattr(app.state, "container", None) is None
    if owns_container:
        app.state.container = build_container(settings)
    container: GatewayContainer = app.state.container

    logger.info(
        "application_starting",
        env=settings.app_env.value,
        registry="redis" if settings.redis_url else "memory",
        probe_interval_s=settings.probe_interval_seconds,
    )

    # ── In-process probe schedule (optional) ─────────────────
    probe_task: asyncio.Task[None] | None = None
    if settings.probe_interval_seconds > 0:
        probe_task = asyncio.create_task(
            container.prober.run_forever(settings.probe_interval_seconds)
        )

    yield

    if probe_task is not None:
        probe_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await probe_task
    if owns_container:
        await container.close()
    logger.info("application_shutdown")


def create_app(
    settings: Settings | None = None,
    container: GatewayContainer | None = None,
) -> FastAPI:
    """Application factory — creates a fully configured FastAPI instance.

    Passing a pre-built ``container`` skips adapter construction; the caller
    then owns its lifecycle.
    """
    settings = settings or (container.settings if container else get_settings())

    app = FastAPI(
        title="AI Gateway",
        description=(
            "Multi-provider AI request gateway. Routes chat completions across "
            "configured language-model providers with priority failover, API key "
            "rotation and traffic-light health tracking."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.container = container

    # ── Middleware (order matters: last added = outermost) ────
    cors_origins = settings.cors_origins
    allow_all_origins = "*" in cors_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if allow_all_origins else cors_origins,
        allow_origin_regex=".*" if allow_all_origins else None,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.prometheus_enabled:
        app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # ── Exception handlers ───────────────────────────────────
    register_exception_handlers(app)

    # ── REST routers ─────────────────────────────────────────
    app.include_router(health_router, prefix="/api")
    app.include_router(gateway_router, prefix="/api")

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "message": "AI Gateway is running",
            "docs": "/docs",
            "health": "/api/health",
        }

    return app


# Uvicorn entry-point
app = create_app()
