"""Health, Gateway, Probe, Seed, Models — REST routers."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import ORJSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from ai_gateway import __version__
from ai_gateway.application.dtos import (
    ChatRequest,
    HealthResponse,
    ModelSummary,
    ProbeResponse,
    SeedResponse,
)
from ai_gateway.application.services import FailoverRouter, HealthProber, seed_registry
from ai_gateway.config import Settings
from ai_gateway.dependencies import (
    get_app_settings,
    get_failover_router,
    get_prober,
    get_registry,
)
from ai_gateway.domain.exceptions import GatewayError
from ai_gateway.ports.outbound import ModelRegistryPort

logger = structlog.get_logger(__name__)

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,OPTIONS,PATCH,DELETE,POST,PUT",
    "Access-Control-Allow-Headers": (
        "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
        "Content-MD5, Content-Type, Date, X-Api-Version"
    ),
}


# ═══════════════════════════════════════════════════════════════
#  Health
# ═══════════════════════════════════════════════════════════════
health_router = APIRouter(tags=["Health"])


@health_router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_app_settings),
    registry: ModelRegistryPort = Depends(get_registry),
) -> ORJSONResponse:
    registry_ok = await registry.health_check()
    body = HealthResponse(
        status="ok" if registry_ok else "degraded",
        version=__version__,
        environment=settings.app_env.value,
        services={"registry": "connected" if registry_ok else "disconnected"},
    )
    return ORJSONResponse(content=body.model_dump(), status_code=200 if registry_ok else 503)


@health_router.get("/metrics")
async def prometheus_metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# ═══════════════════════════════════════════════════════════════
#  Gateway
# ═══════════════════════════════════════════════════════════════
gateway_router = APIRouter(tags=["Gateway"])


@gateway_router.post("/ai")
async def complete(
    body: ChatRequest,
    router: FailoverRouter = Depends(get_failover_router),
) -> ORJSONResponse:
    """Route a chat completion through the configured providers."""
    try:
        result = await router.route(body)
    except GatewayError:
        raise
    except Exception as exc:
        logger.exception("ai_handler_fatal_error", error=str(exc))
        return ORJSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "detail": str(exc)},
        )
    return ORJSONResponse(content=result)


@gateway_router.options("/ai", include_in_schema=False)
async def complete_preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


@gateway_router.api_route(
    "/ai", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False
)
async def complete_method_not_allowed() -> ORJSONResponse:
    return ORJSONResponse(status_code=405, content={"error": "Method not allowed"})


# ═══════════════════════════════════════════════════════════════
#  Health probe (cron target)
# ═══════════════════════════════════════════════════════════════
@gateway_router.api_route("/cron", methods=["GET", "POST"], response_model=ProbeResponse)
async def run_health_probe(prober: HealthProber = Depends(get_prober)) -> Any:
    try:
        results = await prober.probe_all()
    except Exception as exc:
        logger.exception("health_probe_failed", error=str(exc))
        return ORJSONResponse(status_code=500, content={"error": str(exc)})
    return ORJSONResponse(content={
        "success": True,
        "results": [r.model_dump(exclude_none=True) for r in results],
    })


# ═══════════════════════════════════════════════════════════════
#  Registry admin
# ═══════════════════════════════════════════════════════════════
@gateway_router.post("/seed", response_model=SeedResponse)
async def seed(
    settings: Settings = Depends(get_app_settings),
    registry: ModelRegistryPort = Depends(get_registry),
) -> Any:
    try:
        count = await seed_registry(registry, settings)
    except Exception as exc:
        logger.exception("registry_seed_failed", error=str(exc))
        return ORJSONResponse(status_code=500, content={"error": str(exc)})
    return SeedResponse(count=count)


@gateway_router.get("/models", response_model=list[ModelSummary])
async def list_models(registry: ModelRegistryPort = Depends(get_registry)) -> list[dict[str, Any]]:
    return [entry.to_public() for entry in await registry.list_entries()]
