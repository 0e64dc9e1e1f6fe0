"""Dependency wiring — builds the adapters once and hands them to routes.

The container is created in the application lifespan (or passed in by
tests) and stored on ``app.state``; route handlers receive its parts
through FastAPI's ``Depends()``.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from fastapi import Request

from ai_gateway.adapters.outbound.llm import ProviderClient
from ai_gateway.adapters.outbound.registry import create_model_registry
from ai_gateway.adapters.outbound.usage import create_usage_counter
from ai_gateway.application.services import FailoverRouter, HealthProber
from ai_gateway.config import Settings
from ai_gateway.ports.outbound import ChatProviderPort, ModelRegistryPort, UsageCounterPort

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class GatewayContainer:
    settings: Settings
    registry: ModelRegistryPort
    usage: UsageCounterPort
    providers: ChatProviderPort
    router: FailoverRouter
    prober: HealthProber

    async def close(self) -> None:
        for name, resource in (
            ("providers", self.providers),
            ("registry", self.registry),
            ("usage", self.usage),
        ):
            try:
                await resource.close()
            except Exception as exc:
                logger.warning("resource_close_failed", resource=name, error=str(exc))


def build_container(
    settings: Settings,
    *,
    registry: ModelRegistryPort | None = None,
    usage: UsageCounterPort | None = None,
    providers: ChatProviderPort | None = None,
) -> GatewayContainer:
    """Assemble the gateway from settings; any part may be supplied instead."""
    if registry is None:
        registry = create_model_registry(
            settings.redis_url,
            prefix=settings.registry_key_prefix,
            max_connections=settings.redis_max_connections,
        )
    if usage is None:
        usage = create_usage_counter(settings.redis_url, prefix=settings.usage_key_prefix)
    if providers is None:
        providers = ProviderClient(
            timeout=settings.provider_timeout_seconds,
            openrouter_referer=settings.openrouter_referer,
            openrouter_title=settings.openrouter_title,
        )
    return GatewayContainer(
        settings=settings,
        registry=registry,
        usage=usage,
        providers=providers,
        router=FailoverRouter(registry, providers, red_threshold=settings.live_red_threshold),
        prober=HealthProber(registry, providers, red_threshold=settings.probe_red_threshold),
    )


# ── FastAPI dependencies ─────────────────────────────────────
def get_container(request: Request) -> GatewayContainer:
    return request.app.state.container


def get_failover_router(request: Request) -> FailoverRouter:
    return get_container(request).router


def get_prober(request: Request) -> HealthProber:
    return get_container(request).prober


def get_registry(request: Request) -> ModelRegistryPort:
    return get_container(request).registry


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
