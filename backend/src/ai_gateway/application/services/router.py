"""Failover router — the core of the gateway.

Reads the registry, orders the usable entries by priority and tries them
one after another until a provider answers.  Every attempt writes its
outcome back to the registry (key cursor, usage, traffic light) so that
later requests, and other gateway instances, see the same health picture.
"""

from __future__ import annotations

import time
from typing import Any

import structlog

from ai_gateway.application.dtos import ChatRequest
from ai_gateway.domain.entities import ModelEntry
from ai_gateway.domain.exceptions import AllProvidersFailedError, NoProvidersAvailableError
from ai_gateway.domain.services.health_policy import (
    live_failure_updates,
    live_success_updates,
)
from ai_gateway.ports.outbound import ChatProviderPort, ModelRegistryPort
from ai_gateway.shared.observability.metrics import (
    GATEWAY_REQUESTS,
    PROVIDER_ATTEMPTS,
    PROVIDER_LATENCY,
)

logger = structlog.get_logger(__name__)


def select_candidates(entries: list[ModelEntry]) -> list[ModelEntry]:
    """Enabled, non-red entries in ascending priority (stable on ties)."""
    return sorted((e for e in entries if e.is_routable), key=lambda e: e.priority)


class FailoverRouter:
    """Routes one completion request across the registry's candidates."""

    def __init__(
        self,
        registry: ModelRegistryPort,
        providers: ChatProviderPort,
        *,
        red_threshold: int = 5,
    ) -> None:
        self._registry = registry
        self._providers = providers
        self._red_threshold = red_threshold

    async def route(self, request: ChatRequest) -> dict[str, Any]:
        """Return the first successful provider response.

        Raises:
            NoProvidersAvailableError: No entry is enabled and non-red.
            AllProvidersFailedError: Every candidate failed or had no keys.
        """
        log = logger.bind(feature=request.feature)
        candidates = select_candidates(await self._registry.list_entries())

        if not candidates:
            log.error("no_active_models")
            GATEWAY_REQUESTS.labels(feature=request.feature, outcome="no_providers").inc()
            raise NoProvidersAvailableError()

        messages = request.provider_messages()
        tools = request.provider_tools()
        last_error: str | None = None
        attempted = 0

        for entry in candidates:
            if not entry.has_keys:
                log.debug("model_skipped_no_keys", model_id=entry.id)
                continue

            attempted += 1
            api_key = entry.current_key
            start = time.monotonic()
            try:
                result = await self._providers.call(
                    entry,
                    messages,
                    api_key,
                    tools=tools,
                    tool_choice=request.tool_choice,
                )
            except Exception as exc:
                last_error = str(exc)
                PROVIDER_ATTEMPTS.labels(provider=entry.provider, outcome="failure").inc()
                log.warning(
                    "provider_attempt_failed",
                    model_id=entry.id,
                    provider=entry.provider,
                    error=last_error,
                )
                await self._record(entry, live_failure_updates(
                    entry, last_error, threshold=self._red_threshold,
                ))
                continue

            latency = time.monotonic() - start
            PROVIDER_ATTEMPTS.labels(provider=entry.provider, outcome="success").inc()
            PROVIDER_LATENCY.labels(provider=entry.provider).observe(latency)
            await self._record(entry, live_success_updates(entry))

            if attempted > 1:
                log.info("provider_failover_success", model_id=entry.id, attempts=attempted)
            else:
                log.info(
                    "provider_request_success",
                    model_id=entry.id,
                    latency_ms=round(latency * 1000, 1),
                )
            GATEWAY_REQUESTS.labels(feature=request.feature, outcome="success").inc()
            return result

        log.error("all_providers_failed", attempted=attempted, last_error=last_error)
        GATEWAY_REQUESTS.labels(feature=request.feature, outcome="all_failed").inc()
        raise AllProvidersFailedError(last_error)

    async def _record(self, entry: ModelEntry, updates: dict[str, Any]) -> None:
        # A store failure must never replace the provider outcome.
        try:
            await self._registry.update(entry.id, updates)
        except Exception as exc:
            logger.error("registry_health_update_failed", model_id=entry.id, error=str(exc))
