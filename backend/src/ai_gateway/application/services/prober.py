"""Health prober — periodic liveness pings against every enabled entry."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from ai_gateway.application.dtos import ProbeResult
from ai_gateway.domain.entities import ModelEntry
from ai_gateway.domain.enums import ProbeOutcome
from ai_gateway.domain.services.health_policy import (
    probe_failure_updates,
    probe_success_updates,
)
from ai_gateway.ports.outbound import ChatProviderPort, ModelRegistryPort
from ai_gateway.shared.observability.metrics import PROBE_RESULTS

logger = structlog.get_logger(__name__)

PING_MESSAGES: list[dict[str, Any]] = [{"role": "user", "content": "ping"}]


class HealthProber:
    """Pings each enabled entry with its current key.

    Unlike live traffic the prober probes red entries too, so a recovered
    provider can climb back to green.  It never rotates keys and never
    counts towards ``used_today``.
    """

    def __init__(
        self,
        registry: ModelRegistryPort,
        providers: ChatProviderPort,
        *,
        red_threshold: int = 3,
    ) -> None:
        self._registry = registry
        self._providers = providers
        self._red_threshold = red_threshold

    async def probe_all(self) -> list[ProbeResult]:
        entries = await self._registry.list_entries()
        results: list[ProbeResult] = []
        for entry in entries:
            if not entry.enabled or not entry.has_keys:
                continue
            results.append(await self._probe(entry))

        failed = sum(1 for r in results if r.status == ProbeOutcome.FAILED.value)
        logger.info("health_probe_completed", probed=len(results), failed=failed)
        return results

    async def _probe(self, entry: ModelEntry) -> ProbeResult:
        try:
            await self._providers.call(entry, PING_MESSAGES, entry.current_key)
        except Exception as exc:
            error = str(exc)
            logger.warning("health_check_failed", model_id=entry.id, error=error)
            PROBE_RESULTS.labels(model_id=entry.id, outcome=ProbeOutcome.FAILED.value).inc()
            await self._record(
                entry, probe_failure_updates(entry, error, threshold=self._red_threshold)
            )
            return ProbeResult(id=entry.id, status=ProbeOutcome.FAILED.value, error=error)

        updates = probe_success_updates(entry)
        if updates:
            await self._record(entry, updates)
            logger.info("health_check_recovered", model_id=entry.id)
        PROBE_RESULTS.labels(model_id=entry.id, outcome=ProbeOutcome.OK.value).inc()
        return ProbeResult(id=entry.id, status=ProbeOutcome.OK.value)

    async def _record(self, entry: ModelEntry, updates: dict[str, Any]) -> None:
        # One failed write must not stop the remaining entries from being probed.
        try:
            await self._registry.update(entry.id, updates)
        except Exception as exc:
            logger.error("registry_health_update_failed", model_id=entry.id, error=str(exc))

    async def run_forever(self, interval_seconds: float) -> None:
        """Probe on a fixed interval until cancelled."""
        logger.info("health_probe_scheduler_started", interval_s=interval_seconds)
        while True:
            try:
                await self.probe_all()
            except Exception as exc:
                logger.exception("health_probe_cycle_failed", error=str(exc))
            await asyncio.sleep(interval_seconds)
