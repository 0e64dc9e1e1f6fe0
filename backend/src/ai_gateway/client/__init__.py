"""Client-side orchestration for application code calling the gateway."""

from __future__ import annotations

from ai_gateway.adapters.outbound.usage import create_usage_counter
from ai_gateway.client.content import ContentService, LessonContext
from ai_gateway.client.execution import AIExecutor
from ai_gateway.client.gateway import GatewayClient
from ai_gateway.client.prompts import PromptSet, PromptTemplates
from ai_gateway.client.quota import TOTAL_CAPACITY, QuotaGuard, quota_limits
from ai_gateway.config import Settings


def create_content_service(settings: Settings) -> ContentService:
    """Wire a content service from settings (shared usage counters when Redis is set)."""
    usage = create_usage_counter(settings.redis_url, prefix=settings.usage_key_prefix)
    executor = AIExecutor(
        QuotaGuard(usage, pilot_ratio=settings.ai_pilot_ratio),
        max_retries=settings.client_max_retries,
        retry_delay=settings.client_retry_delay_seconds,
    )
    client = GatewayClient(settings.gateway_url, timeout=settings.client_timeout_seconds)
    return ContentService(
        client,
        executor,
        instruction=settings.ai_instruction,
        templates=PromptTemplates.from_settings(settings),
        bulk_concurrency=settings.bulk_concurrency,
    )


__all__ = [
    "AIExecutor",
    "ContentService",
    "GatewayClient",
    "LessonContext",
    "PromptSet",
    "PromptTemplates",
    "QuotaGuard",
    "TOTAL_CAPACITY",
    "create_content_service",
    "quota_limits",
]
