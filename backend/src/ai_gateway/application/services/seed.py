"""Starter catalog and the seed operation that installs it."""

from __future__ import annotations

import structlog

from ai_gateway.config import Settings
from ai_gateway.domain.entities import ModelEntry
from ai_gateway.domain.enums import Provider
from ai_gateway.ports.outbound import ModelRegistryPort

logger = structlog.get_logger(__name__)

# (id, name, provider, model_id, enabled, priority, daily_limit)
STARTER_CATALOG: tuple[tuple[str, str, Provider, str, bool, int, int], ...] = (
    ("groq-llama3", "Groq Llama 3", Provider.GROQ, "llama3-8b-8192", True, 1, 5000),
    ("gemini-pro", "Gemini Pro", Provider.GEMINI, "gemini-1.5-flash", True, 2, 1000),
    ("claude-sonnet", "Claude Sonnet", Provider.CLAUDE, "claude-3-sonnet-20240229", False, 3, 500),
    ("openai-gpt4o", "OpenAI GPT-4o", Provider.OPENAI, "gpt-4o", False, 4, 500),
    ("deepseek-chat", "DeepSeek Chat", Provider.DEEPSEEK, "deepseek-chat", True, 2, 2000),
    ("mistral-large", "Mistral Large", Provider.MISTRAL, "mistral-large-latest", False, 3, 1000),
)


def starter_entries(settings: Settings | None = None) -> list[ModelEntry]:
    """Fresh catalog entries; keys come from settings when configured."""
    entries: list[ModelEntry] = []
    for model_id, name, provider, provider_model, enabled, priority, limit in STARTER_CATALOG:
        entries.append(ModelEntry(
            id=model_id,
            name=name,
            provider=provider.value,
            model_id=provider_model,
            api_keys=settings.seed_keys_for(provider.value) if settings else [],
            enabled=enabled,
            priority=priority,
            daily_limit=limit,
        ))
    return entries


async def seed_registry(registry: ModelRegistryPort, settings: Settings | None = None) -> int:
    """Replace the whole registry with the starter catalog; returns the entry count."""
    entries = starter_entries(settings)
    await registry.replace_all(entries)
    logger.info(
        "registry_seeded",
        count=len(entries),
        with_keys=[e.id for e in entries if e.has_keys],
    )
    return len(entries)
