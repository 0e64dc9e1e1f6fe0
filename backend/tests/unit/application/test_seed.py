"""Tests for the starter catalog and seed operation."""

from __future__ import annotations

import pytest

from ai_gateway.application.services import STARTER_CATALOG, seed_registry, starter_entries
from ai_gateway.config import get_settings
from ai_gateway.domain.enums import HealthStatus


class TestStarterCatalog:
    def test_catalog_contents(self) -> None:
        entries = starter_entries()
        assert [e.id for e in entries] == [
            "groq-llama3",
            "gemini-pro",
            "claude-sonnet",
            "openai-gpt4o",
            "deepseek-chat",
            "mistral-large",
        ]
        by_id = {e.id: e for e in entries}
        assert by_id["groq-llama3"].provider == "Groq"
        assert by_id["groq-llama3"].model_id == "llama3-8b-8192"
        assert by_id["groq-llama3"].daily_limit == 5000
        assert by_id["gemini-pro"].model_id == "gemini-1.5-flash"
        assert by_id["deepseek-chat"].priority == 2
        assert [e.id for e in entries if e.enabled] == ["groq-llama3", "gemini-pro", "deepseek-chat"]

    def test_entries_start_clean(self) -> None:
        for entry in starter_entries():
            assert entry.api_keys == []
            assert entry.current_key_index == 0
            assert entry.used_today == 0
            assert entry.error_count == 0
            assert entry.status == HealthStatus.GREEN

    def test_keys_from_settings(self) -> None:
        settings = get_settings(groq_api_keys="g1, g2,,g1", deepseek_api_keys="d1")
        by_id = {e.id: e for e in starter_entries(settings)}
        assert by_id["groq-llama3"].api_keys == ["g1", "g2"]
        assert by_id["deepseek-chat"].api_keys == ["d1"]
        assert by_id["gemini-pro"].api_keys == []


class TestSeedRegistry:
    @pytest.mark.asyncio
    async def test_replaces_existing_entries(self, registry, make_entry) -> None:
        await registry.replace_all([make_entry("legacy")])

        count = await seed_registry(registry)

        ids = [e.id for e in await registry.list_entries()]
        assert count == len(STARTER_CATALOG) == 6
        assert "legacy" not in ids
        assert len(ids) == 6
