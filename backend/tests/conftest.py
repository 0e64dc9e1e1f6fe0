"""Shared test fixtures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import pytest

from ai_gateway.adapters.outbound.llm import unified_response
from ai_gateway.adapters.outbound.registry import MemoryModelRegistry
from ai_gateway.domain.entities import ModelEntry
from ai_gateway.domain.enums import HealthStatus
from ai_gateway.ports.outbound import ChatProviderPort


@dataclass
class ProviderCall:
    model_id: str
    api_key: str
    messages: list[dict[str, Any]]
    tools: list[dict[str, Any]] | None
    tool_choice: Any


class ScriptedProviders(ChatProviderPort):
    """Provider port double: per-entry queue of responses or exceptions.

    Entries without a script answer with ``"reply from <id>"``.
    """

    def __init__(self) -> None:
        self.outcomes: dict[str, list[Any]] = {}
        self.calls: list[ProviderCall] = []
        self.closed = False

    def script(self, model_id: str, *outcomes: Any) -> None:
        self.outcomes.setdefault(model_id, []).extend(outcomes)

    async def call(
        self,
        entry: ModelEntry,
        messages: list[dict[str, Any]],
        api_key: str,
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: Any = None,
    ) -> dict[str, Any]:
        self.calls.append(ProviderCall(entry.id, api_key, messages, tools, tool_choice))
        queue = self.outcomes.get(entry.id)
        outcome = queue.pop(0) if queue else unified_response(f"reply from {entry.id}")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_entry() -> Callable[..., ModelEntry]:
    def _make(model_id: str = "m1", /, **overrides: Any) -> ModelEntry:
        values: dict[str, Any] = {
            "name": model_id.title(),
            "provider": "OpenAI",
            "model_id": f"{model_id}-model",
            "api_keys": ["key-1"],
            "enabled": True,
            "priority": 1,
            "daily_limit": 1000,
            "status": HealthStatus.GREEN,
        }
        values.update(overrides)
        return ModelEntry(id=model_id, **values)

    return _make


@pytest.fixture
def providers() -> ScriptedProviders:
    return ScriptedProviders()


@pytest.fixture
def registry() -> MemoryModelRegistry:
    return MemoryModelRegistry()


@pytest.fixture
def snapshot(registry: MemoryModelRegistry) -> Callable[[], Any]:
    """Async helper returning the registry contents keyed by id."""

    async def _snapshot() -> dict[str, ModelEntry]:
        return {e.id: e for e in await registry.list_entries()}

    return _snapshot
