"""Outbound ports — interfaces that infrastructure adapters must implement.

The application layer depends only on these abstractions, never on the
concrete Redis store or HTTP provider adapters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ai_gateway.domain.entities import ApiUsage, ModelEntry
from ai_gateway.domain.enums import UsageClass


# ═══════════════════════════════════════════════════════════════
#  Model registry
# ═══════════════════════════════════════════════════════════════
class ModelRegistryPort(ABC):
    """Shared store of model entries.

    Updates are per-field last-write-wins; there is no transaction across
    fields or entries.  Updating an unknown id is a no-op.
    """

    @abstractmethod
    async def list_entries(self) -> list[ModelEntry]: ...

    @abstractmethod
    async def update(self, model_id: str, fields: dict[str, Any]) -> None: ...

    @abstractmethod
    async def replace_all(self, entries: list[ModelEntry]) -> None: ...

    @abstractmethod
    async def health_check(self) -> bool: ...

    @abstractmethod
    async def close(self) -> None: ...


# ═══════════════════════════════════════════════════════════════
#  Usage counters
# ═══════════════════════════════════════════════════════════════
class UsageCounterPort(ABC):
    """Daily consumption counters per caller class."""

    @abstractmethod
    async def get_usage(self) -> ApiUsage | None: ...

    @abstractmethod
    async def increment(self, usage_class: UsageClass) -> int: ...

    @abstractmethod
    async def close(self) -> None: ...


# ═══════════════════════════════════════════════════════════════
#  Provider calls
# ═══════════════════════════════════════════════════════════════
class ChatProviderPort(ABC):
    """Executes one chat completion against the provider behind an entry."""

    @abstractmethod
    async def call(
        self,
        entry: ModelEntry,
        messages: list[dict[str, Any]],
        api_key: str,
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: Any = None,
    ) -> dict[str, Any]: ...

    @abstractmethod
    async def close(self) -> None: ...
