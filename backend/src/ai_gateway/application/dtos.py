"""Data Transfer Objects — request and response shapes of the gateway API.

The chat request is validated loosely: message objects keep any extra
fields so provider-specific content (tool calls, multimodal parts) is
forwarded untouched.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# ═══════════════════════════════════════════════════════════════
#  Common
# ═══════════════════════════════════════════════════════════════
class ErrorResponse(BaseModel):
    error: str
    detail: Any = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    environment: str = "development"
    services: dict[str, str] = Field(default_factory=dict)


# ═══════════════════════════════════════════════════════════════
#  Completion
# ═══════════════════════════════════════════════════════════════
class ChatMessage(BaseModel):
    """One chat message.  Unknown fields (``name``, ``tool_calls``...) pass through."""

    model_config = ConfigDict(extra="allow")

    role: Literal["system", "user", "assistant", "tool"]
    content: str | list[Any] | None = None


class ToolFunction(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    description: str | None = None
    parameters: dict[str, Any] | None = None


class ToolSpec(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["function"] = "function"
    function: ToolFunction


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(..., min_length=1)
    feature: str = "default"
    tools: list[ToolSpec] | None = None
    tool_choice: Any = None

    def provider_messages(self) -> list[dict[str, Any]]:
        return [m.model_dump(exclude_none=True) for m in self.messages]

    def provider_tools(self) -> list[dict[str, Any]] | None:
        if not self.tools:
            return None
        return [t.model_dump(exclude_none=True) for t in self.tools]


class AssistantMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str = "assistant"
    content: str | None = None


class Choice(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: AssistantMessage


class UnifiedResponse(BaseModel):
    """OpenAI-shaped completion; provider extras are preserved."""

    model_config = ConfigDict(extra="allow")

    choices: list[Choice]


# ═══════════════════════════════════════════════════════════════
#  Probe / Seed / Listing
# ═══════════════════════════════════════════════════════════════
class ProbeResult(BaseModel):
    id: str
    status: Literal["ok", "failed"]
    error: str | None = None


class ProbeResponse(BaseModel):
    success: bool = True
    results: list[ProbeResult] = Field(default_factory=list)


class SeedResponse(BaseModel):
    success: bool = True
    count: int


class ModelSummary(BaseModel):
    """Registry entry as listed publicly: credentials reduced to a count."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    provider: str
    model_id: str = Field(alias="modelId")
    key_count: int = Field(alias="keyCount")
    current_key_index: int = Field(alias="currentKeyIndex")
    enabled: bool
    priority: int
    daily_limit: int = Field(alias="dailyLimit")
    used_today: int = Field(alias="usedToday")
    status: str
    error_count: int = Field(alias="errorCount")
    last_error: str | None = Field(None, alias="lastError")
