"""HTTP client for the gateway's completion endpoint."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import structlog

from ai_gateway.domain.exceptions import GatewayError, GatewayRequestError

logger = structlog.get_logger(__name__)


class GatewayClient:
    """Thin async wrapper over ``POST {base_url}/api/ai``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = f"{base_url.rstrip('/')}/api/ai"
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        feature: str = "fast_inference",
    ) -> str:
        """Assistant text of the first choice."""
        message = await self._post({"messages": messages, "feature": feature})
        content = message.get("content")
        return content if isinstance(content, str) else ""

    async def complete_with_tools(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        *,
        tool_choice: Any = "auto",
        feature: str = "complex_reasoning",
    ) -> dict[str, Any]:
        """Whole assistant message, including any ``tool_calls``."""
        return await self._post({
            "messages": messages,
            "tools": tools,
            "tool_choice": tool_choice,
            "feature": feature,
        })

    async def complete_buffered(
        self,
        messages: list[dict[str, Any]],
        on_chunk: Callable[[str], None],
        *,
        feature: str = "fast_inference",
    ) -> str:
        """Streaming-shaped call: the full text is delivered as one chunk."""
        content = await self.complete(messages, feature=feature)
        on_chunk(content)
        return content

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(self._endpoint, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("gateway_unreachable", error=str(exc))
            raise GatewayError(f"Gateway unreachable: {exc}") from exc
        if not response.is_success:
            logger.warning("gateway_request_failed", status=response.status_code)
            raise GatewayRequestError(response.status_code, response.text)
        try:
            message = response.json()["choices"][0]["message"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise GatewayError(f"Malformed gateway response: {exc}") from exc
        if not isinstance(message, dict):
            raise GatewayError("Malformed gateway response: message is not an object")
        return message
