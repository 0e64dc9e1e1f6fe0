"""Unit tests for the gateway HTTP client."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from ai_gateway.client.gateway import GatewayClient
from ai_gateway.domain.exceptions import GatewayError, GatewayRequestError

MESSAGES = [{"role": "user", "content": "hi"}]


def _reply(message: dict) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": message}]})


@pytest.fixture
def client() -> GatewayClient:
    return GatewayClient("https://gateway.test/")


class TestGatewayClient:
    @pytest.mark.asyncio
    async def test_complete_posts_to_ai_endpoint(self, client) -> None:
        resp = _reply({"role": "assistant", "content": "hello"})
        with patch.object(client._client, "post", new_callable=AsyncMock, return_value=resp) as post:
            text = await client.complete(MESSAGES)

        assert text == "hello"
        post.assert_awaited_once_with(
            "https://gateway.test/api/ai",
            json={"messages": MESSAGES, "feature": "fast_inference"},
        )

    @pytest.mark.asyncio
    async def test_non_text_content_is_empty_string(self, client) -> None:
        resp = _reply({"role": "assistant", "content": None, "tool_calls": []})
        with patch.object(client._client, "post", new_callable=AsyncMock, return_value=resp):
            assert await client.complete(MESSAGES) == ""

    @pytest.mark.asyncio
    async def test_complete_with_tools_returns_message(self, client) -> None:
        call = {"id": "c1", "type": "function", "function": {"name": "lookup", "arguments": "{}"}}
        resp = _reply({"role": "assistant", "content": None, "tool_calls": [call]})
        tools = [{"type": "function", "function": {"name": "lookup"}}]

        with patch.object(client._client, "post", new_callable=AsyncMock, return_value=resp) as post:
            message = await client.complete_with_tools(MESSAGES, tools)

        assert message["tool_calls"] == [call]
        payload = post.call_args.kwargs["json"]
        assert payload["tools"] == tools
        assert payload["tool_choice"] == "auto"
        assert payload["feature"] == "complex_reasoning"

    @pytest.mark.asyncio
    async def test_error_status_raises_request_error(self, client) -> None:
        resp = httpx.Response(503, text='{"error":"No AI models available. Please contact admin."}')
        with patch.object(client._client, "post", new_callable=AsyncMock, return_value=resp):
            with pytest.raises(GatewayRequestError) as exc_info:
                await client.complete(MESSAGES)

        assert exc_info.value.status == 503
        assert str(exc_info.value).startswith("AI Engine Error: 503 - ")

    @pytest.mark.asyncio
    async def test_redirect_raises_request_error(self, client) -> None:
        resp = httpx.Response(307, text="moved")
        with patch.object(client._client, "post", new_callable=AsyncMock, return_value=resp):
            with pytest.raises(GatewayRequestError, match="^AI Engine Error: 307 - moved$"):
                await client.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_unreachable_gateway(self, client) -> None:
        with patch.object(
            client._client, "post", new_callable=AsyncMock,
            side_effect=httpx.ConnectError("connection refused"),
        ):
            with pytest.raises(GatewayError, match="Gateway unreachable"):
                await client.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_malformed_response(self, client) -> None:
        resp = httpx.Response(200, json={"choices": []})
        with patch.object(client._client, "post", new_callable=AsyncMock, return_value=resp):
            with pytest.raises(GatewayError, match="Malformed gateway response"):
                await client.complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_buffered_delivers_single_chunk(self, client) -> None:
        on_chunk = MagicMock()
        resp = _reply({"role": "assistant", "content": "full text"})
        with patch.object(client._client, "post", new_callable=AsyncMock, return_value=resp):
            text = await client.complete_buffered(MESSAGES, on_chunk)

        assert text == "full text"
        on_chunk.assert_called_once_with("full text")
