"""Provider adapters — one chat-completion call against a single provider.

Every adapter returns the unified (OpenAI-shaped) response::

    {"choices": [{"message": {"role": "assistant", "content": "..."}}]}

Retries, rotation and failover are the router's business; the calls here
are single attempts.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ai_gateway.domain.entities import ModelEntry
from ai_gateway.domain.enums import Provider
from ai_gateway.domain.exceptions import ProviderError
from ai_gateway.ports.outbound import ChatProviderPort

logger = structlog.get_logger(__name__)

GROQ_URL = "https://api.groq.com/openai/v1/chat/completions"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_OPENAI_URL = "https://api.openai.com/v1/chat/completions"

OPENAI_COMPATIBLE_URLS: dict[str, str] = {
    Provider.OPENAI.value: DEFAULT_OPENAI_URL,
    Provider.DEEPSEEK.value: "https://api.deepseek.com/chat/completions",
    Provider.MISTRAL.value: "https://api.mistral.ai/v1/chat/completions",
    Provider.OPENROUTER.value: "https://openrouter.ai/api/v1/chat/completions",
    Provider.PERPLEXITY.value: "https://api.perplexity.ai/chat/completions",
    Provider.TOGETHER.value: "https://api.together.xyz/v1/chat/completions",
    Provider.FIREWORKS.value: "https://api.fireworks.ai/inference/v1/chat/completions",
    Provider.COHERE.value: "https://api.cohere.ai/compatibility/v1/chat/completions",
    Provider.HUGGINGFACE.value: "https://router.huggingface.co/v1/chat/completions",
    Provider.CLAUDE.value: "https://api.anthropic.com/v1/chat/completions",
}


def message_text(content: Any) -> str:
    """Flatten message content (plain string or list of parts) to text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = []
        for part in content:
            if isinstance(part, str):
                texts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                texts.append(part["text"])
        return "\n".join(texts)
    return str(content)


def unified_response(content: str) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class ProviderClient(ChatProviderPort):
    """Dispatches a chat call to the adapter matching the entry's provider."""

    def __init__(
        self,
        *,
        timeout: float = 60.0,
        openrouter_referer: str = "",
        openrouter_title: str = "",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._openrouter_headers = {
            "HTTP-Referer": openrouter_referer,
            "X-Title": openrouter_title,
        }

    async def close(self) -> None:
        await self._client.aclose()

    async def call(
        self,
        entry: ModelEntry,
        messages: list[dict[str, Any]],
        api_key: str,
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: Any = None,
    ) -> dict[str, Any]:
        try:
            if entry.provider == Provider.GROQ.value:
                return await self._invoke_groq(entry, messages, api_key, tools, tool_choice)
            if entry.provider == Provider.GEMINI.value:
                return await self._invoke_gemini(entry, messages, api_key)
            return await self._invoke_openai_compatible(
                entry, messages, api_key, tools, tool_choice
            )
        except ProviderError as exc:
            exc.model_id = entry.id
            exc.provider = entry.provider
            raise
        except Exception as exc:
            raise ProviderError(
                entry.provider,
                f"{entry.provider} Error: {exc}",
                model_id=entry.id,
            ) from exc

    # ── Groq ─────────────────────────────────────────────────
    async def _invoke_groq(
        self,
        entry: ModelEntry,
        messages: list[dict[str, Any]],
        api_key: str,
        tools: list[dict[str, Any]] | None,
        tool_choice: Any,
    ) -> dict[str, Any]:
        return await self._post_chat(
            Provider.GROQ.value,
            entry.base_url or GROQ_URL,
            self._chat_body(entry, messages, tools, tool_choice),
            self._bearer(api_key),
        )

    # ── OpenAI-compatible family ─────────────────────────────
    async def _invoke_openai_compatible(
        self,
        entry: ModelEntry,
        messages: list[dict[str, Any]],
        api_key: str,
        tools: list[dict[str, Any]] | None,
        tool_choice: Any,
    ) -> dict[str, Any]:
        url = entry.base_url or OPENAI_COMPATIBLE_URLS.get(entry.provider, DEFAULT_OPENAI_URL)
        headers = self._bearer(api_key)
        if entry.provider == Provider.OPENROUTER.value:
            headers.update(self._openrouter_headers)
        return await self._post_chat(
            entry.provider,
            url,
            self._chat_body(entry, messages, tools, tool_choice),
            headers,
        )

    # ── Gemini ───────────────────────────────────────────────
    async def _invoke_gemini(
        self,
        entry: ModelEntry,
        messages: list[dict[str, Any]],
        api_key: str,
    ) -> dict[str, Any]:
        # Tools are not translated for Gemini; text only.
        response = await self._client.post(
            GEMINI_URL.format(model=entry.model_id),
            params={"key": api_key},
            headers={"Content-Type": "application/json"},
            json=self.gemini_payload(messages),
        )
        if not response.is_success:
            raise ProviderError.from_response(
                Provider.GEMINI.value, response.status_code, response.text
            )
        data = self._decode(Provider.GEMINI.value, response)
        return unified_response(self._gemini_text(data))

    @staticmethod
    def gemini_payload(messages: list[dict[str, Any]]) -> dict[str, Any]:
        contents: list[dict[str, Any]] = []
        system_texts: list[str] = []
        for msg in messages:
            role = msg.get("role")
            text = message_text(msg.get("content"))
            if role == "system":
                system_texts.append(text)
                continue
            contents.append({
                "role": "model" if role == "assistant" else "user",
                "parts": [{"text": text}],
            })

        payload: dict[str, Any] = {"contents": contents}
        if system_texts:
            payload["systemInstruction"] = {"parts": [{"text": "\n".join(system_texts)}]}
        return payload

    @staticmethod
    def _gemini_text(data: Any) -> str:
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return ""
        return text if isinstance(text, str) else ""

    # ── Shared helpers ───────────────────────────────────────
    @staticmethod
    def _bearer(api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _chat_body(
        entry: ModelEntry,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
        tool_choice: Any,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"model": entry.model_id, "messages": messages}
        if tools:
            body["tools"] = tools
        if tool_choice is not None:
            body["tool_choice"] = tool_choice
        return body

    async def _post_chat(
        self,
        provider: str,
        url: str,
        body: dict[str, Any],
        headers: dict[str, str],
    ) -> dict[str, Any]:
        try:
            response = await self._client.post(url, headers=headers, json=body)
        except httpx.HTTPError as exc:
            raise ProviderError(provider, f"{provider} Error: {exc}") from exc

        if not response.is_success:
            raise ProviderError.from_response(provider, response.status_code, response.text)

        data = self._decode(provider, response)
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError):
            message = None
        if not isinstance(message, dict):
            logger.warning("provider_malformed_response", provider=provider, url=url)
            raise ProviderError(provider, f"{provider} Error: malformed response body")
        return data

    @staticmethod
    def _decode(provider: str, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(
                provider,
                f"{provider} Error: response is not valid JSON",
                status=response.status_code,
                body=response.text,
            ) from exc
