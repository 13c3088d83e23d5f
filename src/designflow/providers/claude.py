from __future__ import annotations

"""Claude provider - Anthropic's Claude models via the Messages API."""

import os
from typing import Any

import httpx

from designflow.providers.base import (
    CompletionResponse,
    LLMProvider,
    Message,
    RetryConfig,
    is_http_rate_limit,
)


class ClaudeProvider(LLMProvider):
    """Claude provider using Anthropic's Messages API.

    Get API key at: https://console.anthropic.com/
    """

    BASE_URL = "https://api.anthropic.com/v1"
    API_VERSION = "2023-06-01"

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        api_key: str | None = None,
        retry_config: RetryConfig | None = None,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> None:
        super().__init__(model, retry_config=retry_config, **kwargs)
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Anthropic API key required. Set ANTHROPIC_API_KEY environment variable "
                "or pass api_key parameter."
            )
        self.default_max_tokens = max_tokens
        self._client = httpx.AsyncClient(
            timeout=120.0,
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": self.API_VERSION,
                "content-type": "application/json",
            },
        )

    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> CompletionResponse:
        """Generate a completion, retrying on rate limits."""
        # The Messages API takes the system prompt separately
        system_parts: list[str] = []
        conversation: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role == "system":
                system_parts.append(msg.content)
            else:
                conversation.append({"role": msg.role, "content": msg.content})

        if json_mode:
            # No native JSON mode: prefill the assistant turn with an open brace
            conversation.append({"role": "assistant", "content": "{"})

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": conversation,
            "max_tokens": max_tokens or self.default_max_tokens,
            "temperature": temperature,
        }
        if system_parts:
            payload["system"] = "\n\n".join(system_parts)

        async def _do_request() -> CompletionResponse:
            response = await self._client.post(f"{self.BASE_URL}/messages", json=payload)
            response.raise_for_status()
            data = response.json()

            text = "".join(
                block["text"] for block in data.get("content", []) if block["type"] == "text"
            )
            if json_mode:
                text = "{" + text

            usage = data.get("usage", {})
            return CompletionResponse(
                content=text,
                finish_reason=data.get("stop_reason", "end_turn"),
                input_tokens=usage.get("input_tokens"),
                output_tokens=usage.get("output_tokens"),
            )

        result = await self._with_retry(_do_request, is_http_rate_limit)
        self._track_tokens(result)
        return result

    async def close(self) -> None:
        await self._client.aclose()
