from __future__ import annotations

"""OpenAI-compatible chat completions provider (Groq, Ollama, SiliconFlow, OpenAI)."""

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

# Known endpoints: name -> (base_url, api key env var, default model)
KNOWN_ENDPOINTS: dict[str, tuple[str, str | None, str]] = {
    "groq": ("https://api.groq.com/openai/v1", "GROQ_API_KEY", "llama-3.3-70b-versatile"),
    "openai": ("https://api.openai.com/v1", "OPENAI_API_KEY", "gpt-4o-mini"),
    "siliconflow": ("https://api.siliconflow.cn/v1", "SILICONFLOW_API_KEY", "Qwen/Qwen2.5-7B-Instruct"),
    "ollama": ("http://localhost:11434/v1", None, "llama3.2"),
}


class OpenAICompatibleProvider(LLMProvider):
    """Provider for any endpoint that speaks the OpenAI chat completions API.

    Groq, OpenAI, SiliconFlow and Ollama (``/v1``) all work; pick one with
    ``OpenAICompatibleProvider.for_endpoint("groq")`` or pass ``base_url``.
    """

    def __init__(
        self,
        model: str,
        base_url: str,
        api_key: str | None = None,
        retry_config: RetryConfig | None = None,
        timeout: float = 120.0,
        **kwargs: Any,
    ) -> None:
        super().__init__(model, retry_config=retry_config, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers)

    @classmethod
    def for_endpoint(
        cls,
        name: str,
        model: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        **kwargs: Any,
    ) -> OpenAICompatibleProvider:
        """Create a provider for a known endpoint name.

        Raises:
            ValueError: If the endpoint is unknown or its API key is missing
        """
        if name not in KNOWN_ENDPOINTS:
            raise ValueError(
                f"Unknown endpoint: {name}. Known: {', '.join(sorted(KNOWN_ENDPOINTS))}"
            )
        default_url, key_env, default_model = KNOWN_ENDPOINTS[name]

        if name == "ollama" and base_url is None and os.environ.get("OLLAMA_HOST"):
            base_url = os.environ["OLLAMA_HOST"].rstrip("/") + "/v1"

        api_key = api_key or (os.environ.get(key_env) if key_env else None)
        if key_env and not api_key:
            raise ValueError(
                f"{name} API key required. Set {key_env} environment variable "
                "or pass api_key parameter."
            )

        return cls(
            model=model or default_model,
            base_url=base_url or default_url,
            api_key=api_key,
            **kwargs,
        )

    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> CompletionResponse:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        async def _post() -> dict[str, Any]:
            response = await self._client.post(f"{self.base_url}/chat/completions", json=payload)
            response.raise_for_status()
            return response.json()

        data = await self._with_retry(_post, is_http_rate_limit)

        choice = data["choices"][0]
        usage = data.get("usage", {})
        result = CompletionResponse(
            content=choice["message"].get("content", "") or "",
            finish_reason=choice.get("finish_reason", "stop"),
            input_tokens=usage.get("prompt_tokens"),
            output_tokens=usage.get("completion_tokens"),
        )

        self._track_tokens(result)
        return result

    async def close(self) -> None:
        await self._client.aclose()
