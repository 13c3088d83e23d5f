from __future__ import annotations

"""LLM provider implementations."""

import os
from typing import Any

from designflow.providers.base import (
    CompletionResponse,
    LLMProvider,
    Message,
    RateLimitError,
    RetryConfig,
)


def get_provider(
    provider_name: str | None = None,
    model: str | None = None,
    **kwargs: Any,
) -> LLMProvider:
    """Get an LLM provider instance, with auto-detection if no provider specified.

    Provider selection priority (when provider_name is None):
    1. DESIGNFLOW_PROVIDER environment variable
    2. GROQ_API_KEY present -> groq
    3. ANTHROPIC_API_KEY present -> claude
    4. OPENAI_API_KEY present -> openai
    5. SILICONFLOW_API_KEY present -> siliconflow
    6. OLLAMA_HOST present -> ollama

    Args:
        provider_name: "groq", "claude", "openai", "siliconflow" or "ollama"
        model: Model name (optional, uses provider defaults)
        **kwargs: Additional provider-specific arguments

    Returns:
        Configured LLMProvider instance

    Raises:
        ValueError: If no provider can be determined or configured
    """
    if provider_name is None:
        provider_name = os.environ.get("DESIGNFLOW_PROVIDER")

    if provider_name is None:
        provider_name = _detect_provider()

    if provider_name is None:
        raise ValueError(
            "No LLM provider could be detected. Please set one of:\n"
            "- GROQ_API_KEY\n"
            "- ANTHROPIC_API_KEY (Claude)\n"
            "- OPENAI_API_KEY\n"
            "- SILICONFLOW_API_KEY\n"
            "- OLLAMA_HOST for local inference\n"
            "\nOr set DESIGNFLOW_PROVIDER explicitly."
        )

    return _create_provider(provider_name, model or os.environ.get("DESIGNFLOW_MODEL"), **kwargs)


def _detect_provider() -> str | None:
    """Detect available provider from environment variables."""
    if os.environ.get("GROQ_API_KEY"):
        return "groq"
    if os.environ.get("ANTHROPIC_API_KEY"):
        return "claude"
    if os.environ.get("OPENAI_API_KEY"):
        return "openai"
    if os.environ.get("SILICONFLOW_API_KEY"):
        return "siliconflow"
    if os.environ.get("OLLAMA_HOST"):
        return "ollama"
    return None


def _create_provider(
    provider_name: str,
    model: str | None,
    **kwargs: Any,
) -> LLMProvider:
    """Create a provider instance by name."""
    provider_name = provider_name.lower().replace("-", "_")

    if provider_name in ("claude", "anthropic"):
        from designflow.providers.claude import ClaudeProvider

        if model:
            kwargs["model"] = model
        return ClaudeProvider(**kwargs)

    if provider_name == "qwen":
        provider_name = "siliconflow"

    from designflow.providers.openai_compat import KNOWN_ENDPOINTS, OpenAICompatibleProvider

    if provider_name in KNOWN_ENDPOINTS:
        return OpenAICompatibleProvider.for_endpoint(provider_name, model=model, **kwargs)

    raise ValueError(
        f"Unknown provider: {provider_name}. "
        f"Supported: claude, {', '.join(sorted(KNOWN_ENDPOINTS))}"
    )


__all__ = [
    "CompletionResponse",
    "LLMProvider",
    "Message",
    "RateLimitError",
    "RetryConfig",
    "get_provider",
]
