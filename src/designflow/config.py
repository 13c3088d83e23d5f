from __future__ import annotations

"""Configuration for designflow."""

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class ProviderType(str, Enum):
    """Available LLM providers."""

    GROQ = "groq"
    CLAUDE = "claude"
    OPENAI = "openai"
    SILICONFLOW = "siliconflow"
    QWEN = "qwen"  # Alias for siliconflow
    OLLAMA = "ollama"


_DEFAULT_MODELS = {
    ProviderType.GROQ: "llama-3.3-70b-versatile",
    ProviderType.CLAUDE: "claude-sonnet-4-20250514",
    ProviderType.OPENAI: "gpt-4o-mini",
    ProviderType.SILICONFLOW: "Qwen/Qwen2.5-7B-Instruct",
    ProviderType.QWEN: "Qwen/Qwen2.5-7B-Instruct",
    ProviderType.OLLAMA: "llama3.2",
}

_API_KEY_ENV = {
    ProviderType.GROQ: "GROQ_API_KEY",
    ProviderType.CLAUDE: "ANTHROPIC_API_KEY",
    ProviderType.OPENAI: "OPENAI_API_KEY",
    ProviderType.SILICONFLOW: "SILICONFLOW_API_KEY",
    ProviderType.QWEN: "SILICONFLOW_API_KEY",
}


class ProviderConfig(BaseModel):
    """Configuration for an LLM provider."""

    type: ProviderType = ProviderType.GROQ
    model: str | None = None
    base_url: str | None = None
    api_key: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def resolved_model(self) -> str:
        return self.model or _DEFAULT_MODELS[self.type]

    def provider_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``get_provider``."""
        kwargs: dict[str, Any] = dict(self.extra)
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.base_url and self.type is not ProviderType.CLAUDE:
            kwargs["base_url"] = self.base_url
        return kwargs


class DesignFlowConfig(BaseModel):
    """Main configuration for designflow."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    runs_dir: str = ".designflow/runs"
    max_concurrent: int = Field(default=4, ge=1)
    auto_approve: bool = False

    # Sampling settings for agent-backed steps
    temperature: float = 0.2
    max_tokens: int | None = None

    @classmethod
    def from_env(cls) -> DesignFlowConfig:
        """Load configuration from environment variables."""
        provider_type = ProviderType(os.getenv("DESIGNFLOW_PROVIDER", "groq").lower())
        api_key = os.getenv("DESIGNFLOW_API_KEY")
        key_env = _API_KEY_ENV.get(provider_type)
        if not api_key and key_env:
            api_key = os.getenv(key_env)

        base_url = os.getenv("DESIGNFLOW_BASE_URL")
        if provider_type is ProviderType.OLLAMA and not base_url and os.getenv("OLLAMA_HOST"):
            base_url = os.environ["OLLAMA_HOST"].rstrip("/") + "/v1"

        max_tokens = os.getenv("DESIGNFLOW_MAX_TOKENS")
        return cls(
            provider=ProviderConfig(
                type=provider_type,
                model=os.getenv("DESIGNFLOW_MODEL"),
                base_url=base_url,
                api_key=api_key,
            ),
            runs_dir=os.getenv("DESIGNFLOW_RUNS_DIR", ".designflow/runs"),
            max_concurrent=int(os.getenv("DESIGNFLOW_MAX_CONCURRENT", "4")),
            auto_approve=os.getenv("DESIGNFLOW_AUTO_APPROVE", "false").lower() == "true",
            temperature=float(os.getenv("DESIGNFLOW_TEMPERATURE", "0.2")),
            max_tokens=int(max_tokens) if max_tokens else None,
        )

    @classmethod
    def from_file(cls, path: str | Path) -> DesignFlowConfig:
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        return cls(**data)


def get_default_config() -> DesignFlowConfig:
    """Get default configuration, checking config files first."""
    config_paths = [
        Path("designflow.json"),
        Path(".designflow.json"),
        Path.home() / ".config" / "designflow" / "config.json",
    ]

    for path in config_paths:
        if path.exists():
            return DesignFlowConfig.from_file(path)

    # Fall back to environment variables
    return DesignFlowConfig.from_env()
