"""Tests for configuration loading."""

import json

import pytest

from designflow.config import DesignFlowConfig, ProviderConfig, ProviderType, get_default_config

ENV_VARS = [
    "DESIGNFLOW_PROVIDER",
    "DESIGNFLOW_MODEL",
    "DESIGNFLOW_API_KEY",
    "DESIGNFLOW_BASE_URL",
    "DESIGNFLOW_RUNS_DIR",
    "DESIGNFLOW_MAX_CONCURRENT",
    "DESIGNFLOW_AUTO_APPROVE",
    "DESIGNFLOW_TEMPERATURE",
    "DESIGNFLOW_MAX_TOKENS",
    "GROQ_API_KEY",
    "ANTHROPIC_API_KEY",
    "OLLAMA_HOST",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    return monkeypatch


class TestProviderConfig:
    def test_default_model(self):
        assert ProviderConfig(type=ProviderType.OLLAMA).resolved_model() == "llama3.2"
        assert ProviderConfig(type=ProviderType.GROQ, model="x").resolved_model() == "x"

    def test_provider_kwargs(self):
        config = ProviderConfig(type=ProviderType.OPENAI, api_key="k", base_url="http://proxy/v1")
        assert config.provider_kwargs() == {"api_key": "k", "base_url": "http://proxy/v1"}

    def test_claude_ignores_base_url(self):
        config = ProviderConfig(type=ProviderType.CLAUDE, base_url="http://proxy")
        assert "base_url" not in config.provider_kwargs()


class TestDesignFlowConfig:
    def test_defaults(self):
        config = DesignFlowConfig()
        assert config.provider.type is ProviderType.GROQ
        assert config.max_concurrent == 4
        assert config.auto_approve is False

    def test_max_concurrent_must_be_positive(self):
        with pytest.raises(ValueError):
            DesignFlowConfig(max_concurrent=0)

    def test_from_env(self, clean_env):
        clean_env.setenv("DESIGNFLOW_PROVIDER", "claude")
        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant")
        clean_env.setenv("DESIGNFLOW_MAX_CONCURRENT", "2")
        clean_env.setenv("DESIGNFLOW_AUTO_APPROVE", "true")
        clean_env.setenv("DESIGNFLOW_MAX_TOKENS", "800")

        config = DesignFlowConfig.from_env()

        assert config.provider.type is ProviderType.CLAUDE
        assert config.provider.api_key == "sk-ant"
        assert config.max_concurrent == 2
        assert config.auto_approve is True
        assert config.max_tokens == 800

    def test_ollama_host(self, clean_env):
        clean_env.setenv("DESIGNFLOW_PROVIDER", "ollama")
        clean_env.setenv("OLLAMA_HOST", "http://gpu:11434/")
        assert DesignFlowConfig.from_env().provider.base_url == "http://gpu:11434/v1"

    def test_from_file(self, tmp_path):
        path = tmp_path / "designflow.json"
        path.write_text(json.dumps({"provider": {"type": "openai"}, "runs_dir": "runs"}))
        config = DesignFlowConfig.from_file(path)
        assert config.provider.type is ProviderType.OPENAI
        assert config.runs_dir == "runs"

    def test_from_missing_file(self, tmp_path):
        assert DesignFlowConfig.from_file(tmp_path / "nope.json") == DesignFlowConfig()


class TestGetDefaultConfig:
    def test_prefers_local_file(self, clean_env, tmp_path):
        (tmp_path / "designflow.json").write_text(json.dumps({"max_concurrent": 7}))
        assert get_default_config().max_concurrent == 7

    def test_falls_back_to_env(self, clean_env):
        clean_env.setenv("DESIGNFLOW_RUNS_DIR", "elsewhere")
        assert get_default_config().runs_dir == "elsewhere"
