"""Tests for LLM providers."""

import json

import httpx
import pytest

from designflow.providers import get_provider
from designflow.providers.base import (
    CompletionResponse,
    Message,
    RateLimitError,
    RetryConfig,
    is_http_rate_limit,
)
from designflow.providers.claude import ClaudeProvider
from designflow.providers.openai_compat import OpenAICompatibleProvider

PROVIDER_ENV = [
    "DESIGNFLOW_PROVIDER",
    "DESIGNFLOW_MODEL",
    "GROQ_API_KEY",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "SILICONFLOW_API_KEY",
    "OLLAMA_HOST",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def _mock_client(handler, headers=None) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), headers=headers)


FAST_RETRY = RetryConfig(max_retries=2, base_delay=0.0, max_delay=0.0)


class TestCompletionResponse:
    def test_total_tokens(self):
        response = CompletionResponse(content="ok", input_tokens=3, output_tokens=4)
        assert response.total_tokens == 7

    def test_total_tokens_unknown(self):
        assert CompletionResponse(content="ok").total_tokens is None


class TestRetryConfig:
    def test_backoff_grows_and_caps(self):
        policy = RetryConfig(base_delay=1.0, max_delay=5.0)
        assert [policy.backoff(n) for n in range(4)] == [1.0, 2.0, 4.0, 5.0]

    def test_longer_retry_after_wins(self):
        policy = RetryConfig(base_delay=1.0, max_delay=60.0)
        assert policy.backoff(0, retry_after=7.0) == 7.0
        assert policy.backoff(3, retry_after=2.0) == 8.0
        assert policy.backoff(0, retry_after=120.0) == 60.0


class TestRateLimitDetection:
    def test_429_with_retry_after(self):
        request = httpx.Request("POST", "https://example.test")
        response = httpx.Response(429, headers={"retry-after": "2"}, request=request)
        error = httpx.HTTPStatusError("rate limited", request=request, response=response)
        assert is_http_rate_limit(error) == (True, 2.0)

    def test_other_status(self):
        request = httpx.Request("POST", "https://example.test")
        response = httpx.Response(500, request=request)
        error = httpx.HTTPStatusError("boom", request=request, response=response)
        assert is_http_rate_limit(error) == (False, None)

    def test_non_http_error(self):
        assert is_http_rate_limit(ValueError("x")) == (False, None)


class TestOpenAICompatibleProvider:
    @pytest.mark.asyncio
    async def test_complete(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "choices": [{"message": {"content": '{"ok": true}'}, "finish_reason": "stop"}],
                "usage": {"prompt_tokens": 12, "completion_tokens": 3},
            })

        provider = OpenAICompatibleProvider(model="m", base_url="https://llm.test/v1/", api_key="k")
        provider._client = _mock_client(handler)

        response = await provider.complete(
            [Message(role="user", content="hi")], temperature=0.2, json_mode=True,
        )
        await provider.close()

        assert response.content == '{"ok": true}'
        assert seen["url"] == "https://llm.test/v1/chat/completions"
        assert seen["body"]["response_format"] == {"type": "json_object"}
        assert seen["body"]["temperature"] == 0.2
        assert provider.total_tokens_used == 15

    @pytest.mark.asyncio
    async def test_retries_on_429(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            if len(attempts) < 2:
                return httpx.Response(429)
            return httpx.Response(200, json={"choices": [{"message": {"content": "done"}}]})

        provider = OpenAICompatibleProvider(
            model="m", base_url="https://llm.test/v1", retry_config=FAST_RETRY,
        )
        provider._client = _mock_client(handler)

        response = await provider.complete([Message(role="user", content="hi")])
        assert response.content == "done"
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_rate_limit_exhausted(self):
        provider = OpenAICompatibleProvider(
            model="m", base_url="https://llm.test/v1", retry_config=FAST_RETRY,
        )
        provider._client = _mock_client(lambda request: httpx.Response(429))

        with pytest.raises(RateLimitError) as exc_info:
            await provider.complete([Message(role="user", content="hi")])
        assert exc_info.value.attempts == 3

    @pytest.mark.asyncio
    async def test_server_error_not_retried(self):
        attempts = []

        def handler(request):
            attempts.append(1)
            return httpx.Response(500)

        provider = OpenAICompatibleProvider(
            model="m", base_url="https://llm.test/v1", retry_config=FAST_RETRY,
        )
        provider._client = _mock_client(handler)

        with pytest.raises(httpx.HTTPStatusError):
            await provider.complete([Message(role="user", content="hi")])
        assert len(attempts) == 1

    def test_for_endpoint_requires_key(self, clean_env):
        with pytest.raises(ValueError, match="GROQ_API_KEY"):
            OpenAICompatibleProvider.for_endpoint("groq")

    def test_for_endpoint_unknown(self):
        with pytest.raises(ValueError, match="Unknown endpoint"):
            OpenAICompatibleProvider.for_endpoint("nope")

    def test_ollama_host(self, clean_env):
        clean_env.setenv("OLLAMA_HOST", "http://gpu-box:11434/")
        provider = OpenAICompatibleProvider.for_endpoint("ollama")
        assert provider.base_url == "http://gpu-box:11434/v1"
        assert provider.model == "llama3.2"


class TestClaudeProvider:
    def test_requires_key(self, clean_env):
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            ClaudeProvider()

    @pytest.mark.asyncio
    async def test_system_prompt_and_json_prefill(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "content": [{"type": "text", "text": '"score": 90}'}],
                "stop_reason": "end_turn",
                "usage": {"input_tokens": 20, "output_tokens": 5},
            })

        provider = ClaudeProvider(api_key="test-key")
        provider._client = _mock_client(handler)

        response = await provider.complete(
            [Message(role="system", content="persona"), Message(role="user", content="task")],
            json_mode=True,
        )

        assert response.content == '{"score": 90}'
        assert seen["body"]["system"] == "persona"
        assert seen["body"]["messages"][-1] == {"role": "assistant", "content": "{"}
        assert provider.total_tokens_used == 25


class TestGetProvider:
    def test_no_provider_detected(self, clean_env):
        with pytest.raises(ValueError, match="No LLM provider"):
            get_provider()

    def test_detects_groq(self, clean_env):
        clean_env.setenv("GROQ_API_KEY", "gsk-test")
        provider = get_provider()
        assert isinstance(provider, OpenAICompatibleProvider)
        assert provider.base_url == "https://api.groq.com/openai/v1"

    def test_explicit_claude(self, clean_env):
        provider = get_provider("claude", model="claude-x", api_key="k")
        assert isinstance(provider, ClaudeProvider)
        assert provider.model == "claude-x"

    def test_qwen_alias(self, clean_env):
        provider = get_provider("qwen", api_key="k")
        assert provider.base_url == "https://api.siliconflow.cn/v1"

    def test_unknown(self, clean_env):
        with pytest.raises(ValueError, match="Unknown provider"):
            get_provider("nope")
