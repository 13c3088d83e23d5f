from __future__ import annotations

"""Chat-completion providers behind the agent step runner.

A provider turns a short conversation (persona prompt plus rendered task) into
one reply. Process steps never see providers directly; ``AgentStepRunner``
owns one and asks it for JSON replies.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

T = TypeVar("T")

RateLimitCheck = Callable[[Exception], tuple[bool, float | None]]


class RetryConfig(BaseModel):
    """Backoff policy for HTTP 429 replies. Nothing else is retried."""

    max_retries: int = Field(default=3, description="Retries after the first attempt")
    base_delay: float = Field(default=1.0, description="Delay before the first retry, seconds")
    max_delay: float = Field(default=60.0, description="Upper bound for any single delay, seconds")
    exponential_base: float = Field(default=2.0, description="Growth factor between retries")

    def backoff(self, attempt: int, retry_after: float | None = None) -> float:
        """Seconds to wait before retry number ``attempt + 1``.

        A server-sent ``retry-after`` longer than the computed delay wins,
        capped at ``max_delay`` like everything else.
        """
        delay = self.base_delay * self.exponential_base**attempt
        if retry_after is not None:
            delay = max(delay, retry_after)
        return min(delay, self.max_delay)


class Message(BaseModel):
    role: str = Field(..., description="system, user or assistant")
    content: str


class CompletionResponse(BaseModel):
    """One provider reply plus whatever usage figures the API reported."""

    content: str
    finish_reason: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None

    @property
    def total_tokens(self) -> int | None:
        if self.input_tokens is None or self.output_tokens is None:
            return None
        return self.input_tokens + self.output_tokens


class RateLimitError(Exception):
    """The provider kept answering 429 after every backoff."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message)
        self.retry_after = retry_after
        self.attempts = attempts


class LLMProvider(ABC):
    """A chat endpoint that answers design-task prompts.

    Subclasses implement ``complete`` and wrap their HTTP call in
    ``_with_retry`` so rate limits back off instead of failing the step.
    """

    def __init__(
        self,
        model: str,
        retry_config: RetryConfig | None = None,
        **kwargs: Any,
    ) -> None:
        self.model = model
        self.retry_config = retry_config or RetryConfig()
        self._config = kwargs
        self._total_tokens_used = 0

    @property
    def total_tokens_used(self) -> int:
        return self._total_tokens_used

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        temperature: float = 0.7,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> CompletionResponse:
        """Send the conversation and return the reply.

        Args:
            messages: System prompt first, then the rendered task
            temperature: Sampling temperature
            max_tokens: Reply length cap, or the provider default
            json_mode: Request a bare JSON object where the API supports it
        """

    async def close(self) -> None:
        """Release the HTTP client, if the provider holds one."""

    def _track_tokens(self, response: CompletionResponse) -> None:
        if response.total_tokens:
            self._total_tokens_used += response.total_tokens

    async def _with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        is_rate_limit_error: RateLimitCheck,
    ) -> T:
        """Run ``operation``, backing off while it reports a rate limit.

        ``is_rate_limit_error`` maps an exception to
        ``(is_rate_limit, retry_after)``. Any other exception propagates on
        the first occurrence.

        Raises:
            RateLimitError: When the last allowed attempt is rate limited too
        """
        policy = self.retry_config
        attempts = policy.max_retries + 1
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                limited, retry_after = is_rate_limit_error(e)
                if not limited:
                    raise
                attempt += 1
                if attempt >= attempts:
                    raise RateLimitError(
                        f"{self.model}: still rate limited after {attempt} attempts: {e}",
                        retry_after=retry_after,
                        attempts=attempt,
                    ) from e
                delay = policy.backoff(attempt - 1, retry_after)

            logger.warning(
                "%s rate limited (attempt %d of %d), waiting %.1fs",
                self.model, attempt, attempts, delay,
            )
            await asyncio.sleep(delay)


def is_http_rate_limit(e: Exception) -> tuple[bool, float | None]:
    """Classify an httpx error: HTTP 429, with ``retry-after`` seconds if sent."""
    if not isinstance(e, httpx.HTTPStatusError) or e.response.status_code != 429:
        return False, None
    header = e.response.headers.get("retry-after")
    try:
        return True, float(header) if header else None
    except ValueError:
        return True, None
