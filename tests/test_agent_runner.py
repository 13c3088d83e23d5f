"""Tests for the LLM-backed step runner."""

import json

import pytest
from pydantic import Field

from designflow.errors import TaskOutputError
from designflow.providers.base import CompletionResponse, LLMProvider, Message
from designflow.runners import AgentStepRunner
from designflow.models.schemas import StepOutput
from designflow.tasks.definition import TaskInvocation, define_task


class Insights(StepOutput):
    insight_quality_score: float | None = None
    synthesized_insights: list[str] = Field(default_factory=list)


insights_task = define_task(
    "research-synthesis",
    "Research synthesis",
    agent="journey-researcher",
    role="Senior UX researcher",
    task="Synthesise the research data into insights",
    output=Insights,
    instructions=["Review interviews", "Cluster findings"],
)


class FakeProvider(LLMProvider):
    def __init__(self, reply: str):
        super().__init__("fake-model")
        self.reply = reply
        self.calls: list[dict] = []

    async def complete(self, messages, temperature=0.7, max_tokens=None, json_mode=False):
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "json_mode": json_mode,
        })
        return CompletionResponse(content=self.reply, input_tokens=10, output_tokens=5)


def _invocation(args=None) -> TaskInvocation:
    return TaskInvocation(
        effect_id="id-0001",
        run_id="run-1",
        definition=insights_task,
        args=args or {"project_name": "Shop"},
    )


class TestBuildMessages:
    def test_system_prompt_carries_persona(self):
        runner = AgentStepRunner(FakeProvider("{}"))
        messages = runner.build_messages(insights_task, {"project_name": "Shop"})

        assert messages[0].role == "system"
        assert "journey-researcher" in messages[0].content
        assert "Senior UX researcher" in messages[0].content

    def test_user_prompt_has_task_context_and_schema(self):
        runner = AgentStepRunner(FakeProvider("{}"))
        content = runner.build_messages(insights_task, {"project_name": "Shop"})[1].content

        assert "# Task: Research synthesis" in content
        assert "- Review interviews" in content
        assert '"project_name": "Shop"' in content
        assert "insightQualityScore" in content

    def test_long_context_is_truncated(self):
        runner = AgentStepRunner(FakeProvider("{}"), max_context_chars=50)
        content = runner.build_messages(insights_task, {"notes": "x" * 500})[1].content
        assert "(truncated)" in content


class TestRunStep:
    @pytest.mark.asyncio
    async def test_parses_json_reply(self):
        provider = FakeProvider(json.dumps({"insightQualityScore": 81}))
        runner = AgentStepRunner(provider, temperature=0.1, max_tokens=500)

        result = await runner.run_step(_invocation())

        assert result == {"insightQualityScore": 81}
        assert provider.calls[0]["json_mode"] is True
        assert provider.calls[0]["temperature"] == 0.1
        assert provider.calls[0]["max_tokens"] == 500

    @pytest.mark.asyncio
    async def test_invalid_reply_raises(self):
        runner = AgentStepRunner(FakeProvider("no json here"))
        with pytest.raises(TaskOutputError):
            await runner.run_step(_invocation())


class TestParseOutput:
    def test_bare_object(self):
        assert AgentStepRunner.parse_output("t", '{"a": 1}') == {"a": 1}

    def test_fenced_block(self):
        content = 'Here you go:\n```json\n{"a": 2}\n```\n'
        assert AgentStepRunner.parse_output("t", content) == {"a": 2}

    def test_embedded_object(self):
        assert AgentStepRunner.parse_output("t", 'Result: {"a": 3} done') == {"a": 3}

    def test_array_is_rejected(self):
        with pytest.raises(TaskOutputError):
            AgentStepRunner.parse_output("t", "[1, 2]")


def test_messages_are_pydantic():
    msg = Message(role="user", content="hi")
    assert msg.model_dump() == {"role": "user", "content": "hi"}
