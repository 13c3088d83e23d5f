from __future__ import annotations

"""AgentStepRunner - runs task definitions through an LLM provider."""

import json
import logging
import re
from typing import Any

from pydantic_core import to_jsonable_python

from designflow.errors import TaskOutputError
from designflow.providers.base import LLMProvider, Message
from designflow.runners.base import StepRunner
from designflow.tasks.definition import TaskDefinition, TaskInvocation

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*\n(.*?)```", re.DOTALL)

SYSTEM_TEMPLATE = """You are {agent_name}, {role}.

You are one step in a multi-phase UX/design process. Do the task you are given
using only the context provided, and answer with a single JSON object that
matches the output schema. Do not wrap the object in prose.

Every output includes "artifacts": a list of files you produced, each with
"path" (under the outputDir given in the context) and "format"."""


class AgentStepRunner(StepRunner):
    """Executes each task as a single LLM completion.

    Key design for token efficiency:
    - The system prompt only carries the agent persona
    - Context is the task's own arguments, serialized once as JSON
    - The output schema is generated from the task's pydantic model
    """

    name = "AgentStepRunner"

    def __init__(
        self,
        provider: LLMProvider,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        max_context_chars: int = 24000,
    ) -> None:
        self.provider = provider
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_context_chars = max_context_chars

    def build_messages(self, definition: TaskDefinition[Any], args: dict[str, Any]) -> list[Message]:
        """Render a task definition and its arguments into chat messages."""
        agent = definition.agent
        system = SYSTEM_TEMPLATE.format(agent_name=agent.name, role=agent.role)

        context_text = json.dumps(to_jsonable_python(args), indent=2)
        if len(context_text) > self.max_context_chars:
            context_text = context_text[: self.max_context_chars] + "\n... (truncated)"

        parts = [f"# Task: {definition.title}", agent.task]
        if agent.instructions:
            parts.append("## Instructions")
            parts.extend(f"- {line}" for line in agent.instructions)
        parts.append("## Context")
        parts.append(context_text)
        parts.append("## Output schema")
        parts.append(definition.output_schema_text())

        return [
            Message(role="system", content=system),
            Message(role="user", content="\n\n".join(parts)),
        ]

    async def run_step(self, invocation: TaskInvocation) -> dict[str, Any]:
        messages = self.build_messages(invocation.definition, invocation.args)

        logger.info("Running task %s (%s)", invocation.name, invocation.effect_id)
        response = await self.provider.complete(
            messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            json_mode=True,
        )

        return self.parse_output(invocation.name, response.content)

    @staticmethod
    def parse_output(task_name: str, content: str) -> dict[str, Any]:
        """Extract the JSON object from an agent reply.

        Accepts a bare object, a fenced ```json block, or an object embedded
        in surrounding text.

        Raises:
            TaskOutputError: If no JSON object can be found
        """
        candidates = [content.strip()]
        candidates.extend(m.group(1).strip() for m in _FENCE.finditer(content))

        start, end = content.find("{"), content.rfind("}")
        if start != -1 and end > start:
            candidates.append(content[start : end + 1])

        for candidate in candidates:
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                return data

        raise TaskOutputError(task_name, "reply does not contain a JSON object", raw_output=content)
