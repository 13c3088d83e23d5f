"""Deterministic step runner for tests and dry runs."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Union

from designflow.runners.base import StepRunner
from designflow.tasks.definition import TaskInvocation

logger = logging.getLogger(__name__)

ResponseFactory = Callable[[TaskInvocation], Union[dict[str, Any], Exception]]
Response = Union[dict[str, Any], Exception, ResponseFactory]


@dataclass
class RecordedCall:
    """A task invocation seen by the scripted runner."""

    task: str
    effect_id: str
    args: dict[str, Any]


class ScriptedStepRunner(StepRunner):
    """Answers each task with a canned response.

    Responses are looked up by task name. A response is a dict, an
    exception instance (raised), or a callable taking the invocation and
    returning either. Tasks without a response get the output model's
    defaults, which lets a whole process be dry-run.

    Example:
        runner = ScriptedStepRunner(
            responses={"test-planning": {"planApproved": False, "recommendations": ["x"]}},
            delays={"click-heatmap-analysis": 0.03},
        )
    """

    name = "ScriptedStepRunner"

    def __init__(
        self,
        responses: Mapping[str, Response] | None = None,
        delays: Mapping[str, float] | None = None,
        strict: bool = False,
    ) -> None:
        """Initialize the scripted runner.

        Args:
            responses: Task name to response
            delays: Task name to seconds to sleep before answering
            strict: Raise KeyError for tasks without a scripted response
        """
        self.responses = dict(responses or {})
        self.delays = dict(delays or {})
        self.strict = strict
        self.calls: list[RecordedCall] = []

    @property
    def task_names(self) -> list[str]:
        """Names of the tasks run so far, in call order."""
        return [c.task for c in self.calls]

    def count(self, task: str) -> int:
        return sum(1 for c in self.calls if c.task == task)

    async def run_step(self, invocation: TaskInvocation) -> dict[str, Any]:
        self.calls.append(
            RecordedCall(task=invocation.name, effect_id=invocation.effect_id, args=invocation.args)
        )

        delay = self.delays.get(invocation.name)
        if delay:
            await asyncio.sleep(delay)

        if invocation.name not in self.responses:
            if self.strict:
                raise KeyError(f"No scripted response for task: {invocation.name}")
            logger.debug("No scripted response for %s, using model defaults", invocation.name)
            return invocation.definition.output_model().model_dump()

        response = self.responses[invocation.name]
        if callable(response) and not isinstance(response, Exception):
            response = response(invocation)

        if isinstance(response, Exception):
            raise response

        return dict(response)
