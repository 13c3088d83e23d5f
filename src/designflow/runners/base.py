from __future__ import annotations

"""Capabilities the process runtime depends on: running tasks and reviewing checkpoints."""

from abc import ABC, abstractmethod
from typing import Any

from designflow.models.schemas import CheckpointRequest, ReviewDecision
from designflow.tasks.definition import TaskInvocation


class StepRunner(ABC):
    """Executes a single task invocation and returns its raw output.

    The runtime validates the returned mapping against the task's output
    model; implementations only need to produce JSON-like data.
    """

    name: str = "StepRunner"

    @abstractmethod
    async def run_step(self, invocation: TaskInvocation) -> dict[str, Any]:
        """Run one task.

        Args:
            invocation: Task definition, arguments and ids for this call

        Returns:
            The task's raw output (camelCase or snake_case keys)
        """


class Reviewer(ABC):
    """Answers human-in-the-loop checkpoints."""

    @abstractmethod
    async def review(self, request: CheckpointRequest) -> ReviewDecision:
        """Decide whether the run may continue past a checkpoint."""
