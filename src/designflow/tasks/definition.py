from __future__ import annotations

"""Declarative task definitions handed to a step runner."""

import json
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from designflow.models.schemas import StepOutput

OutputT = TypeVar("OutputT", bound=StepOutput)

INPUT_PATH_TEMPLATE = "tasks/{effect_id}/input.json"
RESULT_PATH_TEMPLATE = "tasks/{effect_id}/result.json"


@dataclass(frozen=True)
class AgentPrompt:
    """Role and instructions for the generative agent that runs a task."""

    name: str
    role: str
    task: str
    instructions: tuple[str, ...] = ()


@dataclass(frozen=True)
class TaskDefinition(Generic[OutputT]):
    """A named unit of work with a typed output model.

    Definitions carry no behaviour: a ``StepRunner`` decides how the work is
    done, the definition only describes it.
    """

    name: str
    title: str
    agent: AgentPrompt
    output_model: type[OutputT]
    labels: tuple[str, ...] = ()

    def io_paths(self, effect_id: str) -> dict[str, str]:
        """Input/output JSON locations relative to the run directory."""
        return {
            "input": INPUT_PATH_TEMPLATE.format(effect_id=effect_id),
            "result": RESULT_PATH_TEMPLATE.format(effect_id=effect_id),
        }

    def output_schema(self) -> dict[str, Any]:
        """JSON schema of the expected output, using the camelCase names agents emit."""
        return self.output_model.model_json_schema(by_alias=True, mode="validation")

    def output_schema_text(self) -> str:
        return json.dumps(self.output_schema(), indent=2)


@dataclass(frozen=True)
class TaskInvocation:
    """One execution request for a task: the definition plus its arguments."""

    effect_id: str
    run_id: str
    definition: TaskDefinition[Any]
    args: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.definition.name


def define_task(
    name: str,
    title: str,
    *,
    agent: str,
    role: str,
    task: str,
    output: type[OutputT],
    instructions: list[str] | tuple[str, ...] = (),
    labels: list[str] | tuple[str, ...] = (),
) -> TaskDefinition[OutputT]:
    """Build a ``TaskDefinition`` for an agent-backed task.

    Args:
        name: Stable task name, used for effect ids and scripted responses
        title: Human-readable title
        agent: Name of the agent persona
        role: Role description given to the agent
        task: What the agent must produce
        output: StepOutput subclass the result is validated against
        instructions: Ordered instructions for the agent
        labels: Free-form labels for filtering and journaling

    Returns:
        An immutable TaskDefinition
    """
    return TaskDefinition(
        name=name,
        title=title,
        agent=AgentPrompt(
            name=agent,
            role=role,
            task=task,
            instructions=tuple(instructions),
        ),
        output_model=output,
        labels=("agent", *labels),
    )
