"""Task definitions consumed by step runners."""

from designflow.tasks.definition import (
    AgentPrompt,
    TaskDefinition,
    TaskInvocation,
    define_task,
)

__all__ = [
    "AgentPrompt",
    "TaskDefinition",
    "TaskInvocation",
    "define_task",
]
