from __future__ import annotations

"""Exceptions raised by the designflow runtime."""

from typing import Any


class DesignFlowError(Exception):
    """Base class for all designflow errors."""


class TaskOutputError(DesignFlowError):
    """Raised when a step runner returns output that does not fit the task's model."""

    def __init__(self, task_name: str, message: str, raw_output: Any = None) -> None:
        super().__init__(f"Invalid output from task '{task_name}': {message}")
        self.task_name = task_name
        self.raw_output = raw_output


class CheckpointRejectedError(DesignFlowError):
    """Raised when a reviewer declines to release a checkpoint."""

    def __init__(self, title: str, feedback: str | None = None) -> None:
        message = f"Checkpoint '{title}' was rejected"
        if feedback:
            message += f": {feedback}"
        super().__init__(message)
        self.title = title
        self.feedback = feedback


class UnknownProcessError(DesignFlowError):
    """Raised when a process id is not in the registry."""

    def __init__(self, process_id: str, known: list[str] | None = None) -> None:
        message = f"Unknown process: {process_id}"
        if known:
            message += f". Available: {', '.join(known)}"
        super().__init__(message)
        self.process_id = process_id


class ProcessInputError(DesignFlowError):
    """Raised when process inputs fail validation."""
