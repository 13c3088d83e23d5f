"""Step runners and checkpoint reviewers."""

from designflow.runners.agent import AgentStepRunner
from designflow.runners.base import Reviewer, StepRunner
from designflow.runners.review import AutoApproveReviewer, ConsoleReviewer
from designflow.runners.scripted import ScriptedStepRunner

__all__ = [
    "AgentStepRunner",
    "AutoApproveReviewer",
    "ConsoleReviewer",
    "Reviewer",
    "ScriptedStepRunner",
    "StepRunner",
]
