from __future__ import annotations

"""designflow - UX/UI design process orchestration runtime."""

__version__ = "0.1.0"

from designflow.execution.context import ProcessContext
from designflow.models.ledger import ArtifactLedger
from designflow.orchestrator import ProcessRunner
from designflow.processes import get_process, list_processes

__all__ = [
    "ArtifactLedger",
    "ProcessContext",
    "ProcessRunner",
    "__version__",
    "get_process",
    "list_processes",
]
