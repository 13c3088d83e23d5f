"""Execution primitives for process runs.

Provides the per-run context, parallel fan-out and threshold gates.
"""

from designflow.execution.context import ProcessContext
from designflow.execution.gates import GateState, ThresholdGate
from designflow.execution.parallel import ParallelFanOut, run_all

__all__ = [
    "GateState",
    "ParallelFanOut",
    "ProcessContext",
    "ThresholdGate",
    "run_all",
]
