from __future__ import annotations

"""Pydantic models and schemas."""

from designflow.models.ledger import ArtifactLedger
from designflow.models.schemas import (
    Artifact,
    CheckpointFile,
    CheckpointRequest,
    ProcessFailure,
    ProcessMetadata,
    ProcessResult,
    ReviewDecision,
    StepOutput,
)

__all__ = [
    "Artifact",
    "ArtifactLedger",
    "CheckpointFile",
    "CheckpointRequest",
    "ProcessFailure",
    "ProcessMetadata",
    "ProcessResult",
    "ReviewDecision",
    "StepOutput",
]
