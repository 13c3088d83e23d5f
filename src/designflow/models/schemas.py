from __future__ import annotations

"""Pydantic schemas shared by the runtime and the process definitions."""

from datetime import datetime
from typing import Any

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Agents answer in camelCase JSON; Python code reads snake_case attributes.
CAMEL_CONFIG = ConfigDict(
    alias_generator=AliasGenerator(validation_alias=to_camel),
    populate_by_name=True,
    extra="allow",
)


class Artifact(BaseModel):
    """A file-like output produced by a task."""

    model_config = CAMEL_CONFIG

    path: str = Field(..., description="Path of the generated file")
    format: str = Field(default="markdown", description="Format tag: markdown, json, image, ...")
    language: str | None = None
    label: str | None = None


class StepOutput(BaseModel):
    """Base class for every task result.

    Subclasses declare the typed fields a process reads. Every field has a
    default so that partial agent output still validates; unknown fields are
    kept as extras.
    """

    model_config = CAMEL_CONFIG

    artifacts: list[Artifact] = Field(default_factory=list)


class CheckpointFile(BaseModel):
    """Reference to a file shown to a reviewer."""

    path: str
    format: str = "markdown"
    language: str | None = None
    label: str | None = None


class CheckpointRequest(BaseModel):
    """A pause point surfaced to a human reviewer."""

    checkpoint_id: str
    run_id: str
    title: str
    question: str
    context: dict[str, Any] = Field(default_factory=dict)
    files: list[CheckpointFile] = Field(default_factory=list)


class ReviewDecision(BaseModel):
    """A reviewer's answer to a checkpoint."""

    approved: bool = True
    feedback: str | None = None


class ProcessMetadata(BaseModel):
    """Metadata attached to every process result."""

    process_id: str
    run_id: str
    timestamp: datetime
    version: str = "1.0.0"
    inputs: dict[str, Any] = Field(default_factory=dict)


class ProcessResult(BaseModel):
    """Base class for the final result of a process run."""

    success: bool = True
    artifacts: list[Artifact] = Field(default_factory=list)
    duration_seconds: float = 0.0
    metadata: ProcessMetadata


class ProcessFailure(BaseModel):
    """Early-return result when an upfront planning step rejects its own plan."""

    success: bool = False
    reason: str
    recommendations: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)
    metadata: ProcessMetadata
