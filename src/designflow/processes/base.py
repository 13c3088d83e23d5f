"""Shared pieces for process definitions."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from designflow.execution.context import ProcessContext
from designflow.models.schemas import ProcessFailure

# Inputs arrive as camelCase JSON from the CLI but are built with snake_case in code.
INPUTS_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)


class ProcessInputs(BaseModel):
    """Inputs every process accepts."""

    model_config = INPUTS_CONFIG

    project_name: str = Field(..., min_length=1)
    output_dir: str = "output"


def review_context(
    ctx: ProcessContext,
    summary: dict[str, Any],
    **extra: Any,
) -> dict[str, Any]:
    """Context bundle shown with a checkpoint: the run id plus a summary."""
    context: dict[str, Any] = {"run_id": ctx.run_id, "summary": summary}
    context.update(extra)
    return context


def elapsed_seconds(ctx: ProcessContext, started_at: datetime) -> float:
    return (ctx.now() - started_at).total_seconds()


def early_failure(
    ctx: ProcessContext,
    started_at: datetime,
    inputs: ProcessInputs,
    reason: str,
    recommendations: list[str] | None = None,
    **details: Any,
) -> ProcessFailure:
    """Build the result returned when a planning step rejects its own plan."""
    ctx.log("warn", reason)
    return ProcessFailure(
        reason=reason,
        recommendations=list(recommendations or []),
        details=details,
        metadata=ctx.metadata(started_at, inputs.model_dump()),
    )
