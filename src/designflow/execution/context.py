from __future__ import annotations

"""ProcessContext - the primitives a process definition is written against."""

import logging
from datetime import datetime
from typing import Any, Sequence, TypeVar

from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from designflow.errors import CheckpointRejectedError, TaskOutputError
from designflow.events.bus import Event, EventBus, EventType
from designflow.events.store import RunStore
from designflow.execution.gates import ThresholdGate
from designflow.execution.parallel import ParallelFanOut, Thunk
from designflow.models.schemas import (
    CheckpointFile,
    CheckpointRequest,
    ProcessMetadata,
    StepOutput,
)
from designflow.runners.base import Reviewer, StepRunner
from designflow.tasks.definition import TaskDefinition, TaskInvocation
from designflow.testing import Clock, IdFactory, random_id, system_clock

OutputT = TypeVar("OutputT", bound=StepOutput)
T = TypeVar("T")

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ProcessContext:
    """Per-run handle passed to every process definition.

    Provides:
    - ``task``: run one task definition and get its typed output
    - ``parallel_all``: run independent tasks concurrently, join in order
    - ``breakpoint`` / ``gate``: human-in-the-loop checkpoints
    - ``log`` / ``now``: logging and the run's clock

    The context never holds process results or artifacts; a process threads
    its own ArtifactLedger.
    """

    def __init__(
        self,
        process_id: str,
        runner: StepRunner,
        reviewer: Reviewer,
        run_id: str | None = None,
        bus: EventBus | None = None,
        store: RunStore | None = None,
        clock: Clock = system_clock,
        id_factory: IdFactory = random_id,
        max_concurrent: int = 4,
    ) -> None:
        self.process_id = process_id
        self.runner = runner
        self.reviewer = reviewer
        self.run_id = run_id or id_factory()
        self.bus = bus or EventBus()
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.max_concurrent = max_concurrent
        self.logger = logging.getLogger(f"designflow.process.{process_id.rsplit('/', 1)[-1]}")

        self._steps_run = 0
        self._checkpoints_raised = 0

    @property
    def steps_run(self) -> int:
        return self._steps_run

    @property
    def checkpoints_raised(self) -> int:
        return self._checkpoints_raised

    async def _emit(self, event_type: EventType, data: dict[str, Any]) -> None:
        await self.bus.emit(
            Event(type=event_type, source=self.process_id, data=data, run_id=self.run_id)
        )

    # Utilities

    def now(self) -> datetime:
        return self.clock()

    def log(self, level: str, message: str) -> None:
        """Log a process message at a named level (debug, info, warn, error)."""
        self.logger.log(_LOG_LEVELS.get(level.lower(), logging.INFO), message)
        self.bus.emit_nowait(
            Event(
                type=EventType.LOG,
                source=self.process_id,
                data={"level": level, "message": message},
                run_id=self.run_id,
            )
        )

    def metadata(self, started_at: datetime, inputs: dict[str, Any] | None = None) -> ProcessMetadata:
        return ProcessMetadata(
            process_id=self.process_id,
            run_id=self.run_id,
            timestamp=started_at,
            inputs=inputs or {},
        )

    # Sequential step

    async def task(self, definition: TaskDefinition[OutputT], args: dict[str, Any]) -> OutputT:
        """Run a task once and return its validated output.

        Runner failures propagate unchanged after a STEP_FAILED event.

        Raises:
            TaskOutputError: If the output does not validate against the task's model
        """
        effect_id = self.id_factory()
        invocation = TaskInvocation(
            effect_id=effect_id,
            run_id=self.run_id,
            definition=definition,
            args=args,
        )
        paths = definition.io_paths(effect_id)

        if self.store:
            self.store.write_task_input(self.run_id, paths["input"], args)

        await self._emit(
            EventType.STEP_START,
            {"task": definition.name, "title": definition.title, "effect_id": effect_id},
        )

        try:
            raw = await self.runner.run_step(invocation)
        except Exception as e:
            await self._emit(
                EventType.STEP_FAILED,
                {"task": definition.name, "effect_id": effect_id, "error": str(e)},
            )
            raise

        try:
            output = definition.output_model.model_validate(raw)
        except ValidationError as e:
            await self._emit(
                EventType.STEP_FAILED,
                {"task": definition.name, "effect_id": effect_id, "error": str(e)},
            )
            raise TaskOutputError(definition.name, str(e), raw_output=raw) from e

        if self.store:
            self.store.write_task_result(self.run_id, paths["result"], output.model_dump())

        self._steps_run += 1
        await self._emit(
            EventType.STEP_COMPLETE,
            {
                "task": definition.name,
                "effect_id": effect_id,
                "artifacts": len(output.artifacts),
            },
        )
        return output

    # Parallel fan-out

    async def parallel_all(self, thunks: Sequence[Thunk[T]]) -> list[T]:
        """Run thunks concurrently and join; results follow submission order."""
        if not thunks:
            return []

        total = len(thunks)

        async def on_start(index: int) -> None:
            await self._emit(EventType.PARALLEL_UNIT_START, {"index": index, "count": total})

        async def on_complete(index: int, result: Any) -> None:
            await self._emit(EventType.PARALLEL_UNIT_COMPLETE, {"index": index, "count": total})

        fan_out = ParallelFanOut(
            thunks,
            max_concurrent=self.max_concurrent,
            on_start=on_start,
            on_complete=on_complete,
        )
        await self._emit(EventType.PARALLEL_START, {"count": total})
        results = await fan_out.execute_all()
        await self._emit(
            EventType.PARALLEL_COMPLETE,
            {"count": len(results), "completion_order": fan_out.state.completion_order},
        )
        return results

    # Checkpoints

    async def breakpoint(
        self,
        question: str,
        title: str,
        context: dict[str, Any] | None = None,
        files: Sequence[CheckpointFile] = (),
    ) -> None:
        """Pause for human review.

        Returns once the reviewer approves.

        Raises:
            CheckpointRejectedError: If the reviewer rejects the checkpoint
        """
        self._checkpoints_raised += 1
        request = CheckpointRequest(
            checkpoint_id=self.id_factory(),
            run_id=self.run_id,
            title=title,
            question=question,
            context=to_jsonable_python(context or {}),
            files=list(files),
        )

        await self._emit(
            EventType.CHECKPOINT_REQUESTED,
            {"checkpoint_id": request.checkpoint_id, "title": title, "question": question},
        )
        decision = await self.reviewer.review(request)
        await self._emit(
            EventType.CHECKPOINT_RELEASED,
            {
                "checkpoint_id": request.checkpoint_id,
                "title": title,
                "approved": decision.approved,
                "feedback": decision.feedback,
            },
        )

        if not decision.approved:
            raise CheckpointRejectedError(title, decision.feedback)

        if decision.feedback:
            self.log("info", f"Reviewer feedback on '{title}': {decision.feedback}")

    async def gate(
        self,
        score: float | None,
        threshold: float,
        *,
        title: str,
        question: str,
        context: dict[str, Any] | None = None,
        files: Sequence[CheckpointFile] = (),
    ) -> bool:
        """Raise a checkpoint only when ``score < threshold``.

        The score and threshold are embedded in the checkpoint context.

        Returns:
            True if a checkpoint was raised (and approved), False if skipped
        """
        gate = ThresholdGate(threshold=threshold, name=title)
        if not gate.evaluate(score):
            await self._emit(
                EventType.CHECKPOINT_SKIPPED,
                {"title": title, "score": score, "threshold": threshold},
            )
            return False

        gate_context = dict(context or {})
        gate_context.update(score=score or 0, threshold=threshold)
        await self.breakpoint(question, title, gate_context, files)
        gate.release()
        return True
