from __future__ import annotations

"""ProcessRunner - hosts a registered process for one run."""

import logging
from typing import Any, Mapping

from pydantic import BaseModel, ValidationError

from designflow.errors import ProcessInputError
from designflow.events.bus import Event, EventBus, EventType
from designflow.events.store import RunStore
from designflow.execution.context import ProcessContext
from designflow.processes import get_process
from designflow.runners.base import Reviewer, StepRunner
from designflow.testing import Clock, IdFactory, random_id, system_clock

logger = logging.getLogger(__name__)


class ProcessRunner:
    """Runs registered processes against a step runner and a reviewer.

    For each run:
    - inputs are validated against the process's inputs model
    - a ProcessContext is created with a fresh run id
    - PROCESS_START / PROCESS_COMPLETE / PROCESS_ERROR bracket the process
    - the final result is written to the run store, if one is attached

    Early-return failures are normal results; only exceptions mark a run
    failed.
    """

    def __init__(
        self,
        step_runner: StepRunner,
        reviewer: Reviewer,
        store: RunStore | None = None,
        bus: EventBus | None = None,
        clock: Clock = system_clock,
        id_factory: IdFactory = random_id,
        max_concurrent: int = 4,
    ) -> None:
        self.step_runner = step_runner
        self.reviewer = reviewer
        self.bus = bus or EventBus()
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.max_concurrent = max_concurrent

        if store:
            store.connect(self.bus)

    def create_context(self, process_id: str, run_id: str | None = None) -> ProcessContext:
        return ProcessContext(
            process_id=process_id,
            runner=self.step_runner,
            reviewer=self.reviewer,
            run_id=run_id,
            bus=self.bus,
            store=self.store,
            clock=self.clock,
            id_factory=self.id_factory,
            max_concurrent=self.max_concurrent,
        )

    async def run(
        self,
        process_id: str,
        inputs: Mapping[str, Any] | BaseModel,
        run_id: str | None = None,
    ) -> BaseModel:
        """Run a process to completion and return its result.

        Args:
            process_id: Full id or short name of a registered process
            inputs: Raw inputs (camelCase or snake_case) or a validated inputs model
            run_id: Optional explicit run id

        Returns:
            The process's result model (a ProcessResult subclass or ProcessFailure)

        Raises:
            UnknownProcessError: If the process is not registered
            ProcessInputError: If the inputs do not validate
        """
        definition = get_process(process_id)

        if isinstance(inputs, definition.inputs_model):
            validated = inputs
        else:
            raw = inputs.model_dump() if isinstance(inputs, BaseModel) else dict(inputs)
            try:
                validated = definition.inputs_model.model_validate(raw)
            except ValidationError as e:
                raise ProcessInputError(f"Invalid inputs for {definition.id}: {e}") from e

        ctx = self.create_context(definition.id, run_id)
        logger.info("Starting %s (run %s)", definition.id, ctx.run_id)

        await self.bus.emit(
            Event(
                type=EventType.PROCESS_START,
                source=definition.id,
                data={"inputs": validated.model_dump(mode="json")},
                run_id=ctx.run_id,
            )
        )

        try:
            result = await definition.handler(validated, ctx)
        except Exception as e:
            logger.error("Run %s of %s failed: %s", ctx.run_id, definition.id, e)
            await self.bus.drain()
            await self.bus.emit(
                Event(
                    type=EventType.PROCESS_ERROR,
                    source=definition.id,
                    data={"error": str(e), "error_type": type(e).__name__},
                    run_id=ctx.run_id,
                )
            )
            raise

        await self.bus.drain()
        if self.store:
            self.store.write_output(ctx.run_id, result.model_dump(mode="json"))

        success = bool(getattr(result, "success", True))
        await self.bus.emit(
            Event(
                type=EventType.PROCESS_COMPLETE,
                source=definition.id,
                data={
                    "success": success,
                    "steps_run": ctx.steps_run,
                    "checkpoints": ctx.checkpoints_raised,
                },
                run_id=ctx.run_id,
            )
        )
        logger.info(
            "Finished %s (run %s): success=%s, %d steps, %d checkpoints",
            definition.id, ctx.run_id, success, ctx.steps_run, ctx.checkpoints_raised,
        )
        return result
