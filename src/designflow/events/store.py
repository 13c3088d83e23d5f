"""Run persistence: journal, task io files and final output per run.

Layout under ``storage_dir``::

    <run_id>/
        run.json          # RunState
        journal.jsonl     # one event per line
        tasks/<effect_id>/input.json
        tasks/<effect_id>/result.json
        output.json       # final process result
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from pydantic_core import to_jsonable_python

from designflow.events.bus import Event, EventBus, EventType

logger = logging.getLogger(__name__)


@dataclass
class RunState:
    """Persistent state for a process run."""

    run_id: str
    process_id: str
    status: str = "running"  # running, waiting, completed, failed
    inputs: dict[str, Any] = field(default_factory=dict)
    steps_completed: int = 0
    checkpoints: list[dict[str, Any]] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunState:
        return cls(**data)

    def touch(self) -> None:
        self.updated_at = time.time()


def _dump(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(to_jsonable_python(payload), f, indent=2)


class RunStore:
    """Persists process runs to disk.

    Usage:
        store = RunStore(".designflow/runs")
        store.connect(event_bus)

        runs = store.list_runs()
        state = store.load_run("run-0001")
    """

    def __init__(self, storage_dir: str | Path = ".designflow/runs") -> None:
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self._runs: dict[str, RunState] = {}

    def connect(self, event_bus: EventBus) -> None:
        """Subscribe to the event bus and journal every run event."""
        event_bus.subscribe(EventType.PROCESS_START, self._on_process_start)
        event_bus.subscribe(EventType.PROCESS_COMPLETE, self._on_process_complete)
        event_bus.subscribe(EventType.PROCESS_ERROR, self._on_process_error)
        event_bus.subscribe(EventType.STEP_COMPLETE, self._on_step_complete)
        event_bus.subscribe(EventType.CHECKPOINT_REQUESTED, self._on_checkpoint_requested)
        event_bus.subscribe(EventType.CHECKPOINT_RELEASED, self._on_checkpoint_released)
        event_bus.subscribe_all(self._on_any_event)
        logger.info("RunStore connected to EventBus (%s)", self.storage_dir)

    def run_dir(self, run_id: str) -> Path:
        return self.storage_dir / run_id

    @property
    def active_runs(self) -> list[str]:
        """Ids of runs that have started and not yet completed or failed."""
        return list(self._runs)

    # Event handlers

    async def _on_process_start(self, event: Event) -> None:
        state = RunState(
            run_id=event.run_id,
            process_id=event.source,
            inputs=event.data.get("inputs", {}),
        )
        self._runs[event.run_id] = state
        self._save_state(state)
        logger.info("Started tracking run %s (%s)", event.run_id, event.source)

    async def _on_process_complete(self, event: Event) -> None:
        state = self._runs.get(event.run_id)
        if state:
            state.status = "completed"
            state.touch()
            self._save_state(state)
            self._runs.pop(event.run_id, None)

    async def _on_process_error(self, event: Event) -> None:
        state = self._runs.get(event.run_id)
        if state:
            state.status = "failed"
            state.error = event.data.get("error", "Unknown error")
            state.touch()
            self._save_state(state)
            logger.error("Run %s failed: %s", event.run_id, state.error)
            self._runs.pop(event.run_id, None)

    async def _on_step_complete(self, event: Event) -> None:
        state = self._runs.get(event.run_id)
        if state:
            state.steps_completed += 1
            state.touch()
            self._save_state(state)

    async def _on_checkpoint_requested(self, event: Event) -> None:
        state = self._runs.get(event.run_id)
        if state:
            state.status = "waiting"
            state.checkpoints.append(
                {
                    "checkpoint_id": event.data.get("checkpoint_id"),
                    "title": event.data.get("title"),
                    "status": "waiting",
                }
            )
            state.touch()
            self._save_state(state)

    async def _on_checkpoint_released(self, event: Event) -> None:
        state = self._runs.get(event.run_id)
        if state:
            checkpoint_id = event.data.get("checkpoint_id")
            for checkpoint in state.checkpoints:
                if checkpoint["checkpoint_id"] == checkpoint_id:
                    checkpoint["status"] = "approved" if event.data.get("approved") else "rejected"
                    checkpoint["feedback"] = event.data.get("feedback")
            state.status = "running"
            state.touch()
            self._save_state(state)

    async def _on_any_event(self, event: Event) -> None:
        if not event.run_id:
            return
        path = self.run_dir(event.run_id) / "journal.jsonl"
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a") as f:
            f.write(json.dumps(to_jsonable_python(event.to_dict())) + "\n")

    # Task io and output

    def write_task_input(self, run_id: str, relative_path: str, args: dict[str, Any]) -> Path:
        path = self.run_dir(run_id) / relative_path
        _dump(path, args)
        return path

    def write_task_result(self, run_id: str, relative_path: str, result: Any) -> Path:
        path = self.run_dir(run_id) / relative_path
        _dump(path, result)
        return path

    def write_output(self, run_id: str, result: Any) -> Path:
        path = self.run_dir(run_id) / "output.json"
        _dump(path, result)
        return path

    def _save_state(self, state: RunState) -> None:
        _dump(self.run_dir(state.run_id) / "run.json", state.to_dict())

    # Queries

    def load_run(self, run_id: str) -> RunState | None:
        """Load a run state from disk."""
        path = self.run_dir(run_id) / "run.json"
        if not path.exists():
            return None

        with open(path) as f:
            data = json.load(f)
        return RunState.from_dict(data)

    def load_journal(self, run_id: str) -> list[Event]:
        """Load the journaled events of a run, in emission order."""
        path = self.run_dir(run_id) / "journal.jsonl"
        if not path.exists():
            return []

        with open(path) as f:
            return [Event.from_dict(json.loads(line)) for line in f if line.strip()]

    def load_output(self, run_id: str) -> dict[str, Any] | None:
        path = self.run_dir(run_id) / "output.json"
        if not path.exists():
            return None
        with open(path) as f:
            return json.load(f)

    def list_runs(
        self,
        status: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """List runs, newest first, with an optional status filter."""
        runs = []

        state_files = sorted(
            self.storage_dir.glob("*/run.json"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        for path in state_files:
            with open(path) as f:
                data = json.load(f)

            if status and data.get("status") != status:
                continue

            runs.append(
                {
                    "id": data["run_id"],
                    "process_id": data["process_id"],
                    "status": data["status"],
                    "steps_completed": data.get("steps_completed", 0),
                    "created_at": data["created_at"],
                    "updated_at": data["updated_at"],
                }
            )
            if len(runs) >= limit:
                break

        return runs

    def delete_run(self, run_id: str) -> bool:
        """Delete a run's state, journal and task files."""
        run_dir = self.run_dir(run_id)
        if not run_dir.exists():
            return False
        for path in sorted(run_dir.rglob("*"), reverse=True):
            if path.is_dir():
                path.rmdir()
            else:
                path.unlink()
        run_dir.rmdir()
        self._runs.pop(run_id, None)
        return True
