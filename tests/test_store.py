"""Tests for the event bus and run store."""

import pytest

from designflow.events.bus import Event, EventBus, EventType
from designflow.events.store import RunStore


def _event(event_type, run_id="run-1", **data):
    return Event(type=event_type, source="specializations/ux-ui-design/card-sorting", data=data, run_id=run_id)


class TestEventBus:
    @pytest.mark.asyncio
    async def test_subscribe_and_emit(self):
        bus = EventBus()
        seen = []

        async def handler(event):
            seen.append(event.data["task"])

        bus.subscribe(EventType.STEP_COMPLETE, handler)
        await bus.emit(_event(EventType.STEP_COMPLETE, task="study-planning"))
        await bus.emit(_event(EventType.STEP_START, task="ignored"))

        assert seen == ["study-planning"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        seen = []

        async def handler(event):
            seen.append(event)

        unsubscribe = bus.subscribe_all(handler)
        unsubscribe()
        await bus.emit(_event(EventType.LOG))
        assert seen == []

    @pytest.mark.asyncio
    async def test_handler_error_does_not_propagate(self):
        bus = EventBus()

        async def broken(event):
            raise RuntimeError("handler bug")

        bus.subscribe(EventType.LOG, broken)
        await bus.emit(_event(EventType.LOG))
        assert bus.get_metrics()["events_processed"] == 1

    def test_history_filters_and_bound(self):
        bus = EventBus(max_history=3)
        for i in range(5):
            bus.record(_event(EventType.LOG, run_id=f"run-{i % 2}"))
        assert len(bus.get_history()) == 3
        assert all(e.run_id == "run-0" for e in bus.get_history(run_id="run-0"))

    def test_event_round_trip(self):
        event = _event(EventType.CHECKPOINT_REQUESTED, title="Pilot Test Review")
        assert Event.from_dict(event.to_dict()) == event


class TestRunStore:
    @pytest.mark.asyncio
    async def test_tracks_run_lifecycle(self, tmp_path):
        bus = EventBus()
        store = RunStore(tmp_path)
        store.connect(bus)

        await bus.emit(_event(EventType.PROCESS_START, inputs={"projectName": "Shop"}))
        await bus.emit(_event(EventType.STEP_COMPLETE, task="study-planning"))
        await bus.emit(_event(EventType.CHECKPOINT_REQUESTED, checkpoint_id="c1", title="Setup"))
        assert store.load_run("run-1").status == "waiting"

        await bus.emit(_event(EventType.CHECKPOINT_RELEASED, checkpoint_id="c1", approved=True))
        await bus.emit(_event(EventType.PROCESS_COMPLETE, success=True))

        state = store.load_run("run-1")
        assert state.status == "completed"
        assert state.steps_completed == 1
        assert state.inputs == {"projectName": "Shop"}
        assert state.checkpoints[0]["status"] == "approved"

    @pytest.mark.asyncio
    async def test_journal(self, tmp_path):
        bus = EventBus()
        store = RunStore(tmp_path)
        store.connect(bus)

        await bus.emit(_event(EventType.PROCESS_START))
        await bus.emit(_event(EventType.PROCESS_ERROR, error="boom"))

        journal = store.load_journal("run-1")
        assert [e.type for e in journal] == [EventType.PROCESS_START, EventType.PROCESS_ERROR]
        assert store.load_run("run-1").error == "boom"

    @pytest.mark.asyncio
    async def test_finished_runs_are_evicted(self, tmp_path):
        bus = EventBus()
        store = RunStore(tmp_path)
        store.connect(bus)

        for run_id in ("a", "b", "c"):
            await bus.emit(_event(EventType.PROCESS_START, run_id=run_id))
        assert sorted(store.active_runs) == ["a", "b", "c"]

        await bus.emit(_event(EventType.PROCESS_COMPLETE, run_id="a"))
        await bus.emit(_event(EventType.PROCESS_ERROR, run_id="b", error="boom"))

        assert store.active_runs == ["c"]
        assert store.load_run("a").status == "completed"
        assert store.load_run("b").status == "failed"
        assert store.active_runs == ["c"]

    def test_output_and_missing_run(self, tmp_path):
        store = RunStore(tmp_path)
        store.write_output("run-9", {"success": True})
        assert store.load_output("run-9") == {"success": True}
        assert store.load_run("missing") is None
        assert store.load_journal("missing") == []

    @pytest.mark.asyncio
    async def test_list_and_delete(self, tmp_path):
        bus = EventBus()
        store = RunStore(tmp_path)
        store.connect(bus)
        await bus.emit(_event(EventType.PROCESS_START, run_id="a"))
        await bus.emit(_event(EventType.PROCESS_START, run_id="b"))
        await bus.emit(_event(EventType.PROCESS_COMPLETE, run_id="b"))

        assert {r["id"] for r in store.list_runs()} == {"a", "b"}
        assert [r["id"] for r in store.list_runs(status="completed")] == ["b"]

        assert store.delete_run("a") is True
        assert store.delete_run("a") is False
        assert [r["id"] for r in store.list_runs()] == ["b"]
