"""Async event bus for process runs.

Features:
- Pub/sub with async handlers
- Correlation by run id
- Bounded event history for replay/debugging
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events emitted during a process run."""

    # Process lifecycle
    PROCESS_START = auto()
    PROCESS_COMPLETE = auto()
    PROCESS_ERROR = auto()

    # Task execution
    STEP_START = auto()
    STEP_COMPLETE = auto()
    STEP_FAILED = auto()
    PARALLEL_START = auto()
    PARALLEL_UNIT_START = auto()
    PARALLEL_UNIT_COMPLETE = auto()
    PARALLEL_COMPLETE = auto()

    # Human review
    CHECKPOINT_REQUESTED = auto()
    CHECKPOINT_RELEASED = auto()
    CHECKPOINT_SKIPPED = auto()

    LOG = auto()


@dataclass
class Event:
    """An event in a process run."""

    type: EventType
    source: str  # Process id or component name
    data: dict[str, Any] = field(default_factory=dict)
    run_id: str = ""
    timestamp: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "id": self.id,
            "type": self.type.name,
            "source": self.source,
            "data": self.data,
            "run_id": self.run_id,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Event:
        """Create from dict."""
        return cls(
            id=d.get("id", ""),
            type=EventType[d["type"]],
            source=d["source"],
            data=d.get("data", {}),
            run_id=d.get("run_id", ""),
            timestamp=d.get("timestamp", time.time()),
        )


# Type alias for event handlers
EventHandler = Callable[[Event], Awaitable[None]]


class EventBus:
    """Async pub/sub event bus.

    ``emit`` awaits every matching handler concurrently. A failing handler is
    logged and never interrupts the run that emitted the event.

    Usage:
        bus = EventBus()

        async def on_step_complete(event: Event):
            print(event.data["task"])

        bus.subscribe(EventType.STEP_COMPLETE, on_step_complete)
        await bus.emit(Event(type=EventType.STEP_COMPLETE, source="runner", data={...}))
    """

    def __init__(self, max_history: int = 1000) -> None:
        self._subscribers: dict[EventType, list[EventHandler]] = {}
        self._global_subscribers: list[EventHandler] = []  # Receive ALL events
        self._history: list[Event] = []
        self._max_history = max_history
        self._pending: set[asyncio.Task[None]] = set()

        # Metrics
        self._events_processed = 0
        self._events_by_type: dict[EventType, int] = {}

    def subscribe(
        self,
        event_type: EventType,
        handler: EventHandler,
    ) -> Callable[[], None]:
        """Subscribe to a specific event type.

        Args:
            event_type: Type of event to subscribe to
            handler: Async function to call when event occurs

        Returns:
            Unsubscribe function
        """
        self._subscribers.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler to %s", event_type.name)

        def unsubscribe() -> None:
            self._subscribers[event_type].remove(handler)

        return unsubscribe

    def subscribe_all(self, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to ALL events (useful for journaling/UI).

        Args:
            handler: Async function to call for every event

        Returns:
            Unsubscribe function
        """
        self._global_subscribers.append(handler)

        def unsubscribe() -> None:
            self._global_subscribers.remove(handler)

        return unsubscribe

    def record(self, event: Event) -> None:
        """Add an event to history without dispatching it to handlers."""
        self._history.append(event)
        if len(self._history) > self._max_history:
            self._history.pop(0)
        self._events_by_type[event.type] = self._events_by_type.get(event.type, 0) + 1

    async def emit(self, event: Event) -> None:
        """Emit an event and wait for all handlers to finish."""
        self.record(event)
        await self._dispatch(event)

    def emit_nowait(self, event: Event) -> None:
        """Emit from synchronous code.

        The event is recorded immediately. Handlers are scheduled on the
        running loop and can be awaited with ``drain()``; without a running
        loop the event is only recorded.
        """
        self.record(event)
        if not self._get_handlers(event.type):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop, %s recorded only", event.type.name)
            return
        task = loop.create_task(self._dispatch(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for handlers scheduled by ``emit_nowait``."""
        while self._pending:
            pending = list(self._pending)
            self._pending.difference_update(pending)
            await asyncio.gather(*pending)

    async def _dispatch(self, event: Event) -> None:
        handlers = self._get_handlers(event.type)
        if not handlers:
            logger.debug("No handlers for %s", event.type.name)
            return

        results = await asyncio.gather(
            *[h(event) for h in handlers],
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, Exception):
                logger.error(
                    "Handler error for %s: %s",
                    event.type.name,
                    result,
                    exc_info=result,
                )

        self._events_processed += 1

    def _get_handlers(self, event_type: EventType) -> list[EventHandler]:
        """Get all handlers for an event type."""
        specific = self._subscribers.get(event_type, [])
        return specific + self._global_subscribers

    def get_history(
        self,
        event_type: EventType | None = None,
        run_id: str | None = None,
        limit: int = 100,
    ) -> list[Event]:
        """Get event history with optional filtering.

        Returns:
            List of events, oldest first
        """
        events = self._history.copy()

        if event_type:
            events = [e for e in events if e.type == event_type]

        if run_id:
            events = [e for e in events if e.run_id == run_id]

        return events[-limit:]

    def get_metrics(self) -> dict[str, Any]:
        """Get event bus metrics."""
        return {
            "events_processed": self._events_processed,
            "history_size": len(self._history),
            "events_by_type": {t.name: c for t, c in self._events_by_type.items()},
        }
