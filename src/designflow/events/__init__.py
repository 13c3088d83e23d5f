"""Event bus and run journal for designflow.

Enables observation of process runs by the store, the CLI and tests.
"""

from designflow.events.bus import (
    Event,
    EventBus,
    EventType,
)
from designflow.events.store import (
    RunState,
    RunStore,
)

__all__ = [
    "Event",
    "EventBus",
    "EventType",
    "RunState",
    "RunStore",
]
