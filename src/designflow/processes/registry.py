"""Registry of process definitions.

Maps a process id such as ``specializations/ux-ui-design/card-sorting`` to its
inputs model and async handler. Process modules register themselves on import.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import BaseModel

from designflow.errors import UnknownProcessError

if TYPE_CHECKING:
    from designflow.execution.context import ProcessContext

ProcessHandler = Callable[[Any, "ProcessContext"], Awaitable[BaseModel]]

PROCESS_PREFIX = "specializations/ux-ui-design/"


@dataclass(frozen=True)
class ProcessDefinition:
    """A registered process: id, description, inputs model and handler."""

    id: str
    description: str
    inputs_model: type[BaseModel]
    handler: ProcessHandler
    references: tuple[str, ...] = field(default=())

    @property
    def short_name(self) -> str:
        return self.id.rsplit("/", 1)[-1]

    def describe(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "inputs": self.inputs_model.model_json_schema(),
            "references": list(self.references),
        }


_REGISTRY: dict[str, ProcessDefinition] = {}


def register_process(
    process_id: str,
    *,
    inputs: type[BaseModel],
    description: str,
    references: list[str] | tuple[str, ...] = (),
) -> Callable[[ProcessHandler], ProcessHandler]:
    """Decorator to register an async process function under ``process_id``."""

    def _wrap(fn: ProcessHandler) -> ProcessHandler:
        _REGISTRY[process_id] = ProcessDefinition(
            id=process_id,
            description=description,
            inputs_model=inputs,
            handler=fn,
            references=tuple(references),
        )
        return fn

    return _wrap


def get_process(process_id: str) -> ProcessDefinition:
    """Retrieve a registered process by full id or short name.

    Raises:
        UnknownProcessError: If nothing is registered under that id
    """
    if process_id in _REGISTRY:
        return _REGISTRY[process_id]
    if PROCESS_PREFIX + process_id in _REGISTRY:
        return _REGISTRY[PROCESS_PREFIX + process_id]
    raise UnknownProcessError(process_id, sorted(_REGISTRY))


def list_processes() -> list[ProcessDefinition]:
    return [_REGISTRY[k] for k in sorted(_REGISTRY)]
