"""Append-only artifact ledger threaded through a process run."""

from __future__ import annotations

from typing import Iterable, Iterator, overload

from designflow.models.schemas import Artifact, CheckpointFile, StepOutput


class ArtifactLedger:
    """Immutable, ordered collection of artifacts.

    ``extend`` and ``record`` return a new ledger, so a process threads the
    value through its steps instead of mutating a shared list:

        artifacts = ArtifactLedger()
        plan = await ctx.task(planning_task, {...})
        artifacts = artifacts.record(plan)
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Artifact] = ()) -> None:
        self._items: tuple[Artifact, ...] = tuple(items)

    def extend(self, artifacts: Iterable[Artifact]) -> ArtifactLedger:
        """Return a ledger with ``artifacts`` appended in order."""
        return ArtifactLedger(self._items + tuple(artifacts))

    def record(self, *outputs: StepOutput | None) -> ArtifactLedger:
        """Append the artifacts of each step output, in argument order."""
        ledger = self
        for output in outputs:
            if output is not None:
                ledger = ledger.extend(output.artifacts)
        return ledger

    def record_all(self, outputs: Iterable[StepOutput]) -> ArtifactLedger:
        """Append the artifacts of a joined parallel fan-out, in submission order."""
        return self.record(*outputs)

    def as_files(self, default_format: str = "markdown") -> list[CheckpointFile]:
        """Render the ledger as checkpoint file references."""
        return [
            CheckpointFile(
                path=a.path,
                format=a.format or default_format,
                language=a.language,
                label=a.label,
            )
            for a in self._items
        ]

    def to_list(self) -> list[Artifact]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Artifact]:
        return iter(self._items)

    @overload
    def __getitem__(self, index: int) -> Artifact: ...

    @overload
    def __getitem__(self, index: slice) -> list[Artifact]: ...

    def __getitem__(self, index: int | slice) -> Artifact | list[Artifact]:
        if isinstance(index, slice):
            return list(self._items[index])
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ArtifactLedger):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"ArtifactLedger({len(self._items)} artifacts)"
