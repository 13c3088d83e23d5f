from __future__ import annotations

"""Checkpoint reviewers."""

import asyncio
import json
import logging
from typing import Callable, TextIO

from designflow.models.schemas import CheckpointRequest, ReviewDecision
from designflow.runners.base import Reviewer

logger = logging.getLogger(__name__)


class AutoApproveReviewer(Reviewer):
    """Approves every checkpoint and keeps the requests for inspection."""

    def __init__(self) -> None:
        self.requests: list[CheckpointRequest] = []

    @property
    def titles(self) -> list[str]:
        return [r.title for r in self.requests]

    async def review(self, request: CheckpointRequest) -> ReviewDecision:
        self.requests.append(request)
        logger.info("Auto-approving checkpoint: %s", request.title)
        return ReviewDecision(approved=True)


class ConsoleReviewer(Reviewer):
    """Asks a human on the terminal to approve each checkpoint."""

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output: TextIO | None = None,
        show_context: bool = True,
    ) -> None:
        self.input_fn = input_fn
        self.output = output
        self.show_context = show_context

    def _print(self, text: str = "") -> None:
        print(text, file=self.output)

    def _render(self, request: CheckpointRequest) -> None:
        self._print()
        self._print("=" * 60)
        self._print(f"CHECKPOINT: {request.title}")
        self._print("-" * 60)
        self._print(request.question)
        if self.show_context and request.context:
            self._print()
            self._print(json.dumps(request.context, indent=2, default=str)[:2000])
        if request.files:
            self._print()
            self._print("Files:")
            for f in request.files[:20]:
                label = f" ({f.label})" if f.label else ""
                self._print(f"  - {f.path} [{f.format}]{label}")
            if len(request.files) > 20:
                self._print(f"  ... and {len(request.files) - 20} more")

    async def review(self, request: CheckpointRequest) -> ReviewDecision:
        self._render(request)
        answer = await asyncio.to_thread(self.input_fn, "Approve? [Y/n/feedback]: ")
        answer = answer.strip()

        if not answer or answer.lower() in ("y", "yes"):
            return ReviewDecision(approved=True)
        if answer.lower() in ("n", "no"):
            return ReviewDecision(approved=False)
        # Free text counts as approval with feedback attached
        return ReviewDecision(approved=True, feedback=answer)
