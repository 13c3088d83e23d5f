"""Threshold-gated checkpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class GateState(Enum):
    """States of a checkpoint gate."""

    PROCEEDING = "proceeding"
    AWAITING_REVIEW = "awaiting_review"


class GateStateError(RuntimeError):
    """Raised on an invalid gate transition."""


@dataclass
class ThresholdGate:
    """Decides whether a score needs human review.

    ``score >= threshold`` passes straight through. A lower score moves the
    gate to AWAITING_REVIEW until ``release()`` is called on approval.

    Example usage:
        gate = ThresholdGate(threshold=70)
        if gate.evaluate(65):
            ...  # raise the checkpoint, then
            gate.release()
    """

    threshold: float
    name: str = "gate"
    state: GateState = GateState.PROCEEDING
    history: list[tuple[float, bool]] = field(default_factory=list)

    def passes(self, score: float | None) -> bool:
        """True when the score meets the threshold (inclusive). None counts as 0."""
        return (score or 0) >= self.threshold

    def evaluate(self, score: float | None) -> bool:
        """Record a score and return True when a checkpoint must be raised.

        Raises:
            GateStateError: If the gate is already waiting for a review
        """
        if self.state is GateState.AWAITING_REVIEW:
            raise GateStateError(f"Gate '{self.name}' is already awaiting review")

        paused = not self.passes(score)
        self.history.append((score or 0, paused))

        if paused:
            self.state = GateState.AWAITING_REVIEW
            logger.info(
                "Gate %s: score %s below threshold %s, awaiting review",
                self.name, score, self.threshold,
            )
        else:
            logger.debug("Gate %s: score %s meets threshold %s", self.name, score, self.threshold)
        return paused

    def release(self) -> None:
        """Return to PROCEEDING after reviewer approval."""
        if self.state is not GateState.AWAITING_REVIEW:
            raise GateStateError(f"Gate '{self.name}' is not awaiting review")
        self.state = GateState.PROCEEDING

    @property
    def is_waiting(self) -> bool:
        return self.state is GateState.AWAITING_REVIEW
