"""Tests for threshold gates."""

import pytest

from designflow.execution.gates import GateState, GateStateError, ThresholdGate


class TestThresholdGate:
    def test_score_below_threshold_pauses(self):
        gate = ThresholdGate(threshold=70)
        assert gate.evaluate(65) is True
        assert gate.state is GateState.AWAITING_REVIEW

    def test_score_equal_to_threshold_passes(self):
        gate = ThresholdGate(threshold=70)
        assert gate.evaluate(70) is False
        assert gate.state is GateState.PROCEEDING

    def test_missing_score_counts_as_zero(self):
        gate = ThresholdGate(threshold=1)
        assert gate.passes(None) is False
        assert ThresholdGate(threshold=0).passes(None) is True

    def test_release_returns_to_proceeding(self):
        gate = ThresholdGate(threshold=80)
        gate.evaluate(10)
        gate.release()
        assert not gate.is_waiting

    def test_release_without_review_fails(self):
        with pytest.raises(GateStateError):
            ThresholdGate(threshold=80).release()

    def test_evaluate_while_waiting_fails(self):
        gate = ThresholdGate(threshold=80)
        gate.evaluate(10)
        with pytest.raises(GateStateError):
            gate.evaluate(90)

    def test_history(self):
        gate = ThresholdGate(threshold=50)
        gate.evaluate(60)
        gate.evaluate(None)
        assert gate.history == [(60, False), (0, True)]
