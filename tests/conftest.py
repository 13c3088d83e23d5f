"""Shared fixtures for designflow tests."""

import pytest

from designflow.execution.context import ProcessContext
from designflow.runners import AutoApproveReviewer, ScriptedStepRunner
from designflow.testing import FixedClock, SequentialIds


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def ids():
    return SequentialIds("id")


@pytest.fixture
def reviewer():
    return AutoApproveReviewer()


@pytest.fixture
def make_context(reviewer, clock, ids):
    """Build a ProcessContext around a scripted runner."""

    def _make(runner=None, **kwargs):
        return ProcessContext(
            process_id="specializations/ux-ui-design/test-process",
            runner=runner or ScriptedStepRunner(),
            reviewer=kwargs.pop("reviewer", reviewer),
            run_id="run-0001",
            clock=clock,
            id_factory=ids,
            **kwargs,
        )

    return _make
