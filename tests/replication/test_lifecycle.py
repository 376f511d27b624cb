"""Tests for the conductor lifecycle state machine."""

import pytest

from conductor.replication.exceptions import InvalidStateTransitionError
from conductor.replication.state_machine import (
    VALID_TRANSITIONS,
    ConductorState,
    LifecycleTracker,
)


class TestValidTransitions:
    """Test the transition table."""

    def test_every_state_has_an_entry(self):
        assert set(VALID_TRANSITIONS) == set(ConductorState)

    def test_starting_cannot_restart(self):
        assert ConductorState.STARTING not in VALID_TRANSITIONS[ConductorState.STARTING]

    def test_idle_cannot_run_without_starting(self):
        assert ConductorState.RUNNING not in VALID_TRANSITIONS[ConductorState.IDLE]


class TestLifecycleTracker:
    """Test LifecycleTracker."""

    def test_initial_state(self):
        tracker = LifecycleTracker()
        assert tracker.state is ConductorState.IDLE
        assert tracker.history == []

    def test_happy_path(self):
        tracker = LifecycleTracker()
        tracker.transition(ConductorState.STARTING)
        tracker.transition(ConductorState.RUNNING, reason="goals written")

        assert tracker.state is ConductorState.RUNNING
        assert [t.to_state for t in tracker.history] == [
            ConductorState.STARTING,
            ConductorState.RUNNING,
        ]
        assert tracker.history[-1].reason == "goals written"

    def test_invalid_transition_raises_and_keeps_state(self):
        tracker = LifecycleTracker()
        tracker.transition(ConductorState.STARTING)

        with pytest.raises(InvalidStateTransitionError, match="starting"):
            tracker.transition(ConductorState.STARTING)

        assert tracker.state is ConductorState.STARTING
        assert len(tracker.history) == 1

    def test_stop_is_idempotent(self):
        tracker = LifecycleTracker(ConductorState.STOPPED)
        transition = tracker.transition(ConductorState.STOPPED)
        assert transition.is_idempotent()

    def test_error_code(self):
        tracker = LifecycleTracker(ConductorState.STARTING)
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            tracker.transition(ConductorState.STOPPED)
        assert exc_info.value.code == "INVALID_STATE_TRANSITION"
        assert isinstance(exc_info.value, ValueError)
