"""Tests for the lifecycle tracker."""

import pytest

from flowunit.core import (
    DONE,
    PENDING,
    CallbackKind,
    LifecycleState,
    LifecycleTracker,
    SnapshotState,
)
from flowunit.errors import IllegalLifecycleError


def call(tracker, kind, result=None):
    with tracker.guard(kind) as c:
        c.result = result


class TestLifecycleTransitions:
    """Tests for the main lifecycle order."""

    def test_happy_path(self):
        tracker = LifecycleTracker()
        assert tracker.state is LifecycleState.UNINITIALIZED

        call(tracker, CallbackKind.INIT)
        assert tracker.state is LifecycleState.INITIALIZED

        call(tracker, CallbackKind.PROCESS)
        assert tracker.state is LifecycleState.PROCESSING

        call(tracker, CallbackKind.COMPLETE, PENDING)
        assert tracker.state is LifecycleState.COMPLETING

        call(tracker, CallbackKind.COMPLETE, DONE)
        assert tracker.state is LifecycleState.COMPLETED

        call(tracker, CallbackKind.CLOSE)
        assert tracker.state is LifecycleState.CLOSED

    def test_process_before_init_rejected(self):
        with pytest.raises(IllegalLifecycleError, match="not allowed"):
            call(LifecycleTracker(), CallbackKind.PROCESS)

    def test_double_init_rejected(self):
        tracker = LifecycleTracker()
        call(tracker, CallbackKind.INIT)
        with pytest.raises(IllegalLifecycleError):
            call(tracker, CallbackKind.INIT)

    def test_process_after_complete_rejected(self):
        tracker = LifecycleTracker()
        call(tracker, CallbackKind.INIT)
        call(tracker, CallbackKind.COMPLETE, DONE)
        with pytest.raises(IllegalLifecycleError):
            call(tracker, CallbackKind.PROCESS)

    def test_exception_moves_to_failed(self):
        """Test an exception inside a callback fails the unit and propagates."""
        tracker = LifecycleTracker()
        call(tracker, CallbackKind.INIT)
        with pytest.raises(ZeroDivisionError):
            with tracker.guard(CallbackKind.PROCESS):
                1 / 0
        assert tracker.state is LifecycleState.FAILED
        assert tracker.in_callback is None
        with pytest.raises(IllegalLifecycleError):
            call(tracker, CallbackKind.PROCESS)
        call(tracker, CallbackKind.CLOSE)

    def test_reentrant_call_rejected(self):
        tracker = LifecycleTracker()
        call(tracker, CallbackKind.INIT)
        with tracker.guard(CallbackKind.PROCESS):
            assert tracker.in_callback is CallbackKind.PROCESS
            with pytest.raises(IllegalLifecycleError, match="still running"):
                call(tracker, CallbackKind.SAVE, DONE)


class TestSnapshotSubstates:
    """Tests for the snapshot sub-state."""

    def test_save_pending_blocks_processing(self):
        """Test no data callback may run in the middle of a save."""
        tracker = LifecycleTracker()
        call(tracker, CallbackKind.INIT)
        call(tracker, CallbackKind.SAVE, PENDING)
        assert tracker.snapshot_state is SnapshotState.SAVING
        with pytest.raises(IllegalLifecycleError, match="snapshot state"):
            call(tracker, CallbackKind.PROCESS)
        call(tracker, CallbackKind.SAVE, DONE)
        assert tracker.snapshot_state is SnapshotState.IDLE
        call(tracker, CallbackKind.PROCESS)

    def test_restore_then_finish(self):
        tracker = LifecycleTracker()
        call(tracker, CallbackKind.INIT)
        call(tracker, CallbackKind.RESTORE)
        assert tracker.snapshot_state is SnapshotState.RESTORING
        with pytest.raises(IllegalLifecycleError):
            call(tracker, CallbackKind.COMPLETE, DONE)
        call(tracker, CallbackKind.FINISH_RESTORE, PENDING)
        assert tracker.snapshot_state is SnapshotState.RESTORING
        call(tracker, CallbackKind.FINISH_RESTORE, DONE)
        assert tracker.snapshot_state is SnapshotState.IDLE

    def test_substitution_allows_second_init(self):
        """Test a fresh instance may be initialized during a restore."""
        tracker = LifecycleTracker()
        call(tracker, CallbackKind.INIT)
        call(tracker, CallbackKind.PROCESS)
        tracker.begin_substitution()
        call(tracker, CallbackKind.INIT)
        assert tracker.state is LifecycleState.PROCESSING
        call(tracker, CallbackKind.RESTORE)
        call(tracker, CallbackKind.FINISH_RESTORE, DONE)
        call(tracker, CallbackKind.PROCESS)

    def test_substitution_during_save_rejected(self):
        tracker = LifecycleTracker()
        call(tracker, CallbackKind.INIT)
        call(tracker, CallbackKind.SAVE, PENDING)
        with pytest.raises(IllegalLifecycleError):
            tracker.begin_substitution()
