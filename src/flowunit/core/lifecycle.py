"""Processor lifecycle state machine.

    UNINITIALIZED --init--> INITIALIZED --process--> PROCESSING
        --complete (PENDING)*--> COMPLETING --complete (DONE)--> COMPLETED

The snapshot sub-state (IDLE / SAVING / RESTORING) is orthogonal and
only changes between callbacks. Any exception raised from a callback
moves the unit to FAILED; nothing is retried.

LifecycleTracker is the engine-side guard: the driver wraps every
callback in ``tracker.guard(kind)`` and the tracker rejects calls the
contract does not allow.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional

from flowunit.core.items import Progress
from flowunit.errors import IllegalLifecycleError


class LifecycleState(Enum):
    UNINITIALIZED = auto()
    INITIALIZED = auto()
    PROCESSING = auto()
    COMPLETING = auto()
    COMPLETED = auto()
    CLOSED = auto()
    FAILED = auto()


class SnapshotState(Enum):
    IDLE = auto()
    SAVING = auto()
    RESTORING = auto()


class CallbackKind(Enum):
    INIT = "init"
    PROCESS = "process"
    WATERMARK = "try_process_watermark"
    COMPLETE = "complete"
    SAVE = "save_to_snapshot"
    RESTORE = "restore_from_snapshot"
    FINISH_RESTORE = "finish_snapshot_restore"
    CLOSE = "close"


_S = LifecycleState

_ALLOWED = {
    CallbackKind.INIT: {_S.UNINITIALIZED},
    CallbackKind.PROCESS: {_S.INITIALIZED, _S.PROCESSING},
    CallbackKind.WATERMARK: {_S.INITIALIZED, _S.PROCESSING},
    CallbackKind.COMPLETE: {_S.INITIALIZED, _S.PROCESSING, _S.COMPLETING},
    CallbackKind.SAVE: {_S.INITIALIZED, _S.PROCESSING, _S.COMPLETING, _S.COMPLETED},
    CallbackKind.RESTORE: {_S.INITIALIZED, _S.PROCESSING, _S.COMPLETING, _S.COMPLETED},
    CallbackKind.FINISH_RESTORE: {
        _S.INITIALIZED, _S.PROCESSING, _S.COMPLETING, _S.COMPLETED,
    },
    CallbackKind.CLOSE: {
        _S.UNINITIALIZED, _S.INITIALIZED, _S.PROCESSING, _S.COMPLETING,
        _S.COMPLETED, _S.FAILED,
    },
}

# Snapshot sub-states in which each callback may run.
_SNAPSHOT_ALLOWED = {
    CallbackKind.PROCESS: {SnapshotState.IDLE},
    CallbackKind.WATERMARK: {SnapshotState.IDLE},
    CallbackKind.COMPLETE: {SnapshotState.IDLE},
    CallbackKind.SAVE: {SnapshotState.IDLE, SnapshotState.SAVING},
    CallbackKind.RESTORE: {SnapshotState.IDLE, SnapshotState.RESTORING},
    CallbackKind.FINISH_RESTORE: {SnapshotState.IDLE, SnapshotState.RESTORING},
}


@dataclass
class CallbackCall:
    """Handle yielded by ``LifecycleTracker.guard``.

    Set ``result`` for callbacks that return a Progress.
    """
    kind: CallbackKind
    result: Optional[Progress] = None


class LifecycleTracker:
    """Tracks and enforces the lifecycle of one logical processing unit.

    The tracker follows the unit, not the instance: when a snapshot is
    restored into a fresh instance, ``begin_substitution()`` lets that
    instance be initialized without resetting the unit's state.

    Args:
        name: Name used in error messages.
    """

    def __init__(self, name: str = "processor") -> None:
        self._name = name
        self._state = LifecycleState.UNINITIALIZED
        self._snapshot_state = SnapshotState.IDLE
        self._in_callback: Optional[CallbackKind] = None
        self._substituting = False

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def snapshot_state(self) -> SnapshotState:
        return self._snapshot_state

    @property
    def in_callback(self) -> Optional[CallbackKind]:
        return self._in_callback

    def _fail(self, message: str) -> None:
        raise IllegalLifecycleError(f"{self._name}: {message}")

    def _check(self, kind: CallbackKind) -> None:
        if self._in_callback is not None:
            self._fail(
                f"{kind.value}() called while {self._in_callback.value}() "
                f"is still running"
            )
        if kind is CallbackKind.INIT and self._substituting:
            return
        if self._state not in _ALLOWED[kind]:
            self._fail(f"{kind.value}() not allowed in state {self._state.name}")
        allowed_snapshot = _SNAPSHOT_ALLOWED.get(kind)
        if allowed_snapshot is not None and self._snapshot_state not in allowed_snapshot:
            self._fail(
                f"{kind.value}() not allowed in snapshot state "
                f"{self._snapshot_state.name}"
            )

    def begin_substitution(self) -> None:
        """Allow a fresh instance to be initialized for a snapshot restore."""
        if self._snapshot_state is not SnapshotState.IDLE:
            self._fail("instance substitution must start with no snapshot in progress")
        self._substituting = True
        self._snapshot_state = SnapshotState.RESTORING

    @contextmanager
    def guard(self, kind: CallbackKind) -> Iterator[CallbackCall]:
        """Validate, run, and record one callback invocation."""
        self._check(kind)
        call = CallbackCall(kind)
        self._in_callback = kind
        try:
            yield call
        except BaseException:
            self._state = LifecycleState.FAILED
            raise
        finally:
            self._in_callback = None
        self._advance(call)

    def _advance(self, call: CallbackCall) -> None:
        kind = call.kind
        done = call.result is not None and call.result.done
        if kind is CallbackKind.INIT:
            if self._substituting:
                self._substituting = False
            else:
                self._state = LifecycleState.INITIALIZED
        elif kind in (CallbackKind.PROCESS, CallbackKind.WATERMARK):
            self._state = LifecycleState.PROCESSING
        elif kind is CallbackKind.COMPLETE:
            self._state = LifecycleState.COMPLETED if done else LifecycleState.COMPLETING
        elif kind is CallbackKind.SAVE:
            self._snapshot_state = SnapshotState.IDLE if done else SnapshotState.SAVING
        elif kind is CallbackKind.RESTORE:
            self._snapshot_state = SnapshotState.RESTORING
        elif kind is CallbackKind.FINISH_RESTORE:
            if done:
                self._snapshot_state = SnapshotState.IDLE
        elif kind is CallbackKind.CLOSE:
            self._state = LifecycleState.CLOSED


__all__ = [
    "LifecycleState",
    "SnapshotState",
    "CallbackKind",
    "CallbackCall",
    "LifecycleTracker",
]
