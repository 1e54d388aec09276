"""flowunit - Cooperative processor contract and verification toolkit.

flowunit defines how a processing unit in a streaming engine consumes
input, emits output under backpressure, saves and restores its state,
and shares a thread with other units without ever blocking.

Quick Start:
    >>> import flowunit as fu
    >>>
    >>> class Doubler(fu.AbstractProcessor):
    ...     def try_process0(self, item):
    ...         return fu.Progress.of(self.try_emit(item * 2))
    >>>
    >>> fu.ProcessorVerifier(Doubler) \\
    ...     .input([1, 2, 3]) \\
    ...     .expect_output([2, 4, 6]) \\
    ...     .verify()

For advanced usage, see:
- flowunit.core: Inbox, Outbox, Traverser, ResumableEmitter, FlatMapper
- flowunit.snapshot: SnapshotController
- flowunit.testing: ProcessorVerifier
- flowunit.diagnostics: PeekingProcessor
- flowunit.processors: stock processors
"""

try:
    from flowunit._version import __version__
except ImportError:
    __version__ = "0.0.0.dev0"

# =============================================================================
# Core contract
# =============================================================================
from flowunit.core import (
    BROADCAST,
    DONE,
    EMPTY,
    PENDING,
    AbstractProcessor,
    BroadcastKey,
    FlatMapper,
    Inbox,
    Outbox,
    Processor,
    ProcessorContext,
    Progress,
    ResumableEmitter,
    Traverser,
    Watermark,
    traverse_items,
    traverse_iterable,
)
from flowunit.errors import (
    CooperativeTimeoutError,
    FlowUnitError,
    IllegalLifecycleError,
    OutputMismatchError,
    ProgressViolationError,
    SnapshotError,
    VerificationError,
)

# =============================================================================
# Tooling
# =============================================================================
from flowunit.snapshot import SnapshotController
from flowunit.testing import ProcessorVerifier
from flowunit.diagnostics import PeekingProcessor, peek_input, peek_output, peek_snapshot

__all__ = [
    "__version__",
    # Core
    "BROADCAST",
    "DONE",
    "EMPTY",
    "PENDING",
    "Progress",
    "Watermark",
    "BroadcastKey",
    "Inbox",
    "Outbox",
    "Traverser",
    "traverse_items",
    "traverse_iterable",
    "ResumableEmitter",
    "FlatMapper",
    "Processor",
    "AbstractProcessor",
    "ProcessorContext",
    # Errors
    "FlowUnitError",
    "IllegalLifecycleError",
    "VerificationError",
    "ProgressViolationError",
    "CooperativeTimeoutError",
    "OutputMismatchError",
    "SnapshotError",
    # Tooling
    "SnapshotController",
    "ProcessorVerifier",
    "PeekingProcessor",
    "peek_input",
    "peek_output",
    "peek_snapshot",
]
