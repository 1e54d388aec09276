"""Core primitives of the cooperative execution contract.

- Inbox / Outbox: bounded buffers between the engine and a processor
- Traverser: lazy pull-based sequences
- ResumableEmitter / FlatMapper: suspendable emission into an outbox
- Processor / AbstractProcessor: the unit contract
- LifecycleTracker: engine-side lifecycle enforcement
"""

from flowunit.core.items import (
    BROADCAST,
    DONE,
    EMPTY,
    PENDING,
    BroadcastKey,
    Empty,
    Fixed,
    Ordinal,
    Other,
    Progress,
    Watermark,
    is_empty,
    is_watermark,
    ordinal_of,
)
from flowunit.core.inbox import FilteredInbox, Inbox
from flowunit.core.outbox import Outbox, OutboxStats
from flowunit.core.traverser import (
    AppendableTraverser,
    FunctionTraverser,
    IteratorTraverser,
    ResettableSingletonTraverser,
    Traverser,
    empty_traverser,
    singleton,
    traverse_items,
    traverse_iterable,
    traverse_iterator,
)
from flowunit.core.emit import FlatMapper, ResumableEmitter
from flowunit.core.processor import AbstractProcessor, Processor, ProcessorContext
from flowunit.core.lifecycle import (
    CallbackKind,
    LifecycleState,
    LifecycleTracker,
    SnapshotState,
)

__all__ = [
    # Items
    "BROADCAST",
    "DONE",
    "EMPTY",
    "PENDING",
    "BroadcastKey",
    "Empty",
    "Fixed",
    "Ordinal",
    "Other",
    "Progress",
    "Watermark",
    "is_empty",
    "is_watermark",
    "ordinal_of",
    # Buffers
    "Inbox",
    "FilteredInbox",
    "Outbox",
    "OutboxStats",
    # Traversers
    "Traverser",
    "FunctionTraverser",
    "IteratorTraverser",
    "AppendableTraverser",
    "ResettableSingletonTraverser",
    "traverse_iterable",
    "traverse_iterator",
    "traverse_items",
    "singleton",
    "empty_traverser",
    # Emission
    "ResumableEmitter",
    "FlatMapper",
    # Processor
    "Processor",
    "AbstractProcessor",
    "ProcessorContext",
    # Lifecycle
    "CallbackKind",
    "LifecycleState",
    "LifecycleTracker",
    "SnapshotState",
]
