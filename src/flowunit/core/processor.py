"""Processor: the cooperative processing unit contract.

A Processor is driven entirely through callbacks and never blocks:

- ``init(context)``: once, before anything else
- ``process(ordinal, inbox)``: drain some or all of the inbox, emit output
- ``try_process_watermark(wm)``: handle a watermark
- ``complete()``: after all input is exhausted, until it returns DONE
- ``save_to_snapshot()`` / ``restore_from_snapshot(inbox)`` /
  ``finish_snapshot_restore()``: the snapshot sub-protocol
- ``close()``: release resources

Suspension happens only by returning. A callback that cannot make
further progress (full outbox, nothing to do) returns PENDING or leaves
items in its inbox; it is called again later.

AbstractProcessor does the bookkeeping: it keeps the outbox handed over
in ``init``, dispatches inbox items to per-ordinal handlers, and offers
the resumable emission helpers.

Example:
    >>> class Doubler(AbstractProcessor):
    ...     def initialize(self, context):
    ...         self._flat_mapper = self.flat_mapper(
    ...             lambda x: traverse_items(x, x))
    ...
    ...     def try_process0(self, item):
    ...         return self._flat_mapper.try_process(item)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

from flowunit.core.emit import FlatMapper, ResumableEmitter
from flowunit.core.inbox import FilteredInbox, Inbox
from flowunit.core.items import (
    BROADCAST,
    DONE,
    EMPTY,
    Fixed,
    Progress,
    Watermark,
    ordinal_of,
)
from flowunit.core.outbox import OrdinalSpec, Outbox
from flowunit.core.traverser import Traverser

InboxLike = Union[Inbox, FilteredInbox]


@dataclass
class ProcessorContext:
    """Information handed to a processor in ``init``.

    Attributes:
        outbox: The outbox this instance emits into. Owned by the engine.
        vertex_name: Name of the graph vertex the processor belongs to.
        global_processor_index: Index of this instance among all instances.
        local_parallelism: Instances of this vertex on the local member.
        total_parallelism: Instances of this vertex overall.
        snapshotting_enabled: Whether the engine will request snapshots.
        attributes: Free-form extra settings.
        logger: Logger for this instance; derived from vertex name and
            index when not given.
    """
    outbox: Outbox
    vertex_name: str = "processor"
    global_processor_index: int = 0
    local_parallelism: int = 1
    total_parallelism: int = 1
    snapshotting_enabled: bool = False
    attributes: Dict[str, Any] = field(default_factory=dict)
    logger: Optional[logging.Logger] = None

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = logging.getLogger(
                f"flowunit.processor.{self.vertex_name}#{self.global_processor_index}"
            )


class Processor(ABC):
    """Base class of every processing unit.

    Only ``process`` is abstract. The other callbacks have defaults
    suited to a stateless unit.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def is_cooperative(self) -> bool:
        """Cooperative units share a thread and must return promptly."""
        return True

    def init(self, context: ProcessorContext) -> None:
        """Prepare the unit. Called exactly once before any other callback."""
        pass

    @abstractmethod
    def process(self, ordinal: int, inbox: InboxLike) -> None:
        """Process items from the inbox of input ``ordinal``.

        Progress is observed through side effects: items removed from
        the inbox and items offered to the outbox.
        """
        ...

    def try_process_watermark(self, watermark: Watermark) -> Progress:
        raise NotImplementedError(
            f"{self.name} does not handle watermarks"
        )

    def complete(self) -> Progress:
        """Flush remaining output after all input is exhausted."""
        return DONE

    def save_to_snapshot(self) -> Progress:
        """Emit durable state as snapshot entries."""
        return DONE

    def restore_from_snapshot(self, inbox: Inbox) -> None:
        """Consume ``(key, value)`` snapshot entries from ``inbox``."""
        raise NotImplementedError(
            f"{self.name} received snapshot entries but cannot restore them"
        )

    def finish_snapshot_restore(self) -> Progress:
        return DONE

    def close(self) -> None:
        pass


class AbstractProcessor(Processor):
    """Convenience base that handles outbox access and ordinal dispatch.

    Subclasses override ``initialize`` instead of ``init`` and implement
    one or more of ``try_process0`` .. ``try_process4`` or the catch-all
    ``try_process(ordinal, item)``. Each handler returns DONE when the
    item is fully handled, or PENDING to get the same item again later.
    """

    def __init__(self) -> None:
        self._outbox: Optional[Outbox] = None
        self._context: Optional[ProcessorContext] = None
        self._emitter = ResumableEmitter()
        self._snapshot_emitter = ResumableEmitter()
        self._handlers = (
            self.try_process0,
            self.try_process1,
            self.try_process2,
            self.try_process3,
            self.try_process4,
        )

    def init(self, context: ProcessorContext) -> None:
        self._outbox = context.outbox
        self._context = context
        self.initialize(context)

    def initialize(self, context: ProcessorContext) -> None:
        """Hook for subclass initialization."""
        pass

    @property
    def outbox(self) -> Outbox:
        if self._outbox is None:
            raise RuntimeError(f"{self.name} used before init()")
        return self._outbox

    @property
    def context(self) -> ProcessorContext:
        if self._context is None:
            raise RuntimeError(f"{self.name} used before init()")
        return self._context

    @property
    def logger(self) -> logging.Logger:
        return self.context.logger

    # Input dispatch ----------------------------------------------------------

    def process(self, ordinal: int, inbox: InboxLike) -> None:
        variant = ordinal_of(ordinal)
        if isinstance(variant, Fixed):
            handler = self._handlers[variant.index]
        else:
            def handler(item: Any) -> Progress:
                return self.try_process(ordinal, item)

        while True:
            item = inbox.peek()
            if item is EMPTY:
                return
            if not Progress.of(handler(item)).done:
                return
            inbox.remove()

    def try_process(self, ordinal: int, item: Any) -> Progress:
        raise NotImplementedError(
            f"{self.name} does not handle items on ordinal {ordinal}"
        )

    def try_process0(self, item: Any) -> Progress:
        return self.try_process(0, item)

    def try_process1(self, item: Any) -> Progress:
        return self.try_process(1, item)

    def try_process2(self, item: Any) -> Progress:
        return self.try_process(2, item)

    def try_process3(self, item: Any) -> Progress:
        return self.try_process(3, item)

    def try_process4(self, item: Any) -> Progress:
        return self.try_process(4, item)

    def try_process_watermark(self, watermark: Watermark) -> Progress:
        """Forward the watermark to every output ordinal."""
        return Progress.of(self.try_emit(watermark))

    # Emission helpers --------------------------------------------------------

    def try_emit(self, item: Any, ordinal: OrdinalSpec = BROADCAST) -> bool:
        return self.outbox.offer(ordinal, item)

    def try_emit_to_snapshot(self, key: Any, value: Any) -> bool:
        return self.outbox.offer_to_snapshot(key, value)

    def emit_from_traverser(
        self, traverser: Traverser, ordinal: OrdinalSpec = BROADCAST
    ) -> Progress:
        return self._emitter.emit_from(traverser, self.outbox, ordinal)

    def emit_from_traverser_to_snapshot(self, traverser: Traverser) -> Progress:
        """Emit a traverser of ``(key, value)`` entries to the snapshot."""
        return self._snapshot_emitter.emit_from_to_snapshot(traverser, self.outbox)

    def flat_mapper(
        self,
        mapper: Callable[[Any], Optional[Traverser]],
        ordinal: OrdinalSpec = BROADCAST,
    ) -> FlatMapper:
        return FlatMapper(mapper, lambda: self.outbox, ordinal)

    # Snapshot ----------------------------------------------------------------

    def restore_from_snapshot(self, inbox: Inbox) -> None:
        while not inbox.is_empty:
            key, value = inbox.remove()
            self.restore_from_snapshot_entry(key, value)

    def restore_from_snapshot_entry(self, key: Any, value: Any) -> None:
        raise NotImplementedError(
            f"{self.name} saved state but does not restore it"
        )


__all__ = [
    "ProcessorContext",
    "Processor",
    "AbstractProcessor",
]
