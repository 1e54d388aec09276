"""Resumable emission of traverser contents into an outbox.

ResumableEmitter drives a traverser against an outbox and suspends as
soon as the outbox rejects an item. The rejected item is kept and
offered first on the next call; the traverser is not pulled again until
that item is accepted. No pulled item is ever dropped.

FlatMapper binds an ``item -> Traverser`` function to a ResumableEmitter
so that "one input, zero or more outputs" needs no hand-written
suspension logic.

Example:
    >>> outbox = Outbox(capacity=1)
    >>> fm = FlatMapper(lambda x: traverse_items(x, x + 1), lambda: outbox)
    >>> fm.try_process(1)
    <Progress.PENDING: 2>
    >>> outbox.drain(0)
    [1]
    >>> fm.try_process(1)  # same item again, resumes
    <Progress.DONE: 1>
    >>> outbox.drain(0)
    [2]
"""

from typing import Any, Callable, Optional, Tuple

from flowunit.core.items import BROADCAST, DONE, EMPTY, PENDING, Progress
from flowunit.core.outbox import OrdinalSpec, Outbox
from flowunit.core.traverser import Traverser


class ResumableEmitter:
    """Emits a traverser into an outbox across as many calls as needed.

    The emitter holds at most one pending item. While an item is
    pending, every call must pass the same traverser it came from.
    """

    def __init__(self) -> None:
        self._pending: Any = EMPTY
        self._pending_source: Optional[Traverser] = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not EMPTY

    def emit_from(
        self,
        traverser: Traverser,
        outbox: Outbox,
        ordinal: OrdinalSpec = BROADCAST,
    ) -> Progress:
        """Offer items from ``traverser`` until it is empty or the outbox is full.

        Args:
            traverser: Source of items.
            outbox: Outbox to offer into. Not retained after the call.
            ordinal: Target bucket(s); broadcast by default.

        Returns:
            DONE when the traverser returned EMPTY, PENDING when the
            outbox rejected an item (which is kept for the next call).
        """
        return self._drive(traverser, lambda item: outbox.offer(ordinal, item))

    def emit_from_to_snapshot(
        self, traverser: Traverser, outbox: Outbox
    ) -> Progress:
        """Like ``emit_from`` but for ``(key, value)`` snapshot entries."""
        def offer(entry: Tuple[Any, Any]) -> bool:
            key, value = entry
            return outbox.offer_to_snapshot(key, value)
        return self._drive(traverser, offer)

    def _drive(self, traverser: Traverser, offer: Callable[[Any], bool]) -> Progress:
        if self._pending is not EMPTY:
            if traverser is not self._pending_source:
                raise RuntimeError(
                    "emit_from() called with a different traverser while an "
                    "item from the previous one is still pending"
                )
            item = self._pending
        else:
            item = traverser.next()

        while item is not EMPTY:
            if not offer(item):
                self._pending = item
                self._pending_source = traverser
                return PENDING
            item = traverser.next()

        self._pending = EMPTY
        self._pending_source = None
        return DONE

    def reset(self) -> None:
        """Forget any pending item."""
        self._pending = EMPTY
        self._pending_source = None


class FlatMapper:
    """Maps each input item to a traverser and emits it resumably.

    Call ``try_process(item)`` with the same item until it returns DONE.
    A call with a different item while a traverser is held first finishes
    the held traverser; the new item is mapped only once that is done.

    "Same item" means the same object (``is``), which is what a processor
    passes when it re-peeks its inbox head. An equal but distinct object
    counts as a new item and is mapped again.

    Args:
        mapper: ``item -> Traverser`` (None means "no output").
        outbox_supplier: Returns the outbox to emit into on each call.
        ordinal: Target bucket(s); broadcast by default.
    """

    def __init__(
        self,
        mapper: Callable[[Any], Optional[Traverser]],
        outbox_supplier: Callable[[], Outbox],
        ordinal: OrdinalSpec = BROADCAST,
    ) -> None:
        self._mapper = mapper
        self._outbox_supplier = outbox_supplier
        self._ordinal = ordinal
        self._emitter = ResumableEmitter()
        self._traverser: Optional[Traverser] = None
        self._item: Any = None

    @property
    def is_active(self) -> bool:
        """True while a traverser from an earlier item is still being emitted."""
        return self._traverser is not None

    def try_process(self, item: Any) -> Progress:
        if self._traverser is not None:
            resumed = item is self._item
            progress = self._emit()
            if progress is PENDING or resumed:
                return progress

        traverser = self._mapper(item)
        if traverser is None:
            return DONE
        self._traverser = traverser
        self._item = item
        return self._emit()

    def _emit(self) -> Progress:
        progress = self._emitter.emit_from(
            self._traverser, self._outbox_supplier(), self._ordinal
        )
        if progress is DONE:
            self._traverser = None
            self._item = None
        return progress


__all__ = ["ResumableEmitter", "FlatMapper"]
