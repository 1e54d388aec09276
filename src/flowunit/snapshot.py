"""Snapshot controller: save, optionally substitute, restore, finish.

A snapshot cycle runs only between callbacks:

1. ``save_to_snapshot()`` is called until it returns DONE. After every
   call the snapshot bucket of the outbox is drained, so a processor
   with more state than fits in one pass keeps going on the next call.
2. When a factory is available, the old instance is dropped and a fresh
   one is created and initialized. Without a factory the saved entries
   are only checked, unless ``restore_in_place`` asks to restore them
   into the same instance.
3. The saved entries are put into an inbox and handed to
   ``restore_from_snapshot()`` until the inbox is empty.
4. ``finish_snapshot_restore()`` is called until it returns DONE.

Entries are deep-copied between save and restore so the restored
instance never shares mutable objects with the saved one.

Example:
    >>> controller = SnapshotController(factory=CountingProcessor,
    ...                                 context_factory=make_context)
    >>> processor = controller.cycle(processor, outbox)
"""

import copy
import logging
from typing import Any, Callable, List, Optional, Tuple

from flowunit.core.inbox import Inbox
from flowunit.core.items import Progress
from flowunit.core.lifecycle import CallbackKind, LifecycleTracker
from flowunit.core.outbox import Outbox
from flowunit.core.processor import Processor, ProcessorContext
from flowunit.errors import SnapshotError
from flowunit.observability import ObservabilityHub
from flowunit.observability.records import SnapshotRecord

logger = logging.getLogger(__name__)

SnapshotEntry = Tuple[Any, Any]
Invoker = Callable[[Processor, CallbackKind, Callable[[], Any]], Any]

# Upper bound on repeated calls within one phase before giving up.
MAX_PHASE_CALLS = 100_000


class SnapshotController:
    """Runs snapshot cycles for one logical processing unit.

    Args:
        factory: Creates fresh instances. Without it, entries are
            restored into the same instance.
        context_factory: Builds the ProcessorContext for a fresh instance.
        restore_in_place: Without a factory, restore into the saved
            instance instead of skipping the restore phases.
        tracker: Lifecycle tracker of the unit.
        invoker: Calls one callback, ``invoker(processor, kind, fn)``.
            The verification harness passes its own to time and
            progress-check every call.
    """

    def __init__(
        self,
        factory: Optional[Callable[[], Processor]] = None,
        context_factory: Optional[Callable[[Processor], ProcessorContext]] = None,
        restore_in_place: bool = False,
        tracker: Optional[LifecycleTracker] = None,
        invoker: Optional[Invoker] = None,
    ) -> None:
        if factory is not None and context_factory is None:
            raise ValueError("context_factory is required together with factory")
        self._factory = factory
        self._context_factory = context_factory
        self._restore_in_place = restore_in_place
        self._tracker = tracker or LifecycleTracker()
        self._invoker = invoker or self._default_invoker
        self._cycles = 0
        self._last_entries: List[SnapshotEntry] = []

    @property
    def cycles(self) -> int:
        """Number of completed cycles."""
        return self._cycles

    @property
    def last_entries(self) -> List[SnapshotEntry]:
        """Entries saved by the most recent cycle."""
        return list(self._last_entries)

    @property
    def restores_to_new_instance(self) -> bool:
        return self._factory is not None

    def _default_invoker(
        self, processor: Processor, kind: CallbackKind, fn: Callable[[], Any]
    ) -> Any:
        with self._tracker.guard(kind) as call:
            result = fn()
            if kind in (CallbackKind.SAVE, CallbackKind.FINISH_RESTORE):
                result = Progress.of(result)
                call.result = result
        return result

    # Phases ------------------------------------------------------------------

    def save(self, processor: Processor, outbox: Outbox) -> List[SnapshotEntry]:
        """Call ``save_to_snapshot`` until DONE and collect the entries.

        Raises:
            SnapshotError: On duplicate keys or a save that never finishes.
        """
        entries: List[SnapshotEntry] = []
        calls = 0
        while True:
            calls += 1
            progress = Progress.of(
                self._invoker(processor, CallbackKind.SAVE, processor.save_to_snapshot)
            )
            entries.extend(outbox.drain_snapshot())
            if progress.done:
                break
            if calls >= MAX_PHASE_CALLS:
                raise SnapshotError(
                    f"{processor.name}.save_to_snapshot() did not finish "
                    f"after {calls} calls"
                )

        seen = set()
        for key, _ in entries:
            if key in seen:
                raise SnapshotError(
                    f"Duplicate key {key!r} produced by {processor.name}.save_to_snapshot()"
                )
            seen.add(key)

        logger.debug(f"{processor.name}: saved {len(entries)} entries in {calls} call(s)")
        return copy.deepcopy(entries)

    def restore(self, processor: Processor, entries: List[SnapshotEntry]) -> Processor:
        """Restore ``entries`` and return the instance that now holds the state.

        With a factory, that is a newly created instance; otherwise
        ``processor`` itself, which is left untouched unless
        ``restore_in_place`` is set.
        """
        target = processor
        if self._factory is None and not self._restore_in_place:
            return target
        if self._factory is not None:
            target = self._factory()
            self._tracker.begin_substitution()
            context = self._context_factory(target)
            self._invoker(target, CallbackKind.INIT, lambda: target.init(context))

        if entries:
            inbox = Inbox(items=copy.deepcopy(entries))
            while not inbox.is_empty:
                before = inbox.size
                self._invoker(
                    target,
                    CallbackKind.RESTORE,
                    lambda: target.restore_from_snapshot(inbox),
                )
                if inbox.size >= before:
                    raise SnapshotError(
                        f"{target.name}.restore_from_snapshot() left "
                        f"{inbox.size} entries unconsumed"
                    )

        calls = 0
        while True:
            calls += 1
            progress = Progress.of(
                self._invoker(
                    target, CallbackKind.FINISH_RESTORE, target.finish_snapshot_restore
                )
            )
            if progress.done:
                break
            if calls >= MAX_PHASE_CALLS:
                raise SnapshotError(
                    f"{target.name}.finish_snapshot_restore() did not finish "
                    f"after {calls} calls"
                )
        return target

    def cycle(self, processor: Processor, outbox: Outbox) -> Processor:
        """Run one full save/restore/finish cycle."""
        entries = self.save(processor, outbox)
        restored = self.restore(processor, entries)
        self._cycles += 1
        self._last_entries = entries

        hub = ObservabilityHub.get_instance()
        if hub.enabled:
            hub.emit(SnapshotRecord(
                processor=processor.name,
                cycle=self._cycles,
                entry_count=len(entries),
                restored_to_new_instance=restored is not processor,
                keys=[repr(key) for key, _ in entries],
            ))
        return restored


__all__ = ["SnapshotController", "SnapshotEntry", "MAX_PHASE_CALLS"]
