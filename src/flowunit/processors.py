"""Stock processors built on AbstractProcessor.

Each function returns a fresh instance, so ``lambda: map_p(fn)`` is a
processor factory suitable for the verification harness.

Example:
    >>> ProcessorVerifier(lambda: map_p(lambda x: x * 2)) \\
    ...     .input([1, 2, 3]) \\
    ...     .expect_output([2, 4, 6]) \\
    ...     .verify()
"""

from typing import Any, Callable, Iterable, Optional, Union

from flowunit.core.inbox import FilteredInbox, Inbox
from flowunit.core.items import DONE, EMPTY, PENDING, BroadcastKey, Progress, Watermark
from flowunit.core.processor import AbstractProcessor, Processor, ProcessorContext
from flowunit.core.traverser import (
    ResettableSingletonTraverser,
    Traverser,
    traverse_items,
    traverse_iterable,
)

ACCUMULATOR_KEY = "accumulator"
WATERMARK_KEY = BroadcastKey("last_watermark")


# =============================================================================
# Stateless
# =============================================================================


class TransformProcessor(AbstractProcessor):
    """Applies ``item -> Traverser`` to every item on any input ordinal.

    A None result means "no output for this item".
    """

    def __init__(self, mapper: Callable[[Any], Optional[Traverser]]) -> None:
        super().__init__()
        self._flat_mapper = self.flat_mapper(mapper)

    def try_process(self, ordinal: int, item: Any) -> Progress:
        return self._flat_mapper.try_process(item)


def map_p(fn: Callable[[Any], Any]) -> Processor:
    """One output per input; a None result drops the item."""
    traverser = ResettableSingletonTraverser()

    def mapper(item: Any) -> Optional[Traverser]:
        result = fn(item)
        if result is None:
            return None
        traverser.accept(result)
        return traverser

    return TransformProcessor(mapper)


def filter_p(predicate: Callable[[Any], bool]) -> Processor:
    """Passes through the items matching ``predicate``."""
    traverser = ResettableSingletonTraverser()

    def mapper(item: Any) -> Optional[Traverser]:
        if not predicate(item):
            return None
        traverser.accept(item)
        return traverser

    return TransformProcessor(mapper)


def flat_map_p(fn: Callable[[Any], Union[Traverser, Iterable[Any], None]]) -> Processor:
    """Zero or more outputs per input.

    ``fn`` may return a Traverser or any iterable.
    """

    def mapper(item: Any) -> Optional[Traverser]:
        result = fn(item)
        if result is None or isinstance(result, Traverser):
            return result
        return traverse_iterable(result)

    return TransformProcessor(mapper)


class NoopProcessor(Processor):
    """Consumes and discards all input."""

    def process(self, ordinal: int, inbox: Union[Inbox, FilteredInbox]) -> None:
        inbox.drain(lambda item: None)

    def try_process_watermark(self, watermark: Watermark) -> Progress:
        return DONE

    def restore_from_snapshot(self, inbox: Inbox) -> None:
        inbox.drain(lambda entry: None)


def noop_p() -> Processor:
    return NoopProcessor()


# =============================================================================
# Stateful
# =============================================================================


class AccumulateProcessor(AbstractProcessor):
    """Folds all input into one accumulator and emits the result on completion.

    The accumulator is saved to the snapshot under ``"accumulator"``.

    Args:
        create: Returns a new, empty accumulator.
        accumulate: ``(acc, item) -> acc``.
        finish: ``acc -> result``. A None result emits nothing.
    """

    def __init__(
        self,
        create: Callable[[], Any],
        accumulate: Callable[[Any, Any], Any],
        finish: Callable[[Any], Any],
    ) -> None:
        super().__init__()
        self._create = create
        self._accumulate = accumulate
        self._finish = finish
        self._acc: Any = None
        self._result: Any = EMPTY
        self._completed = False

    def initialize(self, context: ProcessorContext) -> None:
        self._acc = self._create()

    def try_process(self, ordinal: int, item: Any) -> Progress:
        self._acc = self._accumulate(self._acc, item)
        return DONE

    def complete(self) -> Progress:
        if self._completed:
            return DONE
        if self._result is EMPTY:
            self._result = self._finish(self._acc)
        if self._result is not None and not self.try_emit(self._result):
            return PENDING
        self._completed = True
        self.logger.debug(f"{self.name}: emitted result {self._result!r}")
        return DONE

    def save_to_snapshot(self) -> Progress:
        return Progress.of(self.try_emit_to_snapshot(ACCUMULATOR_KEY, self._acc))

    def restore_from_snapshot_entry(self, key: Any, value: Any) -> None:
        if key != ACCUMULATOR_KEY:
            raise ValueError(f"{self.name}: unexpected snapshot key {key!r}")
        self._acc = value


def accumulate_p(
    create: Callable[[], Any],
    accumulate: Callable[[Any, Any], Any],
    finish: Callable[[Any], Any] = lambda acc: acc,
) -> Processor:
    return AccumulateProcessor(create, accumulate, finish)


class InsertWatermarksProcessor(AbstractProcessor):
    """Passes items through and inserts watermarks derived from their timestamps.

    A watermark ``timestamp - lag`` is emitted before an item whenever it
    is higher than the last emitted one. Upstream watermarks are only
    forwarded when they advance the same watermark.
    """

    def __init__(self, timestamp_fn: Callable[[Any], int], lag: int = 0) -> None:
        super().__init__()
        if lag < 0:
            raise ValueError(f"lag must be >= 0, got {lag}")
        self._timestamp_fn = timestamp_fn
        self._lag = lag
        self._last_watermark: Optional[int] = None
        self._flat_mapper = self.flat_mapper(self._with_watermark)
        self._forward_pending = False

    def _advance(self, timestamp: int) -> bool:
        if self._last_watermark is not None and timestamp <= self._last_watermark:
            return False
        self._last_watermark = timestamp
        return True

    def _with_watermark(self, item: Any) -> Traverser:
        candidate = self._timestamp_fn(item) - self._lag
        if self._advance(candidate):
            return traverse_items(Watermark(candidate), item)
        return traverse_items(item)

    def try_process(self, ordinal: int, item: Any) -> Progress:
        return self._flat_mapper.try_process(item)

    def try_process_watermark(self, watermark: Watermark) -> Progress:
        if not self._forward_pending:
            if not self._advance(watermark.timestamp):
                return DONE
            self._forward_pending = True
        if not self.try_emit(watermark):
            return PENDING
        self._forward_pending = False
        return DONE

    def save_to_snapshot(self) -> Progress:
        if self._last_watermark is None:
            return DONE
        return Progress.of(self.try_emit_to_snapshot(WATERMARK_KEY, self._last_watermark))

    def restore_from_snapshot_entry(self, key: Any, value: Any) -> None:
        if key != WATERMARK_KEY:
            raise ValueError(f"{self.name}: unexpected snapshot key {key!r}")
        # Every instance receives every instance's watermark; keep the lowest.
        if self._last_watermark is None or value < self._last_watermark:
            self._last_watermark = value


def insert_watermarks_p(timestamp_fn: Callable[[Any], int], lag: int = 0) -> Processor:
    return InsertWatermarksProcessor(timestamp_fn, lag)


__all__ = [
    "TransformProcessor",
    "NoopProcessor",
    "AccumulateProcessor",
    "InsertWatermarksProcessor",
    "map_p",
    "filter_p",
    "flat_map_p",
    "noop_p",
    "accumulate_p",
    "insert_watermarks_p",
]
