"""Traverser: pull-based lazy sequence with an explicit EMPTY result.

A traverser hands out one item per ``next()`` call and returns
``EMPTY`` when it has nothing to give. A traverser over a finite
collection returns ``EMPTY`` forever once exhausted. A live traverser
(for example ``AppendableTraverser``) may return ``EMPTY`` and later
produce more items.

Combinators (``map``, ``filter``, ``flat_map`` ...) wrap the source and
pull from it lazily; nothing is materialized up front.

Traversers are stateful and single-pass. Whoever drives one (usually a
``ResumableEmitter``) owns it until it is exhausted or replaced.

Example:
    >>> t = traverse_iterable(range(5)).filter(lambda x: x % 2 == 0).map(str)
    >>> [t.next(), t.next(), t.next(), t.next()]
    ['0', '2', '4', EMPTY]
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import (
    Any,
    Callable,
    Deque,
    Generic,
    Iterable,
    Iterator,
    Optional,
    TypeVar,
)

from flowunit.core.items import EMPTY

T = TypeVar("T")
R = TypeVar("R")


def _check_item(item: Any) -> Any:
    if item is None:
        raise ValueError("Traverser items must not be None")
    return item


class Traverser(ABC, Generic[T]):
    """Abstract pull-based sequence.

    Subclasses implement ``next()``. Everything else is built on it.

    Traversers are also Python iterators over the items available
    *right now*: iteration stops at the first ``EMPTY``.
    """

    @abstractmethod
    def next(self) -> Any:
        """Return the next item, or EMPTY if none is available."""
        ...

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        item = self.next()
        if item is EMPTY:
            raise StopIteration
        return item

    # Combinators -------------------------------------------------------------

    def map(self, fn: Callable[[T], Optional[R]]) -> "Traverser[R]":
        """Apply ``fn`` to every item. Items mapped to None are skipped."""
        def pull() -> Any:
            while True:
                item = self.next()
                if item is EMPTY:
                    return EMPTY
                mapped = fn(item)
                if mapped is not None:
                    return mapped
        return FunctionTraverser(pull)

    def filter(self, predicate: Callable[[T], bool]) -> "Traverser[T]":
        def pull() -> Any:
            while True:
                item = self.next()
                if item is EMPTY or predicate(item):
                    return item
        return FunctionTraverser(pull)

    def flat_map(
        self, fn: Callable[[T], Optional["Traverser[R]"]]
    ) -> "Traverser[R]":
        """Replace every item with the items of the traverser ``fn`` returns."""
        return _FlatMappingTraverser(self, fn)

    def take_while(self, predicate: Callable[[T], bool]) -> "Traverser[T]":
        """Yield items until ``predicate`` first fails, then EMPTY forever."""
        state = {"open": True}

        def pull() -> Any:
            if not state["open"]:
                return EMPTY
            item = self.next()
            if item is EMPTY:
                return EMPTY
            if predicate(item):
                return item
            state["open"] = False
            return EMPTY
        return FunctionTraverser(pull)

    def drop_while(self, predicate: Callable[[T], bool]) -> "Traverser[T]":
        """Skip items while ``predicate`` holds, then yield everything."""
        state = {"dropping": True}

        def pull() -> Any:
            if not state["dropping"]:
                return self.next()
            while True:
                item = self.next()
                if item is EMPTY:
                    return EMPTY
                if not predicate(item):
                    state["dropping"] = False
                    return item
        return FunctionTraverser(pull)

    def append(self, item: T) -> "Traverser[T]":
        """Yield ``item`` once after this traverser first returns EMPTY."""
        _check_item(item)
        state = {"pending": item}

        def pull() -> Any:
            nxt = self.next()
            if nxt is EMPTY and state["pending"] is not None:
                nxt, state["pending"] = state["pending"], None
            return nxt
        return FunctionTraverser(pull)

    def prepend(self, item: T) -> "Traverser[T]":
        """Yield ``item`` before anything from this traverser."""
        _check_item(item)
        state = {"pending": item}

        def pull() -> Any:
            if state["pending"] is not None:
                first, state["pending"] = state["pending"], None
                return first
            return self.next()
        return FunctionTraverser(pull)

    def peek(self, action: Callable[[T], None]) -> "Traverser[T]":
        """Call ``action`` on every item as it passes through."""
        def pull() -> Any:
            item = self.next()
            if item is not EMPTY:
                action(item)
            return item
        return FunctionTraverser(pull)

    def on_first_empty(self, action: Callable[[], None]) -> "Traverser[T]":
        """Run ``action`` the first time this traverser returns EMPTY."""
        state = {"fired": False}

        def pull() -> Any:
            item = self.next()
            if item is EMPTY and not state["fired"]:
                state["fired"] = True
                action()
            return item
        return FunctionTraverser(pull)


class FunctionTraverser(Traverser[T]):
    """Traverser backed by a zero-argument function returning item or EMPTY."""

    def __init__(self, fn: Callable[[], Any]) -> None:
        self._fn = fn

    def next(self) -> Any:
        return self._fn()


class _FlatMappingTraverser(Traverser[R]):

    def __init__(
        self,
        source: Traverser[T],
        fn: Callable[[T], Optional[Traverser[R]]],
    ) -> None:
        self._source = source
        self._fn = fn
        self._current: Optional[Traverser[R]] = None

    def next(self) -> Any:
        while True:
            if self._current is not None:
                item = self._current.next()
                if item is not EMPTY:
                    return item
                self._current = None
            src = self._source.next()
            if src is EMPTY:
                return EMPTY
            self._current = self._fn(src)


class IteratorTraverser(Traverser[T]):
    """Finite traverser over a Python iterator, pulled lazily."""

    def __init__(self, iterator: Iterator[T]) -> None:
        self._iterator: Optional[Iterator[T]] = iterator

    def next(self) -> Any:
        if self._iterator is None:
            return EMPTY
        try:
            return _check_item(next(self._iterator))
        except StopIteration:
            self._iterator = None
            return EMPTY


class AppendableTraverser(Traverser[T]):
    """Live traverser over a deque that the owner may refill.

    Returns EMPTY whenever the deque is drained; more items may follow
    after ``add()``.

    Example:
        >>> t = AppendableTraverser()
        >>> t.next()
        EMPTY
        >>> t.add("x")
        >>> t.next()
        'x'
    """

    def __init__(self, items: Optional[Iterable[T]] = None) -> None:
        self._queue: Deque[T] = deque()
        if items is not None:
            for item in items:
                self.add(item)

    def add(self, item: T) -> None:
        self._queue.append(_check_item(item))

    def next(self) -> Any:
        if not self._queue:
            return EMPTY
        return self._queue.popleft()

    @property
    def is_empty(self) -> bool:
        return not self._queue


class ResettableSingletonTraverser(Traverser[T]):
    """One-slot traverser that can be reloaded after it is drained.

    Useful for one-to-one mappings that reuse a single traverser.
    """

    def __init__(self) -> None:
        self._item: Any = EMPTY

    def accept(self, item: T) -> None:
        if self._item is not EMPTY:
            raise RuntimeError("Previous item was not consumed")
        self._item = _check_item(item)

    def next(self) -> Any:
        item, self._item = self._item, EMPTY
        return item


# =============================================================================
# Factories
# =============================================================================


def traverse_iterable(iterable: Iterable[T]) -> Traverser[T]:
    """Lazy traverser over an iterable. None items raise ValueError."""
    return IteratorTraverser(iter(iterable))


def traverse_iterator(iterator: Iterator[T]) -> Traverser[T]:
    return IteratorTraverser(iterator)


def traverse_items(*items: T) -> Traverser[T]:
    return IteratorTraverser(iter(items))


def singleton(item: T) -> Traverser[T]:
    return traverse_items(_check_item(item))


def empty_traverser() -> Traverser[Any]:
    return FunctionTraverser(lambda: EMPTY)


__all__ = [
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
]
