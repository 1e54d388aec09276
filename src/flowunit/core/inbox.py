"""Inbox: ordered buffer of items awaiting processing for one input.

The engine fills an inbox; a processor only removes items from its
front. Capacity is enforced by whoever fills it, not by the inbox.

Data items and watermarks share one inbox. The two filtered views
returned by ``data_view()`` and ``watermark_view()`` read from the same
deque, and each only yields the head when it is of the view's subtype.
This keeps the relative order of data and watermarks intact.

Example:
    >>> inbox = Inbox(ordinal=0)
    >>> inbox.extend([1, Watermark(10), 2])
    >>> inbox.data_view().poll()
    1
    >>> inbox.data_view().poll()  # head is a watermark
    EMPTY
    >>> inbox.watermark_view().poll()
    Watermark(timestamp=10)
"""

from collections import deque
from typing import Any, Callable, Deque, Iterable, Iterator, List, Optional

from flowunit.core.items import EMPTY, is_watermark


class Inbox:
    """FIFO buffer for one input ordinal.

    Args:
        ordinal: Index of the input this inbox belongs to.
        items: Optional initial content.
    """

    def __init__(self, ordinal: int = 0, items: Optional[Iterable[Any]] = None) -> None:
        if ordinal < 0:
            raise ValueError("ordinal must be non-negative")
        self._ordinal = ordinal
        self._queue: Deque[Any] = deque()
        if items is not None:
            self.extend(items)

    @property
    def ordinal(self) -> int:
        return self._ordinal

    # Engine side -------------------------------------------------------------

    def add(self, item: Any) -> None:
        """Append an item. Called by the engine only."""
        if item is None:
            raise ValueError("Inbox items must not be None")
        self._queue.append(item)

    def extend(self, items: Iterable[Any]) -> None:
        for item in items:
            self.add(item)

    def clear(self) -> None:
        self._queue.clear()

    # Processor side ----------------------------------------------------------

    def peek(self) -> Any:
        """Return the head without removing it, or EMPTY."""
        if not self._queue:
            return EMPTY
        return self._queue[0]

    def poll(self) -> Any:
        """Remove and return the head, or EMPTY."""
        if not self._queue:
            return EMPTY
        return self._queue.popleft()

    def remove(self) -> Any:
        """Remove and return the head.

        Raises:
            IndexError: If the inbox is empty.
        """
        if not self._queue:
            raise IndexError("remove() on an empty inbox")
        return self._queue.popleft()

    def drain(self, consumer: Callable[[Any], None]) -> int:
        """Pass every item to ``consumer`` in order, removing each first.

        Returns:
            Number of items drained.
        """
        count = 0
        while self._queue:
            consumer(self._queue.popleft())
            count += 1
        return count

    def drain_to(self, target: List[Any], limit: Optional[int] = None) -> int:
        count = 0
        while self._queue and (limit is None or count < limit):
            target.append(self._queue.popleft())
            count += 1
        return count

    @property
    def size(self) -> int:
        return len(self._queue)

    @property
    def is_empty(self) -> bool:
        return not self._queue

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self) -> Iterator[Any]:
        # Read-only iteration over current content
        return iter(list(self._queue))

    def __repr__(self) -> str:
        return f"Inbox(ordinal={self._ordinal}, items={list(self._queue)!r})"

    # Filtered views ----------------------------------------------------------

    def data_view(self) -> "FilteredInbox":
        """View yielding data items only, stopping at a watermark."""
        return FilteredInbox(self, want_watermarks=False)

    def watermark_view(self) -> "FilteredInbox":
        """View yielding watermarks only, stopping at a data item."""
        return FilteredInbox(self, want_watermarks=True)


class FilteredInbox:
    """One subtype's view over a shared Inbox.

    The view consumes from the underlying inbox's front. When the head
    belongs to the other subtype, the view behaves as empty. It never
    skips ahead.
    """

    def __init__(self, inbox: Inbox, want_watermarks: bool) -> None:
        self._inbox = inbox
        self._want_watermarks = want_watermarks

    @property
    def ordinal(self) -> int:
        return self._inbox.ordinal

    def _head_matches(self) -> bool:
        head = self._inbox.peek()
        if head is EMPTY:
            return False
        return is_watermark(head) == self._want_watermarks

    def peek(self) -> Any:
        if not self._head_matches():
            return EMPTY
        return self._inbox.peek()

    def poll(self) -> Any:
        if not self._head_matches():
            return EMPTY
        return self._inbox.poll()

    def remove(self) -> Any:
        if not self._head_matches():
            raise IndexError("remove() on an empty inbox view")
        return self._inbox.remove()

    def drain(self, consumer: Callable[[Any], None]) -> int:
        count = 0
        while self._head_matches():
            consumer(self._inbox.poll())
            count += 1
        return count

    def drain_to(self, target: List[Any], limit: Optional[int] = None) -> int:
        count = 0
        while self._head_matches() and (limit is None or count < limit):
            target.append(self._inbox.poll())
            count += 1
        return count

    @property
    def size(self) -> int:
        """Length of the matching run at the head of the inbox."""
        count = 0
        for item in self._inbox:
            if is_watermark(item) != self._want_watermarks:
                break
            count += 1
        return count

    @property
    def is_empty(self) -> bool:
        return not self._head_matches()

    def __len__(self) -> int:
        return self.size


__all__ = ["Inbox", "FilteredInbox"]
