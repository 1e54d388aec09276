"""Outbox: bounded per-destination buffers a processor emits into.

The outbox has one bucket per output ordinal plus one reserved bucket
for snapshot entries. A processor may only *offer* items; a rejected
offer (``False``) means the bucket is full and the processor must
return and wait to be called again. Rejection is backpressure, never
an error.

Offering to ``BROADCAST`` (or to a sequence of ordinals) is
all-or-nothing: the item is accepted only if every target bucket has
room, and then lands in all of them.

Example:
    >>> outbox = Outbox(bucket_count=2, capacity=1)
    >>> outbox.offer(0, "a")
    True
    >>> outbox.offer(0, "b")  # bucket 0 full
    False
    >>> outbox.offer(BROADCAST, "c")  # bucket 0 still full
    False
    >>> outbox.drain(0)
    ['a']
    >>> outbox.offer(BROADCAST, "c")
    True
"""

from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, List, Optional, Sequence, Tuple, Union

from flowunit.core.items import BROADCAST

Capacity = Optional[int]
OrdinalSpec = Union[int, Sequence[int]]


@dataclass
class OutboxStats:
    """Statistics from outbox operations.

    Attributes:
        items_offered: Offer attempts, counting a broadcast once.
        items_accepted: Accepted offers, counting a broadcast once.
        items_rejected: Rejected offers.
        snapshot_entries: Accepted snapshot entries.
        peak_size: Largest bucket size observed.
    """
    items_offered: int = 0
    items_accepted: int = 0
    items_rejected: int = 0
    snapshot_entries: int = 0
    peak_size: int = 0

    @property
    def rejection_rate(self) -> float:
        if self.items_offered == 0:
            return 0.0
        return self.items_rejected / self.items_offered


class _Bucket:
    """A single bounded FIFO. ``None`` capacity means unbounded."""

    def __init__(self, capacity: Capacity) -> None:
        if capacity is not None and capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.queue: Deque[Any] = deque()

    @property
    def has_room(self) -> bool:
        return self.capacity is None or len(self.queue) < self.capacity


class Outbox:
    """Bounded multi-destination buffer owned by the engine.

    Args:
        bucket_count: Number of output ordinals.
        capacity: Capacity of every data bucket, or a list with one
            capacity per bucket. ``None`` means unbounded.
        snapshot_capacity: Capacity of the snapshot bucket.
    """

    def __init__(
        self,
        bucket_count: int = 1,
        capacity: Union[Capacity, Sequence[Capacity]] = None,
        snapshot_capacity: Capacity = None,
    ) -> None:
        if bucket_count < 0:
            raise ValueError("bucket_count must be non-negative")
        if capacity is None or isinstance(capacity, int):
            capacities: List[Capacity] = [capacity] * bucket_count
        else:
            capacities = list(capacity)
            if len(capacities) != bucket_count:
                raise ValueError(
                    f"Got {len(capacities)} capacities for {bucket_count} buckets"
                )
        self._buckets = [_Bucket(c) for c in capacities]
        self._snapshot = _Bucket(snapshot_capacity)
        self._stats = OutboxStats()

    # Processor side ----------------------------------------------------------

    def offer(self, ordinal: OrdinalSpec, item: Any) -> bool:
        """Offer an item to one bucket, several buckets, or all of them.

        Args:
            ordinal: Bucket index, ``BROADCAST``, or a sequence of indexes.
            item: Non-None item.

        Returns:
            True if the item was accepted by every target bucket.
        """
        if item is None:
            raise ValueError("Cannot offer None to an outbox")
        targets = self._resolve(ordinal)
        self._stats.items_offered += 1
        if not all(bucket.has_room for bucket in targets):
            self._stats.items_rejected += 1
            return False
        for bucket in targets:
            bucket.queue.append(item)
            self._stats.peak_size = max(self._stats.peak_size, len(bucket.queue))
        self._stats.items_accepted += 1
        return True

    def offer_all(self, item: Any) -> bool:
        return self.offer(BROADCAST, item)

    def offer_to_snapshot(self, key: Any, value: Any) -> bool:
        """Offer one snapshot entry to the reserved snapshot bucket."""
        if key is None or value is None:
            raise ValueError("Snapshot key and value must not be None")
        if not self._snapshot.has_room:
            return False
        self._snapshot.queue.append((key, value))
        self._stats.snapshot_entries += 1
        return True

    def _resolve(self, ordinal: OrdinalSpec) -> List[_Bucket]:
        if isinstance(ordinal, int):
            if ordinal == BROADCAST:
                return list(self._buckets)
            return [self._bucket(ordinal)]
        return [self._bucket(o) for o in dict.fromkeys(ordinal)]

    def _bucket(self, ordinal: int) -> _Bucket:
        if not 0 <= ordinal < len(self._buckets):
            raise IndexError(
                f"Ordinal {ordinal} out of range for {len(self._buckets)} buckets"
            )
        return self._buckets[ordinal]

    # Engine side -------------------------------------------------------------

    @property
    def bucket_count(self) -> int:
        return len(self._buckets)

    def capacity(self, ordinal: int) -> Capacity:
        return self._bucket(ordinal).capacity

    def has_capacity(self, ordinal: int) -> bool:
        return self._bucket(ordinal).has_room

    @property
    def is_full(self) -> bool:
        """True if no data bucket can accept an item."""
        return bool(self._buckets) and not any(b.has_room for b in self._buckets)

    def bucket_size(self, ordinal: int) -> int:
        return len(self._bucket(ordinal).queue)

    @property
    def total_size(self) -> int:
        return sum(len(b.queue) for b in self._buckets)

    @property
    def snapshot_size(self) -> int:
        return len(self._snapshot.queue)

    def peek(self, ordinal: int) -> List[Any]:
        """Current content of a bucket without removing it."""
        return list(self._bucket(ordinal).queue)

    def drain(self, ordinal: int) -> List[Any]:
        """Remove and return all items in a bucket."""
        queue = self._bucket(ordinal).queue
        items = list(queue)
        queue.clear()
        return items

    def drain_snapshot(self) -> List[Tuple[Any, Any]]:
        items = list(self._snapshot.queue)
        self._snapshot.queue.clear()
        return items

    def clear(self) -> None:
        for bucket in self._buckets:
            bucket.queue.clear()
        self._snapshot.queue.clear()

    @property
    def stats(self) -> OutboxStats:
        return self._stats

    def __repr__(self) -> str:
        buckets = [list(b.queue) for b in self._buckets]
        return f"Outbox(buckets={buckets!r}, snapshot={list(self._snapshot.queue)!r})"


__all__ = ["Outbox", "OutboxStats", "BROADCAST"]
