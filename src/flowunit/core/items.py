"""Basic value types shared by every part of flowunit.

- Watermark: monotonic progress marker interleaved with data items
- Empty / EMPTY: the "nothing available right now" result of a traverser
- Progress: explicit DONE/PENDING result of suspension-capable calls
- Ordinal: closed variant identifying which input an inbox belongs to

Example:
    >>> from flowunit.core.items import Progress, Watermark, ordinal_of
    >>> ordinal_of(2)
    Fixed(index=2)
    >>> ordinal_of(7)
    Other(index=7)
    >>> Progress.of(True)
    <Progress.DONE: 1>
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Union

# Ordinal used to address every output bucket at once.
BROADCAST = -1

# Ordinals below this value get a dedicated handler in AbstractProcessor.
FIXED_ORDINAL_COUNT = 5


class Empty:
    """Sentinel type for "no item available".

    A traverser returns ``EMPTY`` instead of an item when it has nothing
    to give. For a finite traverser this means exhaustion; a live
    traverser may produce more items later.
    """

    _instance = None

    def __new__(cls) -> "Empty":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EMPTY"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (Empty, ())


EMPTY = Empty()


def is_empty(value: Any) -> bool:
    """Return True if ``value`` is the EMPTY sentinel."""
    return value is EMPTY


class Progress(Enum):
    """Result of a call that may need to be repeated.

    DONE: the call finished its work.
    PENDING: call again later; the caller must not treat this as failure.
    """
    DONE = auto()
    PENDING = auto()

    @property
    def done(self) -> bool:
        return self is Progress.DONE

    @classmethod
    def of(cls, value: Union["Progress", bool]) -> "Progress":
        """Normalize a Progress or a plain bool to a Progress."""
        if isinstance(value, Progress):
            return value
        if isinstance(value, bool):
            return cls.DONE if value else cls.PENDING
        raise TypeError(
            f"Expected Progress or bool, got {type(value).__name__}: {value!r}"
        )


DONE = Progress.DONE
PENDING = Progress.PENDING


@dataclass(frozen=True)
class Watermark:
    """Progress marker: no further items with a lower timestamp follow.

    Attributes:
        timestamp: Event-time position of the watermark.
    """
    timestamp: int

    def __post_init__(self) -> None:
        if not isinstance(self.timestamp, int):
            raise TypeError("Watermark timestamp must be an int")


def is_watermark(item: Any) -> bool:
    return isinstance(item, Watermark)


# =============================================================================
# Ordinals
# =============================================================================


@dataclass(frozen=True)
class Fixed:
    """Ordinal with a dedicated handler (0 .. FIXED_ORDINAL_COUNT - 1)."""
    index: int

    def __post_init__(self) -> None:
        if not 0 <= self.index < FIXED_ORDINAL_COUNT:
            raise ValueError(
                f"Fixed ordinal must be in 0..{FIXED_ORDINAL_COUNT - 1}, "
                f"got {self.index}"
            )


@dataclass(frozen=True)
class Other:
    """Ordinal handled only by the catch-all handler."""
    index: int

    def __post_init__(self) -> None:
        if self.index < FIXED_ORDINAL_COUNT:
            raise ValueError(
                f"Other ordinal must be >= {FIXED_ORDINAL_COUNT}, got {self.index}"
            )


Ordinal = Union[Fixed, Other]


def ordinal_of(index: int) -> Ordinal:
    """Build the ordinal variant for an input index."""
    if index < 0:
        raise ValueError(f"Input ordinal must be non-negative, got {index}")
    if index < FIXED_ORDINAL_COUNT:
        return Fixed(index)
    return Other(index)


@dataclass(frozen=True)
class BroadcastKey:
    """Snapshot key whose entry is delivered to every restored instance.

    Attributes:
        key: The wrapped key.
    """
    key: Any


__all__ = [
    "BROADCAST",
    "FIXED_ORDINAL_COUNT",
    "Empty",
    "EMPTY",
    "is_empty",
    "Progress",
    "DONE",
    "PENDING",
    "Watermark",
    "is_watermark",
    "Fixed",
    "Other",
    "Ordinal",
    "ordinal_of",
    "BroadcastKey",
]
