"""Trace record data classes.

Record Categories:
- Base: TraceRecord
- Callback: one record per processor callback invocation
- Snapshot: one record per snapshot cycle phase
- Verification: start/end of a harness run
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List
import time
import json

from flowunit.observability import TraceLevel


@dataclass
class TraceRecord:
    """Base class for all trace records.

    Attributes:
        record_type: String identifying the record type.
        timestamp_ns: Monotonic creation time.
        min_level: Minimum trace level required to emit this record.
    """
    record_type: str = field(default="base", init=False)
    timestamp_ns: int = field(default_factory=lambda: time.perf_counter_ns())
    min_level: TraceLevel = field(default=TraceLevel.NORMAL, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d.pop("min_level", None)
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


@dataclass
class CallbackRecord(TraceRecord):
    """One processor callback invocation.

    ``progress`` is True when the call consumed input, emitted output,
    or returned DONE.
    """
    record_type: str = field(default="callback", init=False)
    min_level: TraceLevel = field(default=TraceLevel.VERBOSE, repr=False)

    processor: str = ""
    callback: str = ""
    elapsed_ms: float = 0.0
    consumed: int = 0
    emitted: int = 0
    result: str = ""
    progress: bool = True
    outbox_full_on_entry: bool = False


@dataclass
class SnapshotRecord(TraceRecord):
    """One snapshot cycle: entries saved and how they were restored."""
    record_type: str = field(default="snapshot", init=False)

    processor: str = ""
    cycle: int = 0
    entry_count: int = 0
    restored_to_new_instance: bool = False
    keys: List[str] = field(default_factory=list)


@dataclass
class VerificationStartRecord(TraceRecord):
    record_type: str = field(default="verification_start", init=False)
    min_level: TraceLevel = field(default=TraceLevel.MINIMAL, repr=False)

    processor: str = ""
    mode: str = ""
    input_count: int = 0
    cooperative: bool = True


@dataclass
class VerificationEndRecord(TraceRecord):
    record_type: str = field(default="verification_end", init=False)
    min_level: TraceLevel = field(default=TraceLevel.MINIMAL, repr=False)

    processor: str = ""
    mode: str = ""
    passed: bool = True
    error: str = ""
    callback_count: int = 0
    snapshot_cycles: int = 0
    output_count: int = 0
    max_callback_ms: float = 0.0


__all__ = [
    "TraceRecord",
    "CallbackRecord",
    "SnapshotRecord",
    "VerificationStartRecord",
    "VerificationEndRecord",
]
