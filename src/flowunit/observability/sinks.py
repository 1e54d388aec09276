"""Trace output sinks.

- FileSink: JSONL file output
- ConsoleSink: Human-readable console output
- MemorySink: In-memory buffer for tests and analysis
- NullSink: Discards everything
"""

import sys
import threading
from collections import deque
from pathlib import Path
from typing import Callable, Deque, Dict, List, Optional, TextIO

from flowunit.observability import Sink
from flowunit.observability.records import (
    CallbackRecord,
    SnapshotRecord,
    TraceRecord,
    VerificationEndRecord,
    VerificationStartRecord,
)


class FileSink(Sink):
    """Writes each record as one JSON line.

    Args:
        path: Output file path. Parent directories are created.
        buffer_size: Records buffered before writing (default: 100).
        append: Append to an existing file instead of truncating.
    """

    def __init__(self, path: str, buffer_size: int = 100, append: bool = False):
        self._path = Path(path)
        self._buffer_size = buffer_size
        self._buffer: List[str] = []
        self._lock = threading.Lock()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file: Optional[TextIO] = open(
            self._path, "a" if append else "w", encoding="utf-8"
        )

    def write(self, record: TraceRecord) -> None:
        line = record.to_json()
        with self._lock:
            self._buffer.append(line)
            if len(self._buffer) >= self._buffer_size:
                self._flush_buffer()

    def _flush_buffer(self) -> None:
        """Must be called with lock held."""
        if not self._buffer or self._file is None:
            return
        for line in self._buffer:
            self._file.write(line + "\n")
        self._file.flush()
        self._buffer.clear()

    def flush(self) -> None:
        with self._lock:
            self._flush_buffer()

    def close(self) -> None:
        with self._lock:
            self._flush_buffer()
            if self._file is not None:
                self._file.close()
                self._file = None


class ConsoleSink(Sink):
    """Writes one readable line per record.

    Args:
        stream: Output stream (default: sys.stderr).
        slow_threshold_ms: Callback records faster than this are skipped
            unless they made no progress.
        format_fn: Optional custom formatter; return None to skip a record.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        slow_threshold_ms: float = 0.0,
        format_fn: Optional[Callable[[TraceRecord], Optional[str]]] = None,
    ):
        self._stream = stream or sys.stderr
        self._slow_threshold_ms = slow_threshold_ms
        self._format_fn = format_fn
        self._lock = threading.Lock()

    def write(self, record: TraceRecord) -> None:
        if self._format_fn:
            line = self._format_fn(record)
        else:
            line = self._format_record(record)
        if line:
            with self._lock:
                self._stream.write(line + "\n")
                self._stream.flush()

    def _format_record(self, record: TraceRecord) -> Optional[str]:
        if isinstance(record, CallbackRecord):
            if record.progress and record.elapsed_ms < self._slow_threshold_ms:
                return None
            flag = "" if record.progress else " NO-PROGRESS"
            return (
                f"[CALL] {record.processor}.{record.callback}() "
                f"{record.elapsed_ms:.2f}ms consumed={record.consumed} "
                f"emitted={record.emitted} -> {record.result}{flag}"
            )
        elif isinstance(record, SnapshotRecord):
            target = "new instance" if record.restored_to_new_instance else "same instance"
            return (
                f"[SNAPSHOT] {record.processor} cycle {record.cycle}: "
                f"{record.entry_count} entries, restored to {target}"
            )
        elif isinstance(record, VerificationStartRecord):
            return f"[VERIFY] {record.processor} ({record.mode}) started, {record.input_count} inputs"
        elif isinstance(record, VerificationEndRecord):
            status = "passed" if record.passed else f"FAILED: {record.error}"
            return f"[VERIFY] {record.processor} ({record.mode}) {status}"
        return None

    def flush(self) -> None:
        with self._lock:
            self._stream.flush()


class MemorySink(Sink):
    """Keeps records in memory.

    Args:
        max_records: Maximum number of records to keep (default: 10000).
    """

    def __init__(self, max_records: int = 10000):
        self._records: Deque[TraceRecord] = deque(maxlen=max_records)
        self._lock = threading.Lock()

    def write(self, record: TraceRecord) -> None:
        with self._lock:
            self._records.append(record)

    def get_records(self, record_type: Optional[str] = None) -> List[TraceRecord]:
        with self._lock:
            records = list(self._records)
        if record_type:
            records = [r for r in records if r.record_type == record_type]
        return records

    def get_callback_stats(self) -> Dict[str, Dict[str, float]]:
        """Per-callback count, average and maximum elapsed time."""
        times: Dict[str, List[float]] = {}
        for record in self.get_records("callback"):
            times.setdefault(record.callback, []).append(record.elapsed_ms)
        return {
            name: {
                "count": len(values),
                "avg_ms": sum(values) / len(values),
                "max_ms": max(values),
            }
            for name, values in times.items()
        }

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class NullSink(Sink):
    """Discards all records."""

    def write(self, record: TraceRecord) -> None:
        pass


__all__ = [
    "FileSink",
    "ConsoleSink",
    "MemorySink",
    "NullSink",
]
