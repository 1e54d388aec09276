"""Tracing for processor runs.

The hub collects trace records about callback invocations, snapshot
cycles and verification runs, and forwards them to sinks.

Trace Levels:
- OFF: No tracing (default)
- MINIMAL: Run start/end only
- NORMAL: Snapshot cycles
- VERBOSE: Every callback invocation

Example:
    >>> from flowunit.observability import ObservabilityHub, TraceLevel, MemorySink
    >>> hub = ObservabilityHub.get_instance()
    >>> sink = MemorySink()
    >>> hub.configure(level=TraceLevel.VERBOSE, sinks=[sink])
    >>> # ... run a verification ...
    >>> sink.get_records("callback")
"""

import logging
import threading
from enum import IntEnum
from typing import List, Optional

logger = logging.getLogger(__name__)


class TraceLevel(IntEnum):
    """Observability trace levels.

    Higher levels include all lower level information.
    """
    OFF = 0
    MINIMAL = 1
    NORMAL = 2
    VERBOSE = 3


class Sink:
    """Base class for trace sinks."""

    def write(self, record: "TraceRecord") -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


class ObservabilityHub:
    """Process-wide hub for trace configuration and record emission.

    Singleton - use ``get_instance()``. Thread-safe: instances running
    on different threads may emit concurrently.
    """

    _instance: Optional["ObservabilityHub"] = None
    _lock = threading.Lock()

    def __init__(self) -> None:
        self._level = TraceLevel.OFF
        self._sinks: List[Sink] = []
        self._emit_lock = threading.Lock()
        self._enabled = False

    @classmethod
    def get_instance(cls) -> "ObservabilityHub":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance. For testing only."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.shutdown()
            cls._instance = None

    def configure(
        self,
        level: TraceLevel = TraceLevel.OFF,
        sinks: Optional[List[Sink]] = None,
    ) -> None:
        self._level = level
        self._enabled = level > TraceLevel.OFF
        if sinks:
            for sink in sinks:
                self.add_sink(sink)

    def add_sink(self, sink: Sink) -> None:
        with self._emit_lock:
            self._sinks.append(sink)

    def remove_sink(self, sink: Sink) -> None:
        with self._emit_lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def emit(self, record: "TraceRecord") -> None:
        """Send a record to every sink if its level is enabled.

        A failing sink is logged and skipped; tracing never aborts a run.
        """
        if not self._enabled or record.min_level > self._level:
            return

        with self._emit_lock:
            for sink in self._sinks:
                try:
                    sink.write(record)
                except Exception as e:
                    logger.warning(f"Trace sink {type(sink).__name__} failed: {e}")

    def flush(self) -> None:
        with self._emit_lock:
            for sink in self._sinks:
                sink.flush()

    def shutdown(self) -> None:
        """Flush and close all sinks, then turn tracing off."""
        with self._emit_lock:
            for sink in self._sinks:
                try:
                    sink.flush()
                    sink.close()
                except Exception as e:
                    logger.warning(f"Error closing trace sink {type(sink).__name__}: {e}")
            self._sinks.clear()

        self._level = TraceLevel.OFF
        self._enabled = False

    @property
    def enabled(self) -> bool:
        """Fast check to skip building records when tracing is off."""
        return self._enabled

    @property
    def level(self) -> TraceLevel:
        return self._level

    def is_level_enabled(self, level: TraceLevel) -> bool:
        return self._enabled and self._level >= level


from flowunit.observability.records import (  # noqa: E402
    TraceRecord,
    CallbackRecord,
    SnapshotRecord,
    VerificationStartRecord,
    VerificationEndRecord,
)
from flowunit.observability.sinks import FileSink, ConsoleSink, MemorySink, NullSink  # noqa: E402

__all__ = [
    "TraceLevel",
    "Sink",
    "ObservabilityHub",
    "TraceRecord",
    "CallbackRecord",
    "SnapshotRecord",
    "VerificationStartRecord",
    "VerificationEndRecord",
    "FileSink",
    "ConsoleSink",
    "MemorySink",
    "NullSink",
]
