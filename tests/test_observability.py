"""Tests for flowunit observability system."""

import io
import json

from flowunit.observability import (
    CallbackRecord,
    ConsoleSink,
    FileSink,
    MemorySink,
    NullSink,
    ObservabilityHub,
    Sink,
    SnapshotRecord,
    TraceLevel,
    TraceRecord,
    VerificationEndRecord,
    VerificationStartRecord,
)


# =============================================================================
# TraceLevel Tests
# =============================================================================


class TestTraceLevel:
    """Tests for TraceLevel enum."""

    def test_level_ordering(self):
        """Test trace levels are ordered correctly."""
        assert TraceLevel.OFF < TraceLevel.MINIMAL < TraceLevel.NORMAL < TraceLevel.VERBOSE


# =============================================================================
# TraceRecord Tests
# =============================================================================


class TestTraceRecords:
    """Tests for the trace record types."""

    def test_base_record(self):
        record = TraceRecord()
        assert record.record_type == "base"
        assert record.min_level == TraceLevel.NORMAL

    def test_to_dict_excludes_level(self):
        d = CallbackRecord(processor="p", callback="process").to_dict()
        assert d["record_type"] == "callback"
        assert "timestamp_ns" in d
        assert "min_level" not in d

    def test_to_json(self):
        data = json.loads(SnapshotRecord(processor="p", keys=["'k'"]).to_json())
        assert data["record_type"] == "snapshot"
        assert data["keys"] == ["'k'"]

    def test_record_levels(self):
        """Test per-call records are the most detailed level."""
        assert CallbackRecord().min_level == TraceLevel.VERBOSE
        assert SnapshotRecord().min_level == TraceLevel.NORMAL
        assert VerificationStartRecord().min_level == TraceLevel.MINIMAL
        assert VerificationEndRecord().min_level == TraceLevel.MINIMAL


# =============================================================================
# ObservabilityHub Tests
# =============================================================================


class FailingSink(Sink):
    def write(self, record):
        raise IOError("disk full")


class TestObservabilityHub:
    """Tests for ObservabilityHub singleton."""

    def setup_method(self):
        ObservabilityHub.reset_instance()

    def teardown_method(self):
        ObservabilityHub.reset_instance()

    def test_singleton(self):
        assert ObservabilityHub.get_instance() is ObservabilityHub.get_instance()

    def test_default_disabled(self):
        hub = ObservabilityHub.get_instance()
        assert not hub.enabled
        assert hub.level == TraceLevel.OFF

    def test_emit_when_disabled(self):
        hub = ObservabilityHub.get_instance()
        sink = MemorySink()
        hub.add_sink(sink)
        hub.emit(VerificationStartRecord(processor="p"))
        assert len(sink) == 0

    def test_emit_respects_min_level(self):
        """Test records above the configured level are dropped."""
        hub = ObservabilityHub.get_instance()
        sink = MemorySink()
        hub.configure(level=TraceLevel.NORMAL, sinks=[sink])

        hub.emit(CallbackRecord(processor="p"))
        hub.emit(SnapshotRecord(processor="p"))
        hub.emit(VerificationEndRecord(processor="p"))

        assert [r.record_type for r in sink.get_records()] == ["snapshot", "verification_end"]

    def test_is_level_enabled(self):
        hub = ObservabilityHub.get_instance()
        hub.configure(level=TraceLevel.NORMAL)
        assert hub.is_level_enabled(TraceLevel.MINIMAL)
        assert hub.is_level_enabled(TraceLevel.NORMAL)
        assert not hub.is_level_enabled(TraceLevel.VERBOSE)

    def test_failing_sink_does_not_break_emit(self, caplog):
        """Test a broken sink is logged and the other sinks still get the record."""
        hub = ObservabilityHub.get_instance()
        sink = MemorySink()
        hub.configure(level=TraceLevel.MINIMAL, sinks=[FailingSink(), sink])
        hub.emit(VerificationStartRecord(processor="p"))
        assert len(sink) == 1
        assert "FailingSink failed" in caplog.text

    def test_remove_sink(self):
        hub = ObservabilityHub.get_instance()
        sink = MemorySink()
        hub.configure(level=TraceLevel.MINIMAL, sinks=[sink])
        hub.remove_sink(sink)
        hub.emit(VerificationStartRecord())
        assert len(sink) == 0

    def test_shutdown_turns_off(self):
        hub = ObservabilityHub.get_instance()
        hub.configure(level=TraceLevel.VERBOSE, sinks=[MemorySink()])
        hub.shutdown()
        assert not hub.enabled
        assert hub.level == TraceLevel.OFF


# =============================================================================
# Sink Tests
# =============================================================================


class TestFileSink:
    """Tests for FileSink."""

    def test_jsonl_format(self, tmp_path):
        path = tmp_path / "nested" / "trace.jsonl"
        sink = FileSink(str(path))
        sink.write(VerificationStartRecord(processor="p", mode="m", input_count=3))
        sink.write(VerificationEndRecord(processor="p", passed=False, error="boom"))
        sink.close()

        lines = path.read_text().splitlines()
        assert len(lines) == 2
        start, end = [json.loads(line) for line in lines]
        assert start["input_count"] == 3
        assert end["error"] == "boom"

    def test_buffered_writes(self, tmp_path):
        """Test records stay buffered until the buffer fills or flush()."""
        path = tmp_path / "trace.jsonl"
        sink = FileSink(str(path), buffer_size=3)
        sink.write(TraceRecord())
        assert path.read_text() == ""
        sink.flush()
        assert len(path.read_text().splitlines()) == 1
        sink.close()

    def test_append(self, tmp_path):
        path = tmp_path / "trace.jsonl"
        for _ in range(2):
            sink = FileSink(str(path), append=True)
            sink.write(TraceRecord())
            sink.close()
        assert len(path.read_text().splitlines()) == 2


class TestMemorySink:
    """Tests for MemorySink."""

    def test_max_records_limit(self):
        sink = MemorySink(max_records=2)
        for i in range(5):
            sink.write(CallbackRecord(consumed=i))
        assert [r.consumed for r in sink.get_records()] == [3, 4]

    def test_get_records_by_type(self):
        sink = MemorySink()
        sink.write(CallbackRecord())
        sink.write(SnapshotRecord())
        assert len(sink.get_records("snapshot")) == 1
        assert len(sink.get_records()) == 2

    def test_callback_stats(self):
        sink = MemorySink()
        sink.write(CallbackRecord(callback="process", elapsed_ms=1.0))
        sink.write(CallbackRecord(callback="process", elapsed_ms=3.0))
        sink.write(CallbackRecord(callback="complete", elapsed_ms=2.0))
        stats = sink.get_callback_stats()
        assert stats["process"] == {"count": 2, "avg_ms": 2.0, "max_ms": 3.0}
        assert stats["complete"]["count"] == 1

    def test_clear(self):
        sink = MemorySink()
        sink.write(TraceRecord())
        sink.clear()
        assert len(sink) == 0


class TestNullSink:
    def test_discards_records(self):
        NullSink().write(TraceRecord())


class TestConsoleSink:
    """Tests for ConsoleSink formatting."""

    def write(self, record, **kwargs):
        stream = io.StringIO()
        ConsoleSink(stream=stream, **kwargs).write(record)
        return stream.getvalue()

    def test_callback_line(self):
        out = self.write(CallbackRecord(
            processor="map", callback="process", elapsed_ms=1.5,
            consumed=1, emitted=1, result="None",
        ))
        assert out.startswith("[CALL] map.process() 1.50ms")

    def test_no_progress_flagged(self):
        out = self.write(CallbackRecord(processor="p", callback="process", progress=False))
        assert "NO-PROGRESS" in out

    def test_fast_callback_skipped(self):
        out = self.write(
            CallbackRecord(processor="p", elapsed_ms=0.1), slow_threshold_ms=10.0
        )
        assert out == ""

    def test_stalled_callback_never_skipped(self):
        out = self.write(
            CallbackRecord(processor="p", elapsed_ms=0.1, progress=False),
            slow_threshold_ms=10.0,
        )
        assert "NO-PROGRESS" in out

    def test_snapshot_line(self):
        out = self.write(SnapshotRecord(
            processor="sum", cycle=2, entry_count=1, restored_to_new_instance=True,
        ))
        assert out == "[SNAPSHOT] sum cycle 2: 1 entries, restored to new instance\n"

    def test_verification_lines(self):
        assert "started, 3 inputs" in self.write(
            VerificationStartRecord(processor="p", mode="m", input_count=3)
        )
        assert "FAILED: boom" in self.write(
            VerificationEndRecord(processor="p", mode="m", passed=False, error="boom")
        )

    def test_custom_format(self):
        out = self.write(TraceRecord(), format_fn=lambda r: f"custom {r.record_type}")
        assert out == "custom base\n"

    def test_unknown_record_skipped(self):
        assert self.write(TraceRecord()) == ""
