"""Tests for the stock processors."""

import pytest

from flowunit.core import BroadcastKey, Inbox, Outbox, ProcessorContext, Watermark
from flowunit.processors import (
    ACCUMULATOR_KEY,
    WATERMARK_KEY,
    AccumulateProcessor,
    NoopProcessor,
    accumulate_p,
    filter_p,
    flat_map_p,
    insert_watermarks_p,
    map_p,
    noop_p,
)
from flowunit.testing import ProcessorVerifier, same_items_any_order


# =============================================================================
# Stateless Processor Tests
# =============================================================================


class TestMap:
    """Tests for map_p."""

    def test_doubles(self):
        (
            ProcessorVerifier(lambda: map_p(lambda x: x * 2))
            .input([1, 2, 3])
            .expect_output([2, 4, 6])
            .verify()
        )

    def test_none_drops_item(self):
        (
            ProcessorVerifier(lambda: map_p(lambda x: x if x > 1 else None))
            .input([1, 2, 3])
            .expect_output([2, 3])
            .verify()
        )

    def test_shared_instance(self):
        """Test a single instance also passes in save-only mode."""
        (
            ProcessorVerifier(map_p(str.upper))
            .input(["foo", "bar"])
            .disable_complete_call()
            .expect_output(["FOO", "BAR"])
            .verify()
        )


class TestFilter:
    """Tests for filter_p."""

    def test_even(self):
        (
            ProcessorVerifier(lambda: filter_p(lambda x: x % 2 == 0))
            .input(list(range(7)))
            .expect_output([0, 2, 4, 6])
            .verify()
        )

    def test_falsy_items_kept(self):
        (
            ProcessorVerifier(lambda: filter_p(lambda x: True))
            .input([0, "", False])
            .expect_output([0, "", False])
            .verify()
        )


class TestFlatMap:
    """Tests for flat_map_p."""

    def test_iterable_result(self):
        """Test input [1] through x -> [x, x+1] yields [1, 2]."""
        (
            ProcessorVerifier(lambda: flat_map_p(lambda x: [x, x + 1]))
            .input([1])
            .expect_output([1, 2])
            .verify()
        )

    def test_many_outputs_per_item(self):
        result = (
            ProcessorVerifier(lambda: flat_map_p(lambda x: range(x)))
            .input([3, 0, 2])
            .expect_output([0, 1, 2, 0, 1])
            .verify()
        )
        assert result.callback_count > 5

    def test_none_and_empty(self):
        (
            ProcessorVerifier(lambda: flat_map_p(lambda x: None if x == 1 else []))
            .input([1, 2])
            .expect_output([])
            .verify()
        )


class TestNoop:
    """Tests for noop_p."""

    def test_swallows_everything(self):
        (
            ProcessorVerifier(noop_p)
            .input([1, Watermark(3), 2])
            .expect_output([])
            .verify()
        )

    def test_restore_discards(self):
        processor = NoopProcessor()
        inbox = Inbox(items=[("k", 1)])
        processor.restore_from_snapshot(inbox)
        assert inbox.is_empty


# =============================================================================
# Stateful Processor Tests
# =============================================================================


class TestAccumulate:
    """Tests for accumulate_p."""

    def test_sum(self):
        """Test the sum survives restores into fresh instances."""
        verifier = (
            ProcessorVerifier(lambda: accumulate_p(lambda: 0, lambda acc, x: acc + x))
            .input([1, 2, 3])
            .expect_output([6])
        )
        result = verifier.verify()
        assert result.instances_created > 1

    def test_finish(self):
        (
            ProcessorVerifier(
                lambda: accumulate_p(list, lambda acc, x: acc + [x], finish=tuple)
            )
            .input(["a", "b"])
            .expect_output([("a", "b")])
            .verify()
        )

    def test_finish_none_emits_nothing(self):
        (
            ProcessorVerifier(
                lambda: accumulate_p(lambda: 0, lambda acc, x: acc + x, finish=lambda acc: None)
            )
            .input([1])
            .expect_output([])
            .verify()
        )

    def test_without_complete_call(self):
        (
            ProcessorVerifier(lambda: accumulate_p(lambda: 0, lambda acc, x: acc + x))
            .input([1, 2])
            .disable_complete_call()
            .expect_output([])
            .verify()
        )

    def test_unknown_snapshot_key(self):
        processor = AccumulateProcessor(lambda: 0, lambda acc, x: acc + x, lambda acc: acc)
        processor.init(ProcessorContext(outbox=Outbox()))
        with pytest.raises(ValueError):
            processor.restore_from_snapshot(Inbox(items=[("other", 1)]))

    def test_snapshot_key(self):
        processor = AccumulateProcessor(lambda: 5, lambda acc, x: acc + x, lambda acc: acc)
        outbox = Outbox()
        processor.init(ProcessorContext(outbox=outbox, snapshotting_enabled=True))
        processor.save_to_snapshot()
        assert outbox.drain_snapshot() == [(ACCUMULATOR_KEY, 5)]


class TestInsertWatermarks:
    """Tests for insert_watermarks_p."""

    def test_watermark_before_advancing_item(self):
        (
            ProcessorVerifier(lambda: insert_watermarks_p(lambda x: x, lag=1))
            .input([5, 3, 7])
            .expect_output([Watermark(4), 5, 3, Watermark(6), 7])
            .verify()
        )

    def test_upstream_watermark_only_when_advancing(self):
        """Test an upstream watermark behind the inserted one is dropped."""
        (
            ProcessorVerifier(lambda: insert_watermarks_p(lambda x: x))
            .input([5, Watermark(2), Watermark(9), 10])
            .expect_output([Watermark(5), 5, Watermark(9), Watermark(10), 10])
            .verify()
        )

    def test_state_survives_restore(self):
        """Test a restored instance does not re-emit an old watermark."""
        verifier = (
            ProcessorVerifier(lambda: insert_watermarks_p(lambda x: x))
            .input([4, 4, 2, 4])
            .expect_output([Watermark(4), 4, 4, 2, 4])
        )
        verifier.verify()
        assert len(verifier.results) == 2

    def test_negative_lag_rejected(self):
        with pytest.raises(ValueError):
            insert_watermarks_p(lambda x: x, lag=-1)

    def test_restore_keeps_lowest(self):
        processor = insert_watermarks_p(lambda x: x)
        processor.init(ProcessorContext(outbox=Outbox()))
        processor.restore_from_snapshot(Inbox(items=[(WATERMARK_KEY, 8), (WATERMARK_KEY, 3)]))
        outbox = processor.outbox
        processor.process(0, Inbox(items=[3, 4]))
        assert outbox.drain(0) == [3, Watermark(4), 4]

    def test_broadcast_key(self):
        assert isinstance(WATERMARK_KEY, BroadcastKey)

    def test_any_order_output(self):
        (
            ProcessorVerifier(lambda: insert_watermarks_p(lambda x: x))
            .input([1, 2])
            .output_checker(same_items_any_order)
            .expect_output([2, Watermark(2), 1, Watermark(1)])
            .verify()
        )
