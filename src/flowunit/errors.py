"""Exception hierarchy for flowunit.

Errors raised by a processor's own callbacks are not wrapped: they
propagate unchanged to whoever invoked the callback.

The verification errors derive from AssertionError as well, so test
runners report them as failed assertions rather than crashes.
"""

from typing import Any, Sequence


class FlowUnitError(Exception):
    """Base class for flowunit errors."""
    pass


class IllegalLifecycleError(FlowUnitError):
    """A callback was invoked out of lifecycle order or re-entrantly."""
    pass


class VerificationError(FlowUnitError, AssertionError):
    """Base class for failures detected by the verification harness."""
    pass


class ProgressViolationError(VerificationError):
    """A callback neither consumed input, emitted output, nor returned DONE."""
    pass


class CooperativeTimeoutError(VerificationError):
    """A cooperative callback exceeded its time budget."""

    def __init__(self, callback: str, elapsed_ms: float, timeout_ms: float) -> None:
        self.callback = callback
        self.elapsed_ms = elapsed_ms
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Cooperative callback {callback}() took {elapsed_ms:.1f} ms, "
            f"budget is {timeout_ms:.1f} ms. Cooperative processors must "
            f"never block."
        )


class OutputMismatchError(VerificationError):
    """Actual output differs from the expected output."""

    def __init__(self, expected: Sequence[Any], actual: Sequence[Any], mode: str = "") -> None:
        self.expected = list(expected)
        self.actual = list(actual)
        self.mode = mode
        where = f" ({mode})" if mode else ""
        super().__init__(
            f"Output mismatch{where}\n"
            f"  expected: {self.expected!r}\n"
            f"  actual:   {self.actual!r}"
        )


class SnapshotError(VerificationError):
    """The snapshot protocol was not followed (duplicate keys, leftovers)."""
    pass


__all__ = [
    "FlowUnitError",
    "IllegalLifecycleError",
    "VerificationError",
    "ProgressViolationError",
    "CooperativeTimeoutError",
    "OutputMismatchError",
    "SnapshotError",
]
