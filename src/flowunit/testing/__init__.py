"""Verification harness for processors.

Example:
    >>> from flowunit.testing import ProcessorVerifier
    >>> ProcessorVerifier.verify_processor(MyProcessor) \\
    ...     .input([1, 2, 3]) \\
    ...     .expect_output([2, 4, 6]) \\
    ...     .verify()
"""

from flowunit.testing.harness import (
    DEFAULT_COOPERATIVE_TIMEOUT_MS,
    MODE_NO_SNAPSHOTS,
    MODE_SNAPSHOTS_RESTORE,
    MODE_SNAPSHOTS_SAVE_ONLY,
    ProcessorVerifier,
    VerificationResult,
    equal_output,
    same_items_any_order,
)

__all__ = [
    "ProcessorVerifier",
    "VerificationResult",
    "equal_output",
    "same_items_any_order",
    "DEFAULT_COOPERATIVE_TIMEOUT_MS",
    "MODE_NO_SNAPSHOTS",
    "MODE_SNAPSHOTS_RESTORE",
    "MODE_SNAPSHOTS_SAVE_ONLY",
]
