"""Diagnostic wrapper that logs what a processor reads and emits.

PeekingProcessor wraps another processor and logs every item it removes
from its inbox and/or every item its outbox accepts. It only observes:
offers, rejections and ordering are exactly those of the wrapped
processor. A broadcast offer is logged once, not once per destination.

Example:
    >>> factory = peek_output(lambda: map_p(str.upper), to_string=repr)
    >>> # every accepted output item is logged at INFO through the
    >>> # processor's context logger
"""

import dataclasses
import logging
from typing import Any, Callable, List, Optional, Union

from flowunit.core.inbox import FilteredInbox, Inbox
from flowunit.core.items import BROADCAST, EMPTY, Progress, Watermark
from flowunit.core.outbox import OrdinalSpec, Outbox
from flowunit.core.processor import Processor, ProcessorContext

ToString = Callable[[Any], str]
Predicate = Callable[[Any], bool]
InboxLike = Union[Inbox, FilteredInbox]


def _always(item: Any) -> bool:
    return True


class LoggingInbox:
    """Inbox proxy that logs every removed item."""

    def __init__(
        self,
        inbox: InboxLike,
        log: Callable[[str], None],
        to_string: ToString,
        should_log: Predicate,
    ) -> None:
        self._inbox = inbox
        self._log = log
        self._to_string = to_string
        self._should_log = should_log

    def _seen(self, item: Any) -> Any:
        if self._should_log(item):
            self._log(f"Input from {self._inbox.ordinal}: {self._to_string(item)}")
        return item

    @property
    def ordinal(self) -> int:
        return self._inbox.ordinal

    def peek(self) -> Any:
        return self._inbox.peek()

    def poll(self) -> Any:
        item = self._inbox.poll()
        if item is not EMPTY:
            self._seen(item)
        return item

    def remove(self) -> Any:
        return self._seen(self._inbox.remove())

    def drain(self, consumer: Callable[[Any], None]) -> int:
        return self._inbox.drain(lambda item: consumer(self._seen(item)))

    def drain_to(self, target: List[Any], limit: Optional[int] = None) -> int:
        drained: List[Any] = []
        count = self._inbox.drain_to(drained, limit)
        for item in drained:
            target.append(self._seen(item))
        return count

    @property
    def size(self) -> int:
        return self._inbox.size

    @property
    def is_empty(self) -> bool:
        return self._inbox.is_empty

    def __len__(self) -> int:
        return len(self._inbox)


class LoggingOutbox:
    """Outbox proxy that logs every accepted offer once."""

    def __init__(
        self,
        outbox: Outbox,
        log: Callable[[str], None],
        to_string: ToString,
        should_log: Predicate,
        log_output: bool,
        log_snapshot: bool,
    ) -> None:
        self._outbox = outbox
        self._log = log
        self._to_string = to_string
        self._should_log = should_log
        self._log_output = log_output
        self._log_snapshot = log_snapshot

    def offer(self, ordinal: OrdinalSpec, item: Any) -> bool:
        accepted = self._outbox.offer(ordinal, item)
        if accepted and self._log_output and self._should_log(item):
            target = "all" if ordinal == BROADCAST else str(ordinal)
            self._log(f"Output to {target}: {self._to_string(item)}")
        return accepted

    def offer_all(self, item: Any) -> bool:
        return self.offer(BROADCAST, item)

    def offer_to_snapshot(self, key: Any, value: Any) -> bool:
        accepted = self._outbox.offer_to_snapshot(key, value)
        if accepted and self._log_snapshot and self._should_log((key, value)):
            self._log(
                f"Output to snapshot: {self._to_string(key)} = {self._to_string(value)}"
            )
        return accepted

    def __getattr__(self, name: str) -> Any:
        return getattr(self._outbox, name)


class PeekingProcessor(Processor):
    """Wraps a processor and logs its input and/or output.

    Args:
        wrapped: The processor to observe.
        to_string: Formats an item for the log line (default: str).
        should_log: Only items passing this predicate are logged.
        peek_input: Log items removed from the inbox and watermarks.
        peek_output: Log items accepted by the outbox.
        peek_snapshot: Log accepted snapshot entries.
    """

    def __init__(
        self,
        wrapped: Processor,
        to_string: Optional[ToString] = None,
        should_log: Optional[Predicate] = None,
        peek_input: bool = False,
        peek_output: bool = False,
        peek_snapshot: bool = False,
    ) -> None:
        self._wrapped = wrapped
        self._to_string = to_string or str
        self._should_log = should_log or _always
        self._peek_input = peek_input
        self._peek_output = peek_output
        self._peek_snapshot = peek_snapshot
        self._logger: logging.Logger = logging.getLogger(__name__)

    @property
    def wrapped(self) -> Processor:
        return self._wrapped

    @property
    def name(self) -> str:
        return self._wrapped.name

    @property
    def is_cooperative(self) -> bool:
        return self._wrapped.is_cooperative

    def _log(self, message: str) -> None:
        self._logger.info(message)

    def init(self, context: ProcessorContext) -> None:
        self._logger = context.logger
        if self._peek_output or self._peek_snapshot:
            outbox = LoggingOutbox(
                context.outbox,
                self._log,
                self._to_string,
                self._should_log,
                log_output=self._peek_output,
                log_snapshot=self._peek_snapshot,
            )
            context = dataclasses.replace(context, outbox=outbox)
        self._wrapped.init(context)

    def process(self, ordinal: int, inbox: InboxLike) -> None:
        if self._peek_input:
            inbox = LoggingInbox(inbox, self._log, self._to_string, self._should_log)
        self._wrapped.process(ordinal, inbox)

    def try_process_watermark(self, watermark: Watermark) -> Progress:
        progress = Progress.of(self._wrapped.try_process_watermark(watermark))
        if progress.done and self._peek_input and self._should_log(watermark):
            self._log(f"Input watermark: {self._to_string(watermark)}")
        return progress

    def complete(self) -> Progress:
        return self._wrapped.complete()

    def save_to_snapshot(self) -> Progress:
        return self._wrapped.save_to_snapshot()

    def restore_from_snapshot(self, inbox: Inbox) -> None:
        self._wrapped.restore_from_snapshot(inbox)

    def finish_snapshot_restore(self) -> Progress:
        return self._wrapped.finish_snapshot_restore()

    def close(self) -> None:
        self._wrapped.close()


ProcessorSource = Union[Processor, Callable[[], Processor]]


def _wrap(source: ProcessorSource, **options: Any) -> ProcessorSource:
    if isinstance(source, Processor):
        return PeekingProcessor(source, **options)
    return lambda: PeekingProcessor(source(), **options)


def peek_input(
    source: ProcessorSource,
    to_string: Optional[ToString] = None,
    should_log: Optional[Predicate] = None,
) -> ProcessorSource:
    """Log every item the processor takes from its inbox.

    Accepts an instance or a factory and returns the same kind.
    """
    return _wrap(source, to_string=to_string, should_log=should_log, peek_input=True)


def peek_output(
    source: ProcessorSource,
    to_string: Optional[ToString] = None,
    should_log: Optional[Predicate] = None,
) -> ProcessorSource:
    """Log every item the processor's outbox accepts."""
    return _wrap(source, to_string=to_string, should_log=should_log, peek_output=True)


def peek_snapshot(
    source: ProcessorSource,
    to_string: Optional[ToString] = None,
    should_log: Optional[Predicate] = None,
) -> ProcessorSource:
    """Log every snapshot entry the processor saves."""
    return _wrap(source, to_string=to_string, should_log=should_log, peek_snapshot=True)


__all__ = [
    "PeekingProcessor",
    "LoggingInbox",
    "LoggingOutbox",
    "peek_input",
    "peek_output",
    "peek_snapshot",
]
