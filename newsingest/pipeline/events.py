"""Per-record outcome events.

Record processing only decides an outcome and emits it. Logging and run
counters are subscribers.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set

from ..utils.logging import get_logger

logger = get_logger("records")


class RecordOutcome(str, Enum):
    """What happened to one raw record."""

    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass(frozen=True)
class RecordEvent:
    """Outcome of processing one raw record."""

    outcome: RecordOutcome
    url: Optional[str]
    title: Optional[str]
    error: Optional[BaseException] = None
    article_id: Optional[int] = None
    slug: Optional[str] = None
    source_key: Optional[str] = None


Subscriber = Callable[[RecordEvent], None]


class EventBus:
    """Fan record events out to subscribers in registration order."""

    def __init__(self, subscribers: Optional[Iterable[Subscriber]] = None) -> None:
        self._subscribers: List[Subscriber] = list(subscribers or [])

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def emit(self, event: RecordEvent) -> None:
        for subscriber in self._subscribers:
            subscriber(event)


@dataclass
class RunCounters:
    """Aggregates record events into run counts. Safe to share between workers."""

    processed: int = 0
    duplicates: int = 0
    invalid: int = 0
    failed: int = 0
    sources_seen: Set[str] = field(default_factory=set)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __call__(self, event: RecordEvent) -> None:
        with self._lock:
            # Any record that got as far as source resolution marks the source as fetched
            if event.source_key:
                self.sources_seen.add(event.source_key)
            if event.outcome is RecordOutcome.PROCESSED:
                self.processed += 1
            elif event.outcome is RecordOutcome.DUPLICATE:
                self.duplicates += 1
            elif event.outcome is RecordOutcome.INVALID:
                self.invalid += 1
            else:
                self.failed += 1

    @property
    def skipped(self) -> int:
        """Records not stored because they were duplicates or invalid."""
        return self.duplicates + self.invalid

    @property
    def errored(self) -> int:
        """Records that could not be processed."""
        return self.invalid + self.failed

    @property
    def handled(self) -> int:
        return self.processed + self.duplicates + self.invalid + self.failed

    def as_dict(self) -> Dict[str, int]:
        with self._lock:
            return {
                "processed": self.processed,
                "duplicates": self.duplicates,
                "invalid": self.invalid,
                "failed": self.failed,
                "skipped": self.skipped,
                "errored": self.errored,
            }


def log_record_event(event: RecordEvent) -> None:
    """Diagnostic log subscriber."""
    if event.outcome is RecordOutcome.PROCESSED:
        logger.info("Stored article %s (%s)", event.slug, event.url)
    elif event.outcome is RecordOutcome.DUPLICATE:
        logger.debug("Skipping duplicate %s", event.url)
    elif event.outcome is RecordOutcome.INVALID:
        logger.warning(
            "Skipping invalid record url=%s title=%r: %s",
            event.url or "unknown",
            event.title or "unknown",
            event.error,
        )
    else:
        logger.error(
            "Failed to process article url=%s title=%r: %s: %s",
            event.url or "unknown",
            event.title or "unknown",
            type(event.error).__name__,
            event.error,
            exc_info=event.error,
        )
