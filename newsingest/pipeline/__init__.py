"""Ingestion pipeline: orchestration, run log and record events."""

from .events import EventBus, RecordEvent, RecordOutcome, RunCounters, log_record_event
from .orchestrator import FetchSummary, IngestionOrchestrator
from .run_log import RunHandle, RunLogRecorder, RunOutcome

__all__ = [
    "EventBus",
    "FetchSummary",
    "IngestionOrchestrator",
    "RecordEvent",
    "RecordOutcome",
    "RunCounters",
    "RunHandle",
    "RunLogRecorder",
    "RunOutcome",
    "log_record_event",
]
