"""Run log bookkeeping.

A run row is written once at start and finalized once at the end. A failing
log write is reported on the diagnostic log and never fails the ingestion
run itself.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, ContextManager, Dict, Optional

from psycopg import Connection

from ..db.runs import FetchRunRepository
from ..errors import FetchError
from ..models import FetchRun, RunStatus
from ..utils.logging import get_logger

logger = get_logger("runlog")

ConnectionFactory = Callable[[], ContextManager[Connection]]


@dataclass
class RunHandle:
    """A started run."""

    run_id: Optional[int]
    endpoint: str
    parameters: Dict[str, Any]
    profile: Optional[str]
    triggered_by: str
    started_at: datetime
    started_monotonic: float = field(default_factory=time.monotonic)
    finished: bool = False

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_monotonic) * 1000)


@dataclass
class RunOutcome:
    """Final state of a run."""

    status: RunStatus
    total_results: int = 0
    fetched_results: int = 0
    new_articles: int = 0
    duplicate_articles: int = 0
    invalid_articles: int = 0
    failed_articles: int = 0
    api_response_time_ms: Optional[int] = None
    db_processing_time_ms: Optional[int] = None
    http_status_code: Optional[int] = None
    error: Optional[BaseException] = None


def error_fields(error: Optional[BaseException]) -> Dict[str, Any]:
    """Message and detail columns for a run that ended with ``error``."""
    if error is None:
        return {"error_message": None, "error_details": None}
    if isinstance(error, FetchError):
        return {"error_message": error.message, "error_details": error.to_details()}
    message = str(error) or type(error).__name__
    if isinstance(error, KeyboardInterrupt):
        message = "Run cancelled"
    return {
        "error_message": message,
        "error_details": {"error_class": type(error).__name__, "message": str(error)},
    }


class RunLogRecorder:
    """Create and finalize fetch run rows."""

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        repository: Optional[FetchRunRepository] = None,
    ) -> None:
        self.connection_factory = connection_factory
        self.repository = repository or FetchRunRepository()

    def start(
        self,
        parameters: Dict[str, Any],
        endpoint: str,
        profile: Optional[str] = None,
        triggered_by: str = "manual",
    ) -> RunHandle:
        """Record a run in ``running`` state. The handle has no id if the write failed."""
        handle = RunHandle(
            run_id=None,
            endpoint=endpoint,
            parameters=dict(parameters),
            profile=profile,
            triggered_by=triggered_by,
            started_at=datetime.now(timezone.utc),
        )
        run = FetchRun(
            endpoint=endpoint,
            parameters=handle.parameters,
            profile=profile,
            triggered_by=triggered_by,
            status=RunStatus.RUNNING,
            started_at=handle.started_at,
        )
        try:
            with self.connection_factory() as conn:
                handle.run_id = self.repository.create(conn, run)
        except Exception:  # noqa: BLE001 - the run goes on without a log row
            logger.exception("Could not create run log entry for %s", endpoint)
        else:
            logger.info("Started fetch run %s", handle.run_id)
        return handle

    def finish(self, handle: RunHandle, outcome: RunOutcome) -> Optional[FetchRun]:
        """Finalize a run. A second call for the same handle is ignored.

        Raises:
            ValueError: ``outcome.status`` is not a final status
        """
        if not outcome.status.is_final:
            raise ValueError(f"Cannot finish run {handle.run_id} as {outcome.status.value}")
        if handle.finished:
            logger.warning("Run %s already finalized", handle.run_id)
            return None
        handle.finished = True

        run = FetchRun(
            id=handle.run_id,
            endpoint=handle.endpoint,
            parameters=handle.parameters,
            profile=handle.profile,
            triggered_by=handle.triggered_by,
            status=outcome.status,
            total_results=outcome.total_results,
            fetched_results=outcome.fetched_results,
            new_articles=outcome.new_articles,
            duplicate_articles=outcome.duplicate_articles,
            invalid_articles=outcome.invalid_articles,
            failed_articles=outcome.failed_articles,
            execution_time_ms=handle.elapsed_ms(),
            api_response_time_ms=outcome.api_response_time_ms,
            db_processing_time_ms=outcome.db_processing_time_ms,
            http_status_code=outcome.http_status_code,
            started_at=handle.started_at,
            completed_at=datetime.now(timezone.utc),
            **error_fields(outcome.error),
        )

        if handle.run_id is None:
            logger.warning("Run finished as %s without a run log entry", run.status.value)
            return run

        try:
            with self.connection_factory() as conn:
                updated = self.repository.finish(conn, handle.run_id, run)
        except Exception:  # noqa: BLE001 - never fail the run over its log
            logger.exception("Could not finalize run log entry %s", handle.run_id)
            return run

        if not updated:
            logger.warning("Run log entry %s was not in running state", handle.run_id)
        logger.info(
            "Finished fetch run %s: %s (%s new, %s duplicates, %s invalid, %s failed)",
            handle.run_id,
            run.status.value,
            run.new_articles,
            run.duplicate_articles,
            run.invalid_articles,
            run.failed_articles,
        )
        return run
