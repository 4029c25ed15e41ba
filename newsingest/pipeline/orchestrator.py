"""Ingestion orchestrator: one fetch run from parameters to run log."""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Mapping, Optional

from psycopg import Connection
from pydantic import BaseModel, Field

from ..config import Config, ConfigModel
from ..db import get_connection
from ..db.articles import SLUG_CONSTRAINT, URL_CONSTRAINT, ArticleRepository
from ..db.sources import SourceRepository
from ..errors import ConfigurationError, ConflictError, FetchError, RecordValidationError
from ..ingestion import DedupGate, FetchClient, Normalizer, RawArticle, RawBatch, Registry
from ..models import Article, Category, RunStatus, Source
from ..utils.logging import get_logger
from .events import EventBus, RecordEvent, RecordOutcome, RunCounters, Subscriber, log_record_event
from .run_log import ConnectionFactory, RunLogRecorder, RunOutcome

logger = get_logger("pipeline")


class FetchSummary(BaseModel):
    """What a run returns to its caller.

    A run with ``status == success`` can still carry skipped or errored
    records; callers that care about data quality must read the counts.
    """

    run_id: Optional[int] = Field(None, description="Run log id, if the log write succeeded")
    status: RunStatus = Field(..., description="Final run status")
    fetched: int = Field(0, description="Records returned by the API")
    processed: int = Field(0, description="New articles stored")
    duplicates: int = Field(0, description="Records skipped as already stored")
    invalid: int = Field(0, description="Records skipped by validation")
    failed: int = Field(0, description="Records that failed unexpectedly")
    skipped: int = Field(0, description="duplicates + invalid")
    errored: int = Field(0, description="invalid + failed")
    total_results: int = Field(0, description="Total results the API reports for the query")
    pagination: Dict[str, Any] = Field(default_factory=dict, description="API pagination block")
    execution_time_ms: int = Field(0, description="Wall time of the run")


class IngestionOrchestrator:
    """Drive fetch runs.

    Each run: merge parameters, open a run log entry, fetch one page, feed
    every record through dedup, registry, normalizer and insert, then
    finalize the run log. No state is kept between runs.
    """

    def __init__(
        self,
        config: ConfigModel,
        client: FetchClient,
        connection_factory: ConnectionFactory,
        registry: Optional[Registry] = None,
        normalizer: Optional[Normalizer] = None,
        dedup: Optional[DedupGate] = None,
        articles: Optional[ArticleRepository] = None,
        sources: Optional[SourceRepository] = None,
        recorder: Optional[RunLogRecorder] = None,
        subscribers: Optional[List[Subscriber]] = None,
    ) -> None:
        """Initialize orchestrator. Storage collaborators default to the Postgres ones."""
        self.config = config
        self.client = client
        self.connection_factory = connection_factory
        self.articles = articles or ArticleRepository()
        self.sources = sources or SourceRepository()
        self.registry = registry or Registry(sources=self.sources)
        self.normalizer = normalizer or Normalizer(self.articles)
        self.dedup = dedup or DedupGate(self.articles)
        self.recorder = recorder or RunLogRecorder(connection_factory)
        self.subscribers = list(subscribers or [])

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> "IngestionOrchestrator":
        """Build an orchestrator wired to the configured API and database."""
        client = FetchClient(config.config.mediastack, config.get_api_key())
        db_config = config.get_db_config()
        return cls(
            config.config,
            client,
            lambda: get_connection(db_config),
            **kwargs,
        )

    def resolve_parameters(
        self,
        params: Optional[Mapping[str, Any]] = None,
        profile: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Defaults, then profile parameters, then caller parameters."""
        layered: Dict[str, Any] = {}
        if profile is not None:
            if profile not in self.config.profiles:
                known = ", ".join(sorted(self.config.profiles)) or "none"
                raise ConfigurationError(f"Unknown profile '{profile}' (configured: {known})")
            layered.update(self.config.profiles[profile].params)
        for key, value in (params or {}).items():
            if value is not None and value != "":
                layered[key] = value
        return self.client.build_params(layered)

    def run_fetch(
        self,
        params: Optional[Mapping[str, Any]] = None,
        profile: Optional[str] = None,
        triggered_by: str = "manual",
    ) -> FetchSummary:
        """
        Execute one fetch run.

        Returns:
            Summary with counts, also for runs with record-level failures

        Raises:
            FetchError: the fetch failed; the run log holds the error
        """
        query = self.resolve_parameters(params, profile)
        logger.info("Initiating news fetch from MediaStack with %s", query)
        handle = self.recorder.start(
            query,
            endpoint=self.client.masked_endpoint,
            profile=profile,
            triggered_by=triggered_by,
        )

        try:
            batch = self.client.fetch(query)
        except FetchError as e:
            status = RunStatus.RATE_LIMITED if e.is_rate_limited else RunStatus.FAILED
            logger.error("MediaStack API fetch failed (%s): %s", status.value, e)
            self.recorder.finish(
                handle,
                RunOutcome(
                    status=status,
                    http_status_code=e.http_status,
                    api_response_time_ms=handle.elapsed_ms(),
                    error=e,
                ),
            )
            raise
        except BaseException as e:
            # Cancelled during backoff, or an error outside the fetch taxonomy
            logger.error("MediaStack API fetch aborted: %r", e)
            self.recorder.finish(
                handle,
                RunOutcome(status=RunStatus.FAILED, api_response_time_ms=handle.elapsed_ms(), error=e),
            )
            raise

        counters = RunCounters()
        bus = EventBus([counters, log_record_event, *self.subscribers])
        processing_started = time.monotonic()
        try:
            self._process_batch(batch.records, bus)
        except BaseException as e:
            # Cancelled or crashed mid-batch: stored articles stay, the log gets what was counted
            logger.error("Run aborted after %s of %s records: %r", counters.handled, len(batch.records), e)
            self.recorder.finish(handle, self._outcome(RunStatus.FAILED, batch, counters, processing_started, e))
            raise

        self._touch_sources(counters)

        status = RunStatus.SUCCESS
        if counters.failed >= self.config.pipeline.partial_failure_threshold:
            status = RunStatus.PARTIAL_SUCCESS
        self.recorder.finish(handle, self._outcome(status, batch, counters, processing_started))

        summary = FetchSummary(
            run_id=handle.run_id,
            status=status,
            fetched=len(batch.records),
            total_results=batch.total_available,
            pagination=batch.pagination.model_dump(exclude_none=True),
            execution_time_ms=handle.elapsed_ms(),
            **counters.as_dict(),
        )
        logger.info(
            "News fetch completed: fetched=%s processed=%s skipped=%s errored=%s",
            summary.fetched,
            summary.processed,
            summary.skipped,
            summary.errored,
        )
        return summary

    def _outcome(
        self,
        status: RunStatus,
        batch: RawBatch,
        counters: RunCounters,
        processing_started: float,
        error: Optional[BaseException] = None,
    ) -> RunOutcome:
        return RunOutcome(
            status=status,
            total_results=batch.total_available,
            fetched_results=len(batch.records),
            new_articles=counters.processed,
            duplicate_articles=counters.duplicates,
            invalid_articles=counters.invalid,
            failed_articles=counters.failed,
            api_response_time_ms=batch.response_time_ms,
            db_processing_time_ms=int((time.monotonic() - processing_started) * 1000),
            http_status_code=batch.http_status,
            error=error,
        )

    def _process_batch(self, records: List[RawArticle], bus: EventBus) -> None:
        workers = min(self.config.pipeline.max_workers, len(records))
        if workers <= 1:
            for record in records:
                bus.emit(self._process_in_connection(record))
            return

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="newsingest-record")
        try:
            futures = [executor.submit(self._process_in_connection, record) for record in records]
            for future in as_completed(futures):
                bus.emit(future.result())
        except BaseException:
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

    def _process_in_connection(self, record: RawArticle) -> RecordEvent:
        try:
            with self.connection_factory() as conn:
                return self.process_record(conn, record)
        except Exception as e:  # noqa: BLE001 - connection failures stay at the record boundary
            return RecordEvent(RecordOutcome.FAILED, record.url, record.title, error=e)

    def process_record(self, conn: Connection, record: RawArticle) -> RecordEvent:
        """Run one raw record through dedup, registry, normalizer and insert."""
        url = (record.url or "").strip() or None
        source: Optional[Source] = None
        try:
            if url is None:
                raise RecordValidationError("url", "missing")
            if self.dedup.is_duplicate(conn, url):
                return RecordEvent(RecordOutcome.DUPLICATE, url, record.title)
            self.normalizer.validate(record)

            category = self.registry.resolve_category(conn, record.category)
            source = self.registry.resolve_source(conn, record, category.slug)
            article = self._persist(conn, record, source, category)
        except RecordValidationError as e:
            return RecordEvent(RecordOutcome.INVALID, url, record.title, error=e)
        except ConflictError as e:
            source_key = source.mediastack_id if source else None
            if e.constraint == URL_CONSTRAINT:
                # Lost a race with a concurrent run for the same URL
                return RecordEvent(RecordOutcome.DUPLICATE, url, record.title, source_key=source_key)
            return RecordEvent(RecordOutcome.FAILED, url, record.title, error=e, source_key=source_key)
        except Exception as e:  # noqa: BLE001 - a bad record never aborts the batch
            source_key = source.mediastack_id if source else None
            return RecordEvent(RecordOutcome.FAILED, url, record.title, error=e, source_key=source_key)

        return RecordEvent(
            RecordOutcome.PROCESSED,
            url,
            record.title,
            article_id=article.id,
            slug=article.slug,
            source_key=source.mediastack_id,
        )

    def _persist(self, conn: Connection, record: RawArticle, source: Source, category: Category) -> Article:
        """Insert, regenerating the slug when a concurrent writer took it."""
        attempts = self.config.pipeline.slug_attempts
        attempt = 1
        while True:
            article = self.normalizer.normalize(conn, record, source, category)
            try:
                return self.articles.create(conn, article)
            except ConflictError as e:
                if e.constraint != SLUG_CONSTRAINT or attempt >= attempts:
                    raise
                logger.debug("Slug %s taken concurrently, retrying (%s/%s)", article.slug, attempt, attempts)
                attempt += 1

    def _touch_sources(self, counters: RunCounters) -> None:
        if not counters.sources_seen:
            return
        try:
            with self.connection_factory() as conn:
                self.sources.touch_last_fetched(conn, counters.sources_seen)
        except Exception:  # noqa: BLE001 - bookkeeping only
            logger.warning("Could not update last_fetched_at for %s sources", len(counters.sources_seen), exc_info=True)
