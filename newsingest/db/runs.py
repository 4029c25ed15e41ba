"""Fetch run log in database."""

from datetime import datetime
from typing import List, Optional

from psycopg import Connection
from psycopg.types.json import Jsonb

from ..models import FetchRun, RunStatus


class FetchRunRepository:
    """Persist fetch runs. Rows are created once and finalized once."""

    def create(self, conn: Connection, run: FetchRun) -> int:
        """
        Create a new run record.

        Returns:
            Run ID
        """
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO fetch_runs (endpoint, parameters, profile, triggered_by, status, started_at)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING id
                """,
                (
                    run.endpoint,
                    Jsonb(run.parameters),
                    run.profile,
                    run.triggered_by,
                    RunStatus.RUNNING.value,
                    run.started_at,
                ),
            )
            return cur.fetchone()["id"]

    def finish(self, conn: Connection, run_id: int, run: FetchRun) -> bool:
        """
        Write the final outcome of a run.

        Only a run still in ``running`` state is updated, so a run is
        finalized at most once.

        Returns:
            True if the row was updated
        """
        completed_at = run.completed_at or datetime.now().astimezone()
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE fetch_runs
                SET
                    status = %s,
                    total_results = %s,
                    fetched_results = %s,
                    new_articles = %s,
                    duplicate_articles = %s,
                    invalid_articles = %s,
                    failed_articles = %s,
                    execution_time_ms = %s,
                    api_response_time_ms = %s,
                    db_processing_time_ms = %s,
                    http_status_code = %s,
                    error_message = %s,
                    error_details = %s,
                    completed_at = %s
                WHERE id = %s AND status = 'running'
                """,
                (
                    run.status.value,
                    run.total_results,
                    run.fetched_results,
                    run.new_articles,
                    run.duplicate_articles,
                    run.invalid_articles,
                    run.failed_articles,
                    run.execution_time_ms,
                    run.api_response_time_ms,
                    run.db_processing_time_ms,
                    run.http_status_code,
                    run.error_message,
                    Jsonb(run.error_details) if run.error_details is not None else None,
                    completed_at,
                    run_id,
                ),
            )
            return cur.rowcount == 1

    def get(self, conn: Connection, run_id: int) -> Optional[FetchRun]:
        """Get run by ID."""
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM fetch_runs WHERE id = %s", (run_id,))
            row = cur.fetchone()
        return FetchRun.from_row(row)

    def recent(self, conn: Connection, limit: int = 10) -> List[FetchRun]:
        """Get recent runs."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT * FROM fetch_runs
                ORDER BY started_at DESC
                LIMIT %s
                """,
                (limit,),
            )
            return [FetchRun.from_row(row) for row in cur.fetchall()]
