"""Fetch run models for the run log."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field

from .base import DBModel


class RunStatus(str, Enum):
    """Fetch run status."""

    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"
    RATE_LIMITED = "rate_limited"

    @property
    def is_final(self) -> bool:
        return self is not RunStatus.RUNNING


class FetchRun(DBModel):
    """One invocation of the ingestion pipeline."""

    endpoint: str = Field(..., description="API endpoint with masked key")
    parameters: Dict[str, Any] = Field(default_factory=dict, description="Request parameters")
    profile: Optional[str] = Field(None, description="Profile the run was triggered with")
    triggered_by: str = Field("manual", description="What triggered the run (cli, cron, manual)")
    status: RunStatus = Field(RunStatus.RUNNING, description="Run status")
    total_results: int = Field(0, description="Total results reported by the API")
    fetched_results: int = Field(0, description="Records returned in this page")
    new_articles: int = Field(0, description="Articles created")
    duplicate_articles: int = Field(0, description="Records skipped as already ingested")
    invalid_articles: int = Field(0, description="Records skipped by validation")
    failed_articles: int = Field(0, description="Records that failed unexpectedly")
    execution_time_ms: Optional[int] = Field(None, description="Total run time")
    api_response_time_ms: Optional[int] = Field(None, description="Time spent fetching")
    db_processing_time_ms: Optional[int] = Field(None, description="Time spent processing records")
    http_status_code: Optional[int] = Field(None, description="Last HTTP status seen")
    error_message: Optional[str] = Field(None, description="Error message when the run failed")
    error_details: Optional[Dict[str, Any]] = Field(None, description="Structured error detail")
    started_at: datetime = Field(..., description="When the run started")
    completed_at: Optional[datetime] = Field(None, description="When the run finished")
