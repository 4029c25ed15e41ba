"""Data models for ingestion."""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field


class RawArticle(BaseModel):
    """Article entry as returned by the news API, before normalization.

    Every field is optional here; the normalizer decides what is required.
    """

    title: Optional[str] = Field(None, description="Article title")
    description: Optional[str] = Field(None, description="Article summary")
    url: Optional[str] = Field(None, description="Article URL")
    source: Optional[str] = Field(None, description="Source display name")
    source_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("source_id", "id"),
        description="External source key when the API provides one",
    )
    image: Optional[str] = Field(None, description="Image URL")
    author: Optional[str] = Field(None, description="Author name")
    category: Optional[str] = Field(None, description="Category name")
    country: Optional[str] = Field(None, description="2-letter country code")
    language: Optional[str] = Field(None, description="2-letter language code")
    published_at: Optional[str] = Field(None, description="Publication timestamp as sent")

    class Config:
        """Pydantic config."""

        extra = "allow"
        coerce_numbers_to_str = True

    def payload(self) -> Dict[str, Any]:
        """The record as received, for storage in article metadata."""
        return self.model_dump(by_alias=False, exclude_none=False)


class Pagination(BaseModel):
    """Pagination block of an API response."""

    limit: Optional[int] = None
    offset: Optional[int] = None
    count: Optional[int] = None
    total: Optional[int] = None


class RawBatch(BaseModel):
    """Result of one successful fetch."""

    records: List[RawArticle] = Field(default_factory=list, description="Raw records")
    pagination: Pagination = Field(default_factory=Pagination)
    http_status: int = Field(200, description="HTTP status of the final attempt")
    attempts: int = Field(1, description="Attempts used")
    response_time_ms: int = Field(0, description="Time spent fetching, backoff included")

    @property
    def total_available(self) -> int:
        return self.pagination.total if self.pagination.total is not None else len(self.records)

    @property
    def returned_count(self) -> int:
        return self.pagination.count if self.pagination.count is not None else len(self.records)
