"""Source model for news outlets seen in the API feed."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from .base import DBModel


class Source(DBModel):
    """News source model, one row per external source key."""

    mediastack_id: str = Field(..., description="External source key (e.g. cnn, bbc)")
    name: str = Field(..., description="Display name of the news source")
    description: Optional[str] = Field(None, description="Short description")
    url: Optional[str] = Field(None, description="Official website URL")
    category: Optional[str] = Field(None, description="Primary category slug")
    country: Optional[str] = Field(None, description="2-letter country code")
    language: Optional[str] = Field(None, description="2-letter language code")
    is_active: bool = Field(True, description="Whether the source is tracked")
    last_fetched_at: Optional[datetime] = Field(None, description="Last run that saw this source")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Creation metadata")
