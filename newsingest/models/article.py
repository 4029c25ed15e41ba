"""Article model for ingested news articles."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import DBModel


class Article(DBModel):
    """Article model. The URL is the identity key and never changes."""

    url: str = Field(..., description="Original article URL")
    slug: str = Field(..., description="Unique URL slug derived from the title")
    title: str = Field(..., description="Article headline")
    description: Optional[str] = Field(None, description="Summary from the API")
    content: Optional[str] = Field(None, description="Body text; the API only provides the summary")
    author: Optional[str] = Field(None, description="Author name")
    image_url: Optional[str] = Field(None, description="Featured image URL")
    source: str = Field(..., description="Source key (sources.mediastack_id)")
    category: str = Field(..., description="Category slug (categories.slug)")
    country: Optional[str] = Field(None, description="2-letter country code")
    language: Optional[str] = Field(None, description="2-letter language code")
    published_at: datetime = Field(..., description="Publication timestamp")
    is_active: bool = Field(True, description="Visible to readers")
    is_featured: bool = Field(False, description="Featured on listings")
    view_count: int = Field(0, description="Times viewed", ge=0)
    sentiment_score: Optional[float] = Field(None, description="Sentiment score", ge=-1.0, le=1.0)
    tags: Optional[List[str]] = Field(None, description="Ordered tags")
    keywords: Optional[List[str]] = Field(None, description="Ordered keywords")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Raw payload and processing info")
