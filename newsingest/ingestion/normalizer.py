"""Map raw API records onto the article schema."""

from datetime import datetime, timezone
from typing import Optional

from psycopg import Connection

from ..db.articles import ArticleRepository
from ..errors import RecordValidationError
from ..models import Article, Category, Source
from .models import RawArticle
from .text import parse_timestamp, slugify

FALLBACK_SLUG = "article"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class Normalizer:
    """Turn a raw record into an ``Article`` ready to insert."""

    def __init__(self, articles: Optional[ArticleRepository] = None) -> None:
        self.articles = articles or ArticleRepository()

    def normalize(
        self,
        conn: Connection,
        record: RawArticle,
        source: Source,
        category: Category,
    ) -> Article:
        """
        Validate and map a raw record.

        Raises:
            RecordValidationError: url, title or published_at missing or unreadable
        """
        url = _clean(record.url)
        title = _clean(record.title)
        self.validate(record)
        published_at = parse_timestamp(record.published_at)
        description = _clean(record.description)
        extra = record.model_extra or {}

        return Article(
            url=url,
            slug=self.unique_slug(conn, title),
            title=title,
            description=description,
            # The API only returns the summary
            content=_clean(extra.get("content")) or description,
            author=_clean(record.author),
            image_url=_clean(record.image),
            source=source.mediastack_id,
            category=category.slug,
            country=_clean(record.country),
            language=_clean(record.language),
            published_at=published_at,
            is_active=True,
            is_featured=False,
            view_count=0,
            metadata={
                "mediastack_data": record.payload(),
                "processed_at": datetime.now(timezone.utc).isoformat(),
            },
        )

    @staticmethod
    def validate(record: RawArticle) -> None:
        """Check required fields without touching storage."""
        if not _clean(record.url):
            raise RecordValidationError("url", "missing")
        if not _clean(record.title):
            raise RecordValidationError("title", "missing")
        if not _clean(record.published_at):
            raise RecordValidationError("published_at", "missing")
        if parse_timestamp(record.published_at) is None:
            raise RecordValidationError("published_at", f"unparsable value {record.published_at!r}")

    @staticmethod
    def base_slug(title: str) -> str:
        return slugify(title) or FALLBACK_SLUG

    def unique_slug(self, conn: Connection, title: str) -> str:
        """Slug of ``title``; ``-1``, ``-2``, ... appended while taken."""
        base = self.base_slug(title)
        slug = base
        counter = 1
        while self.articles.slug_exists(conn, slug):
            slug = f"{base}-{counter}"
            counter += 1
        return slug
