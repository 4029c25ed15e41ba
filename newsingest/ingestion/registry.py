"""Resolve sources and categories from raw API fields."""

from typing import Optional

from psycopg import Connection

from ..db.categories import CategoryRepository
from ..db.sources import SourceRepository
from ..errors import ConflictError, RegistryError
from ..models import Category, Source
from ..utils.logging import get_logger
from .models import RawArticle
from .text import slugify

logger = get_logger("registry")

UNKNOWN_SOURCE_KEY = "unknown"
UNKNOWN_SOURCE_NAME = "Unknown Source"
UNKNOWN_CATEGORY_SLUG = "unknown"
UNKNOWN_CATEGORY_NAME = "Unknown"

KEY_MAX_LENGTH = 100


def source_key_from_name(name: Optional[str]) -> str:
    """Fallback source key: the trimmed name lowercased, each space an underscore.

    Spaces are mapped one for one, so ``"Daily  Mail"`` keys as
    ``daily__mail``. Keys already stored under that scheme must keep
    resolving to the same row.
    """
    cleaned = (name or "").strip().lower()
    if not cleaned:
        raise RegistryError("Source name is empty")
    return cleaned.replace(" ", "_")[:KEY_MAX_LENGTH]


def category_slug_from_name(name: Optional[str]) -> str:
    slug = slugify(name or "")
    if not slug:
        raise RegistryError(f"Category name {name!r} has no usable characters")
    return slug[:KEY_MAX_LENGTH]


class Registry:
    """Get-or-create for Source and Category rows.

    The lookup is an optimization. Uniqueness is enforced by the table
    constraints: a create that loses a race surfaces as ``ConflictError``
    and is answered with a second lookup.
    """

    def __init__(
        self,
        sources: Optional[SourceRepository] = None,
        categories: Optional[CategoryRepository] = None,
    ) -> None:
        self.sources = sources or SourceRepository()
        self.categories = categories or CategoryRepository()

    def resolve_source(self, conn: Connection, record: RawArticle, category_slug: Optional[str] = None) -> Source:
        """Get or create the source a raw record belongs to."""
        name = (record.source or "").strip()
        key = (record.source_id or "").strip().lower()[:KEY_MAX_LENGTH]
        if not key:
            try:
                key = source_key_from_name(name)
            except RegistryError as e:
                logger.warning("Using sentinel source for %s: %s", record.url, e)
                key, name = UNKNOWN_SOURCE_KEY, UNKNOWN_SOURCE_NAME
            else:
                logger.warning("Source data missing 'id', using fallback ID %r for %r", key, name)
        if not name:
            name = UNKNOWN_SOURCE_NAME if key == UNKNOWN_SOURCE_KEY else key

        existing = self.sources.get_by_key(conn, key)
        if existing:
            return existing

        candidate = Source(
            mediastack_id=key,
            name=name,
            description=f"News source: {name}",
            category=category_slug,
            country=record.country,
            language=record.language,
            is_active=True,
            metadata={"created_from_mediastack": True},
        )
        try:
            source = self.sources.create(conn, candidate)
        except ConflictError:
            source = self.sources.get_by_key(conn, key)
            if source is None:
                raise
            logger.debug("Source %s was created concurrently", key)
            return source
        logger.info("Created source %s (%s)", source.mediastack_id, source.name)
        return source

    def resolve_category(self, conn: Connection, name: Optional[str]) -> Category:
        """Get or create a category by display name."""
        display = (name or "").strip()
        try:
            slug = category_slug_from_name(display)
        except RegistryError as e:
            logger.warning("Using sentinel category: %s", e)
            slug, display = UNKNOWN_CATEGORY_SLUG, UNKNOWN_CATEGORY_NAME

        existing = self.categories.get_by_slug(conn, slug)
        if existing:
            return existing

        candidate = Category(
            slug=slug,
            name=display,
            description=f"News category: {display}",
            is_active=True,
        )
        try:
            category = self.categories.create(conn, candidate)
        except ConflictError:
            category = self.categories.get_by_slug(conn, slug)
            if category is None:
                raise
            logger.debug("Category %s was created concurrently", slug)
            return category
        logger.info("Created category %s", category.slug)
        return category
