"""Article storage."""

from psycopg import Connection
from psycopg.types.json import Jsonb

from ..models import Article
from .constraints import unique_violations_as_conflicts

URL_CONSTRAINT = "articles_url_key"
SLUG_CONSTRAINT = "articles_slug_key"


def _jsonb(value):
    return Jsonb(value) if value is not None else None


class ArticleRepository:
    """Articles keyed by URL, with unique slugs."""

    def exists_by_url(self, conn: Connection, url: str) -> bool:
        """Check whether an article with this URL was already ingested."""
        with conn.cursor() as cur:
            cur.execute("SELECT 1 FROM articles WHERE url = %s LIMIT 1", (url,))
            return cur.fetchone() is not None

    def slug_exists(self, conn: Connection, slug: str) -> bool:
        """Check whether a slug is taken."""
        with conn.cursor() as cur:
            cur.execute("SELECT 1 FROM articles WHERE slug = %s LIMIT 1", (slug,))
            return cur.fetchone() is not None

    def create(self, conn: Connection, article: Article) -> Article:
        """
        Insert a new article in its own transaction.

        Raises:
            ConflictError: URL or slug already taken; ``constraint`` tells which
        """
        with unique_violations_as_conflicts(), conn.transaction():
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO articles (
                        url, slug, title, description, content, author, image_url,
                        source, category, country, language, published_at,
                        is_active, is_featured, view_count, sentiment_score,
                        tags, keywords, metadata
                    ) VALUES (
                        %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                        %s, %s, %s, %s, %s, %s, %s, %s, %s
                    )
                    RETURNING *
                    """,
                    (
                        article.url,
                        article.slug,
                        article.title,
                        article.description,
                        article.content,
                        article.author,
                        article.image_url,
                        article.source,
                        article.category,
                        article.country,
                        article.language,
                        article.published_at,
                        article.is_active,
                        article.is_featured,
                        article.view_count,
                        article.sentiment_score,
                        _jsonb(article.tags),
                        _jsonb(article.keywords),
                        _jsonb(article.metadata),
                    ),
                )
                row = cur.fetchone()
        return Article(**row)

    def count(self, conn: Connection) -> int:
        """Total stored articles."""
        with conn.cursor() as cur:
            cur.execute("SELECT COUNT(*) AS total FROM articles")
            return cur.fetchone()["total"]
