"""Duplicate detection by URL."""

from typing import Optional

from psycopg import Connection

from ..db.articles import ArticleRepository


class DedupGate:
    """First write wins: a URL already stored is never ingested again.

    Checked per record right before persisting. The ``articles_url_key``
    constraint remains the final authority for concurrent runs.
    """

    def __init__(self, articles: Optional[ArticleRepository] = None) -> None:
        self.articles = articles or ArticleRepository()

    def is_duplicate(self, conn: Connection, url: Optional[str]) -> bool:
        if not url or not url.strip():
            return False
        return self.articles.exists_by_url(conn, url.strip())
