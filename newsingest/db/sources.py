"""Source management in database."""

from datetime import datetime
from typing import Iterable, List, Optional

from psycopg import Connection
from psycopg.types.json import Jsonb

from ..errors import ConflictError
from ..models import Source


class SourceRepository:
    """Sources keyed by their external MediaStack id."""

    def get_by_key(self, conn: Connection, mediastack_id: str) -> Optional[Source]:
        """Get source by external key."""
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM sources WHERE mediastack_id = %s", (mediastack_id,))
            row = cur.fetchone()
        return Source.from_row(row)

    def create(self, conn: Connection, source: Source) -> Source:
        """
        Insert a source.

        Raises:
            ConflictError: another writer already holds the key
        """
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO sources (
                    mediastack_id, name, description, url, category,
                    country, language, is_active, metadata
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (mediastack_id) DO NOTHING
                RETURNING *
                """,
                (
                    source.mediastack_id,
                    source.name,
                    source.description,
                    source.url,
                    source.category,
                    source.country,
                    source.language,
                    source.is_active,
                    Jsonb(source.metadata) if source.metadata is not None else None,
                ),
            )
            row = cur.fetchone()
        if row is None:
            raise ConflictError("sources_mediastack_id_key")
        return Source(**row)

    def touch_last_fetched(
        self,
        conn: Connection,
        mediastack_ids: Iterable[str],
        fetched_at: Optional[datetime] = None,
    ) -> int:
        """Stamp ``last_fetched_at`` on every given source."""
        keys = sorted(set(mediastack_ids))
        if not keys:
            return 0
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE sources
                SET last_fetched_at = COALESCE(%s, CURRENT_TIMESTAMP)
                WHERE mediastack_id = ANY(%s)
                """,
                (fetched_at, keys),
            )
            return cur.rowcount

    def list_all(self, conn: Connection) -> List[Source]:
        """Get all sources from database."""
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM sources ORDER BY name")
            return [Source.from_row(row) for row in cur.fetchall()]
