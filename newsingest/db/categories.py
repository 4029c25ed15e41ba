"""Category storage."""

from typing import List, Optional

from psycopg import Connection

from ..errors import ConflictError
from ..models import Category


class CategoryRepository:
    """Categories keyed by slug."""

    def get_by_slug(self, conn: Connection, slug: str) -> Optional[Category]:
        """Get category by slug."""
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM categories WHERE slug = %s", (slug,))
            row = cur.fetchone()
        return Category.from_row(row)

    def create(self, conn: Connection, category: Category) -> Category:
        """
        Insert a category.

        Raises:
            ConflictError: another writer already holds the slug
        """
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO categories (slug, name, description, is_active)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (slug) DO NOTHING
                RETURNING *
                """,
                (category.slug, category.name, category.description, category.is_active),
            )
            row = cur.fetchone()
        if row is None:
            raise ConflictError("categories_slug_key")
        return Category(**row)

    def list_all(self, conn: Connection) -> List[Category]:
        """Get all categories."""
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM categories ORDER BY slug")
            return [Category.from_row(row) for row in cur.fetchall()]
