"""Category model."""

from typing import Optional

from pydantic import Field

from .base import DBModel


class Category(DBModel):
    """News category, one row per slug."""

    slug: str = Field(..., description="Category slug (e.g. technology)")
    name: str = Field(..., description="Display name")
    description: Optional[str] = Field(None, description="Optional description")
    is_active: bool = Field(True, description="Whether the category is active")
