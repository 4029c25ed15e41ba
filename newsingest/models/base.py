"""Base model class for all database models."""

from datetime import datetime
from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, Field

RowModel = TypeVar("RowModel", bound="DBModel")


class DBModel(BaseModel):
    """Base for table rows; ``id`` and timestamps are assigned by Postgres."""

    id: Optional[int] = Field(None, description="Primary key")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    class Config:
        """Pydantic config."""

        from_attributes = True

    @classmethod
    def from_row(cls: Type[RowModel], row: Optional[Mapping[str, Any]]) -> Optional[RowModel]:
        """Build a model from a ``dict_row`` result, passing ``None`` through."""
        if row is None:
            return None
        return cls.model_validate(dict(row))
