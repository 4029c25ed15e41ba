"""Database management for newsingest."""

from .articles import ArticleRepository
from .categories import CategoryRepository
from .connection import close_connection_pool, get_connection, get_connection_pool
from .init import init_database, validate_connection
from .runs import FetchRunRepository
from .sources import SourceRepository

__all__ = [
    "ArticleRepository",
    "CategoryRepository",
    "FetchRunRepository",
    "SourceRepository",
    "close_connection_pool",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]
