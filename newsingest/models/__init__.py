"""Data models for newsingest."""

from .article import Article
from .category import Category
from .fetch_run import FetchRun, RunStatus
from .source import Source

__all__ = ["Article", "Category", "FetchRun", "RunStatus", "Source"]
