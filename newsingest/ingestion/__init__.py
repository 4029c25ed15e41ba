"""MediaStack fetching and record processing."""

from .client import FetchClient, build_query_params
from .dedup import DedupGate
from .models import Pagination, RawArticle, RawBatch
from .normalizer import Normalizer
from .registry import Registry

__all__ = [
    "DedupGate",
    "FetchClient",
    "Normalizer",
    "Pagination",
    "RawArticle",
    "RawBatch",
    "Registry",
    "build_query_params",
]
