"""Query path: embedding cache, ranking, pagination cursors, snippets, aggregations."""

from semantic_kb.core.search.embedding_cache import CacheStats, EmbeddingCache, normalize_key
from semantic_kb.core.search.pagination import PaginationCursor
from semantic_kb.core.search.ranking import (
    SearchConfig,
    SearchPage,
    SearchResult,
    paginate,
    rank,
)

__all__ = [
    "CacheStats",
    "EmbeddingCache",
    "PaginationCursor",
    "SearchConfig",
    "SearchPage",
    "SearchResult",
    "normalize_key",
    "paginate",
    "rank",
]
