"""
Application services.

Exports:
  - IndexingService: incremental indexing, the single writer of chunk rows
  - SearchService: semantic search over stored chunks
"""

from semantic_kb.application.services.indexing_service import BatchResult, IndexingService
from semantic_kb.application.services.search_service import SearchService

__all__ = [
    "BatchResult",
    "IndexingService",
    "SearchService",
]
