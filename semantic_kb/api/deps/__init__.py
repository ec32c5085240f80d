"""API dependency factories."""

from semantic_kb.api.deps.dependencies import (
    ServiceCache,
    get_embedding_cache,
    get_search_service,
    get_service_cache,
    get_settings_dependency,
)

__all__ = [
    "ServiceCache",
    "get_embedding_cache",
    "get_search_service",
    "get_service_cache",
    "get_settings_dependency",
]
