"""
Dependency injection container.

Factory functions for FastAPI dependencies. Long-lived collaborators
(embedding cache, embedding provider, session factory) are built once
per application by ServiceCache, which the lifespan attaches to
`app.state`, and shared across requests.

Dependencies: semantic_kb.configs, semantic_kb.application, semantic_kb.boundary
System role: DI container for service injection
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from semantic_kb.application.services.search_service import SearchService
from semantic_kb.boundary.db.connection import get_async_session_factory
from semantic_kb.boundary.embeddings.ollama_client import OllamaEmbeddingProvider
from semantic_kb.boundary.embeddings.provider import EmbeddingProvider
from semantic_kb.configs import Settings, get_settings
from semantic_kb.core.search.embedding_cache import EmbeddingCache


class ServiceCache:
    """Container for cached service collaborators."""

    def __init__(self) -> None:
        self._embedding_cache: EmbeddingCache | None = None
        self._provider: EmbeddingProvider | None = None
        self._session_factory: async_sessionmaker | None = None

    @property
    def embedding_cache(self) -> EmbeddingCache:
        """Get the shared query embedding cache."""
        if self._embedding_cache is None:
            self._embedding_cache = EmbeddingCache.from_settings(get_settings().cache)
        return self._embedding_cache

    @property
    def provider(self) -> EmbeddingProvider:
        """Get the shared embedding provider."""
        if self._provider is None:
            self._provider = OllamaEmbeddingProvider.from_settings(get_settings().embedding)
        return self._provider

    @property
    def session_factory(self) -> async_sessionmaker:
        """Get the shared async session factory."""
        if self._session_factory is None:
            self._session_factory = get_async_session_factory()
        return self._session_factory

    async def aclose(self) -> None:
        """Release the provider and drop all cached instances."""
        if self._provider is not None:
            await self._provider.aclose()
        self.clear()

    def clear(self) -> None:
        """Clear all cached instances."""
        self._embedding_cache = None
        self._provider = None
        self._session_factory = None


def get_service_cache(request: Request) -> ServiceCache:
    """Get the container the application lifespan attached to app.state."""
    return request.app.state.service_cache


def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_embedding_cache(
    cache: ServiceCache = Depends(get_service_cache),
) -> EmbeddingCache:
    """
    Get the shared query embedding cache.

    Returns:
        EmbeddingCache: Process-wide cache instance
    """
    return cache.embedding_cache


def get_search_service(
    cache: ServiceCache = Depends(get_service_cache),
) -> SearchService:
    """
    Get search service instance.

    Returns:
        SearchService: Search service bound to the shared cache and provider
    """
    return SearchService(
        session_factory=cache.session_factory,
        provider=cache.provider,
        cache=cache.embedding_cache,
    )
