"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI and the CLI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from semantic_kb.configs.base import BaseSettings
from semantic_kb.configs.cache import CacheSettings
from semantic_kb.configs.chunking import ChunkingSettings
from semantic_kb.configs.database import DatabaseSettings
from semantic_kb.configs.embedding import EmbeddingSettings
from semantic_kb.configs.indexing import IndexingSettings
from semantic_kb.configs.search import SearchSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from semantic_kb.configs import get_settings
        settings = get_settings()
    """
    return Settings()
