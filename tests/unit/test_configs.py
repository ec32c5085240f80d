"""
Test suite for settings modules.

Each settings class is constructed directly so the cached aggregate is
never polluted by environment changes made here.

System role: Verification of configuration loading
"""

import pytest
from pydantic import ValidationError

from semantic_kb.configs.cache import CacheSettings
from semantic_kb.configs.chunking import ChunkingSettings
from semantic_kb.configs.database import DatabaseSettings
from semantic_kb.configs.embedding import EmbeddingSettings
from semantic_kb.configs.settings import Settings


class TestDatabaseSettings:
    """Test suite for DatabaseSettings."""

    def test_default_url_should_target_asyncpg(self, monkeypatch) -> None:
        monkeypatch.delenv("SKB_DB_URL", raising=False)

        settings = DatabaseSettings(_env_file=None)

        assert settings.async_database_url.startswith("postgresql+asyncpg://")
        assert settings.is_sqlite is False

    def test_url_env_should_override_host_fields(self, monkeypatch) -> None:
        monkeypatch.setenv("SKB_DB_URL", "sqlite+aiosqlite:///./kb.db")

        settings = DatabaseSettings(_env_file=None)

        assert settings.async_database_url == "sqlite+aiosqlite:///./kb.db"
        assert settings.is_sqlite is True


class TestEmbeddingSettings:
    """Test suite for EmbeddingSettings."""

    def test_env_prefix_should_apply(self, monkeypatch) -> None:
        monkeypatch.setenv("OLLAMA_MODEL", "mxbai-embed-large")
        monkeypatch.setenv("OLLAMA_MAX_RETRIES", "2")

        settings = EmbeddingSettings(_env_file=None)

        assert settings.model == "mxbai-embed-large"
        assert settings.max_retries == 2

    def test_zero_retries_should_be_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EmbeddingSettings(_env_file=None, max_retries=0)


class TestCacheAndChunkingSettings:
    """Test suite for cache and chunking defaults."""

    def test_cache_defaults_should_match_engine_defaults(self) -> None:
        settings = CacheSettings(_env_file=None)

        assert settings.max_capacity == 1000
        assert settings.time_to_live_seconds == 3600.0
        assert settings.time_to_idle_seconds == 1800.0

    def test_chunking_overrides_should_default_to_none(self, monkeypatch) -> None:
        monkeypatch.delenv("SKB_CHUNKING_SIMILARITY_THRESHOLD", raising=False)

        settings = ChunkingSettings(_env_file=None)

        assert settings.similarity_threshold is None
        assert settings.threshold_policy == "min"


class TestLogLevel:
    """Test suite for the shared log_level field."""

    def test_log_level_should_be_normalised(self) -> None:
        settings = Settings(_env_file=None, log_level=" debug ")

        assert settings.log_level == "DEBUG"

    def test_unknown_log_level_should_be_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")
