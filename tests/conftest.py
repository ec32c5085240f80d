"""
Shared test fixtures and configuration for entire test suite.

Provides: SQLite async engines and sessions, embedding provider doubles,
chunker and service instances, temp documentation trees
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from semantic_kb.application.services.indexing_service import IndexingService
from semantic_kb.application.services.search_service import SearchService
from semantic_kb.boundary.db.base import Base
from semantic_kb.boundary.db.models import chunk_model  # noqa: F401
from semantic_kb.core.search.embedding_cache import EmbeddingCache
from semantic_kb.core.semantic.chunker import SemanticChunker
from semantic_kb.core.semantic.config import ChunkerConfig
from tests.fakes import OTHER_DOC, SAMPLE_DOC, HashingEmbeddingProvider


@pytest.fixture
async def test_async_db():
    """
    Create in-memory SQLite async database for testing.

    Yields:
        AsyncSession: Test database session with cleanup
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest.fixture
async def session_factory(tmp_path: Path):
    """
    File-backed SQLite session factory.

    Each session gets its own connection, so concurrent index workers and
    rollbacks behave as they do against a server database.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'chunks.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def provider() -> HashingEmbeddingProvider:
    """Deterministic bag-of-words embedding provider."""
    return HashingEmbeddingProvider()


@pytest.fixture
def chunker_config() -> ChunkerConfig:
    """Chunker settings that keep small test documents in few chunks."""
    return ChunkerConfig(min_chunk_sentences=1, max_chunk_sentences=10)


@pytest.fixture
def chunker(chunker_config: ChunkerConfig, provider: HashingEmbeddingProvider) -> SemanticChunker:
    return SemanticChunker(chunker_config, provider)


@pytest.fixture
def indexing_service(session_factory, chunker: SemanticChunker) -> IndexingService:
    return IndexingService(session_factory, chunker, max_workers=2, progress_interval=1)


@pytest.fixture
def embedding_cache() -> EmbeddingCache:
    return EmbeddingCache(max_capacity=100, time_to_live=3600, time_to_idle=1800)


@pytest.fixture
def search_service(
    session_factory,
    provider: HashingEmbeddingProvider,
    embedding_cache: EmbeddingCache,
) -> SearchService:
    return SearchService(session_factory, provider, embedding_cache)


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """Documentation tree with one tutorial and one reference page."""
    root = tmp_path / "docs"
    (root / "tutorials").mkdir(parents=True)
    (root / "reference").mkdir(parents=True)
    (root / "tutorials" / "widgets.md").write_text(SAMPLE_DOC)
    (root / "reference" / "database.md").write_text(OTHER_DOC)
    (root / "notes.txt").write_text("Not picked up by the loader at all.")
    return root
