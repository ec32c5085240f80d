"""
Semantic search service.

Embeds the query through the shared embedding cache, scores every
candidate chunk against it, then filters, ranks and paginates. Reads
only; it never writes chunk rows.

Steps:
1. Validate query and parameters
2. Query embedding via cache get-or-compute (provider on miss)
3. Load candidate rows (category pre-filter in SQL)
4. Cosine similarity per candidate
5. Filter, rank, paginate

Dependencies: sqlalchemy, semantic_kb.core.search, semantic_kb.boundary
System role: Query path orchestration
"""

import logging
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from semantic_kb.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from semantic_kb.boundary.db.embedding_codec import decode_embedding
from semantic_kb.boundary.db.models.chunk_model import SemanticChunkModel
from semantic_kb.boundary.embeddings.provider import EmbeddingProvider
from semantic_kb.core.exceptions import (
    EmbeddingGenerationError,
    EmptyQueryError,
    PersistenceError,
    SemanticKBException,
)
from semantic_kb.core.search.embedding_cache import EmbeddingCache
from semantic_kb.core.search.ranking import (
    SearchConfig,
    SearchPage,
    SearchResult,
    paginate,
    rank,
)
from semantic_kb.core.semantic.similarity import cosine_similarities

logger = logging.getLogger(__name__)


class SearchService:
    """
    Ranks stored chunks against a query.

    The cache and provider are injected; the service never constructs a
    concrete embedding backend.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        provider: EmbeddingProvider,
        cache: EmbeddingCache,
        crud: ChunkCRUD = chunk_crud,
    ) -> None:
        """
        Initialize search service.

        Args:
            session_factory: Async session factory bound to the chunk store
            provider: Embedding provider used on cache misses
            cache: Shared query embedding cache
            crud: Chunk CRUD implementation
        """
        self.session_factory = session_factory
        self.provider = provider
        self.cache = cache
        self.crud = crud

    async def search(self, query: str, config: SearchConfig | None = None) -> SearchPage:
        """
        Run a semantic search.

        Args:
            query: Free-text query
            config: Search parameters (defaults when None)

        Returns:
            SearchPage: Ranked page with pagination state

        Raises:
            EmptyQueryError: Blank query
            InvalidSearchConfigError: Parameters out of range
            InvalidCursorError: Undecodable cursor
            EmbeddingGenerationError: Provider failed
            PersistenceError: Candidate rows could not be read
            EmbeddingParseError: A stored embedding is malformed
            SimilarityCalculationError: Query and chunk dimensions differ
        """
        page, _ = await self.search_with_matches(query, config)
        return page

    async def search_with_matches(
        self,
        query: str,
        config: SearchConfig | None = None,
    ) -> tuple[SearchPage, list[SearchResult]]:
        """
        Run a search and also return every ranked match.

        Aggregations are computed over all matches, not just the page.

        Returns:
            tuple[SearchPage, list[SearchResult]]: (page, all ranked matches)
        """
        config = config or SearchConfig()
        if not query or not query.strip():
            raise EmptyQueryError()
        config.validate()

        query_vector = await self.embed_query(query)
        ranked = await self.ranked_results(query_vector, config)
        page = paginate(ranked, config)

        logger.info(
            f"{__name__}:search - {page.total} matches, returning {len(page.results)}",
            extra={"query": query[:100], "has_more": page.has_more},
        )
        return page, ranked

    async def ranked_results(
        self,
        query_vector: Sequence[float],
        config: SearchConfig,
    ) -> list[SearchResult]:
        """Score, filter and order every candidate for a query vector."""
        rows = await self._load_candidates(config.category_filter)
        embeddings = [decode_embedding(row.embedding, str(row.id)) for row in rows]
        scores = cosine_similarities(query_vector, embeddings)
        scored = [self._to_result(row, float(score)) for row, score in zip(rows, scores)]
        return rank(scored, config)

    async def embed_query(self, query: str) -> list[float]:
        """
        Query embedding through the cache.

        Raises:
            EmbeddingGenerationError: Provider failed on a miss
        """
        try:
            return await self.cache.get_or_compute(query, self.provider.embed)
        except SemanticKBException:
            raise
        except Exception as e:
            raise EmbeddingGenerationError(
                f"Failed to embed query: {e}",
                model=self.provider.model_name or None,
            ) from e

    async def _load_candidates(
        self,
        categories: Sequence[str] | None,
    ) -> Sequence[SemanticChunkModel]:
        try:
            async with self.session_factory() as session:
                return await self.crud.list_candidates(session, categories)
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to load search candidates",
                operation="list_candidates",
                details={"error": str(e)},
            ) from e

    @staticmethod
    def _to_result(row: SemanticChunkModel, similarity: float) -> SearchResult:
        return SearchResult(
            chunk_id=str(row.id),
            similarity=similarity,
            source_file=row.source_file,
            content=row.content,
            sentence_range=(row.sentence_start, row.sentence_end),
            avg_similarity=row.avg_similarity,
            chunk_index=row.chunk_index,
            title=row.title,
            category=row.category,
            keywords=list(row.keywords or []),
            created_at=row.created_at,
        )
