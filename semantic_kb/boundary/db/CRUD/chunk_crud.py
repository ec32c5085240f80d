"""
Semantic chunk CRUD operations.

Per-document chunk queries used by the incremental indexer (hash lookup,
bulk delete, bulk insert) and by the search engine (candidate loading).

Dependencies: sqlalchemy, semantic_kb.boundary.db.models.chunk_model
System role: Chunk persistence operations
"""

from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from semantic_kb.boundary.db.CRUD.base_crud import BaseCRUD
from semantic_kb.boundary.db.embedding_codec import encode_embedding
from semantic_kb.boundary.db.models.chunk_model import SemanticChunkModel
from semantic_kb.models.chunk import SemanticChunk


class ChunkCRUD(BaseCRUD[SemanticChunkModel]):
    """
    CRUD operations for SemanticChunkModel.

    Extends BaseCRUD with source-file scoped queries. Nothing here
    commits; the indexer wraps each document's delete and insert in
    one transaction.
    """

    def __init__(self) -> None:
        """Initialize ChunkCRUD with SemanticChunkModel."""
        super().__init__(SemanticChunkModel)

    async def query_existing_files(self, session: AsyncSession) -> dict[str, str]:
        """
        Map every indexed source file to its stored content hash.

        Returns:
            dict[str, str]: source_file -> file_hash
        """
        stmt = select(SemanticChunkModel.source_file, SemanticChunkModel.file_hash).distinct()
        result = await session.execute(stmt)
        return {source_file: file_hash for source_file, file_hash in result.all()}

    async def get_by_source_file(
        self,
        session: AsyncSession,
        source_file: str,
    ) -> Sequence[SemanticChunkModel]:
        """
        Retrieve a document's chunks ordered by chunk_index.

        Args:
            session: Async database session
            source_file: Document path

        Returns:
            Sequence of chunk rows
        """
        return await self.list_where(
            session,
            SemanticChunkModel.source_file == source_file,
            order_by=[SemanticChunkModel.chunk_index],
        )

    async def count_for_file(self, session: AsyncSession, source_file: str) -> int:
        """Number of chunks stored for a document."""
        return await self.count(session, SemanticChunkModel.source_file == source_file)

    async def delete_for_file(self, session: AsyncSession, source_file: str) -> int:
        """
        Delete every chunk of a document.

        Returns:
            int: Rows deleted (0 when the document had none)
        """
        return await self.delete_where(session, SemanticChunkModel.source_file == source_file)

    async def delete_for_files(
        self,
        session: AsyncSession,
        source_files: Iterable[str],
    ) -> int:
        """Delete every chunk of several documents. Returns rows deleted."""
        paths = list(source_files)
        if not paths:
            return 0
        return await self.delete_where(session, SemanticChunkModel.source_file.in_(paths))

    async def insert_chunks(
        self,
        session: AsyncSession,
        source_file: str,
        file_hash: str,
        chunks: Sequence[SemanticChunk],
    ) -> list[SemanticChunkModel]:
        """
        Insert a document's chunks tagged with one content hash.

        Args:
            session: Async database session
            source_file: Document path stored on every row
            file_hash: Content hash stored on every row
            chunks: Chunks from the assembler

        Returns:
            list[SemanticChunkModel]: Inserted rows
        """
        rows = [
            {
                "source_file": source_file,
                "file_hash": file_hash,
                "chunk_index": chunk.chunk_index,
                "total_chunks": chunk.total_chunks,
                "sentence_start": chunk.start_sentence,
                "sentence_end": chunk.end_sentence,
                "content": chunk.content,
                "embedding": encode_embedding(chunk.embedding),
                "avg_similarity": chunk.avg_similarity,
                "title": chunk.metadata.title,
                "category": chunk.metadata.category.value if chunk.metadata.category else None,
                "keywords": list(chunk.metadata.keywords),
                "word_count": chunk.metadata.word_count,
                "char_count": chunk.metadata.char_count,
            }
            for chunk in chunks
        ]
        return await self.create_many(session, rows)

    async def list_candidates(
        self,
        session: AsyncSession,
        categories: Sequence[str] | None = None,
    ) -> Sequence[SemanticChunkModel]:
        """
        Load chunk rows eligible for similarity scoring.

        Args:
            session: Async database session
            categories: Restrict to these categories when given

        Returns:
            Sequence of chunk rows
        """
        if categories:
            return await self.list_where(
                session, SemanticChunkModel.category.in_(list(categories))
            )
        return await self.list_where(session)


chunk_crud = ChunkCRUD()
