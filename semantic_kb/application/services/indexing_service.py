"""
Incremental indexing service.

Owns every write to the chunk store. New documents are inserted, modified
documents have their chunk set replaced inside one transaction, removed
documents are deleted. Batches run with bounded concurrency and isolate
per-document failures.

Steps for a load run:
1. Discover files and hash their contents
2. Read recorded hashes from the store
3. Classify each document (unchanged, new, modified, removed)
4. Apply the loader mode (add, update, cleanup, force, dry run)

Dependencies: sqlalchemy, semantic_kb.core, semantic_kb.boundary.db
System role: Single writer of durable chunk state
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from semantic_kb.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from semantic_kb.configs.indexing import IndexingSettings
from semantic_kb.core.exceptions import PersistenceError
from semantic_kb.core.indexing.categorizer import (
    DEFAULT_EXTENSIONS,
    classify_documents,
    discover_files_with_hashes,
)
from semantic_kb.core.indexing.loader import LoadStats, LoaderConfig, RawDocument
from semantic_kb.core.indexing.metadata import build_metadata
from semantic_kb.core.semantic.chunker import SemanticChunker
from semantic_kb.models.chunk import SemanticChunk
from semantic_kb.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of one batch of index operations."""

    chunks_written: int = 0
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def failure_count(self) -> int:
        return len(self.failed)


class IndexingService:
    """
    Incremental indexer over the chunk store.

    Each public write opens its own session and transaction, so one
    document's failure never affects another's.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        chunker: SemanticChunker,
        max_workers: int = 4,
        progress_interval: int = 10,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        crud: ChunkCRUD = chunk_crud,
    ) -> None:
        """
        Initialize indexing service.

        Args:
            session_factory: Async session factory bound to the chunk store
            chunker: Chunk assembler (owns the embedding provider)
            max_workers: Documents processed concurrently in a batch
            progress_interval: Log progress every N finished documents
            extensions: File suffixes picked up when walking directories
            crud: Chunk CRUD implementation
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.session_factory = session_factory
        self.chunker = chunker
        self.max_workers = max_workers
        self.progress_interval = max(progress_interval, 1)
        self.extensions = tuple(extensions)
        self.crud = crud

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker,
        chunker: SemanticChunker,
        settings: IndexingSettings,
    ) -> "IndexingService":
        return cls(
            session_factory,
            chunker,
            max_workers=settings.max_workers,
            progress_interval=settings.progress_interval,
            extensions=settings.file_extensions,
        )

    async def generate_chunks(self, document: RawDocument) -> list[SemanticChunk]:
        """Chunk a document with metadata derived from its path and content."""
        metadata = build_metadata(document.path, document.content, document.content_hash)
        return await self.chunker.chunk_document(document.content, metadata)

    async def index_document(self, document: RawDocument) -> int:
        """
        Insert chunks for a document not yet in the store.

        Args:
            document: New document

        Returns:
            int: Chunks inserted

        Raises:
            EmptyDocumentError: Document produced no sentences
            EmbeddingGenerationError: Provider failed
            PersistenceError: Insert failed (nothing committed)
        """
        chunks = await self.generate_chunks(document)
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await self.crud.insert_chunks(
                        session, document.path, document.content_hash, chunks
                    )
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to insert chunks for {document.path}",
                operation="index_document",
                details={"source_file": document.path, "error": str(e)},
            ) from e

        logger.info(
            f"{__name__}:index_document - Inserted {len(chunks)} chunks",
            extra={"source_file": document.path},
        )
        return len(chunks)

    async def reindex_document(self, document: RawDocument) -> int:
        """
        Replace a document's chunk set atomically.

        New chunks are generated first; the delete of the old set and the
        insert of the new one then share a single transaction. Any failure
        leaves the previous chunk set untouched.

        Args:
            document: Modified document

        Returns:
            int: Chunks now stored for the document

        Raises:
            EmptyDocumentError: Document produced no sentences
            EmbeddingGenerationError: Provider failed
            PersistenceError: Transaction failed and was rolled back
        """
        chunks = await self.generate_chunks(document)
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    deleted = await self.crud.delete_for_file(session, document.path)
                    await self.crud.insert_chunks(
                        session, document.path, document.content_hash, chunks
                    )
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to replace chunks for {document.path}",
                operation="reindex_document",
                details={"source_file": document.path, "error": str(e)},
            ) from e

        logger.info(
            f"{__name__}:reindex_document - Replaced {deleted} chunks with {len(chunks)}",
            extra={"source_file": document.path},
        )
        return len(chunks)

    async def remove_document(self, path: str) -> int:
        """
        Delete every chunk of a document.

        Returns:
            int: Chunks deleted; 0 when the path had none

        Raises:
            PersistenceError: Delete failed
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    deleted = await self.crud.delete_for_file(session, path)
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to delete chunks for {path}",
                operation="remove_document",
                details={"source_file": path, "error": str(e)},
            ) from e

        logger.info(
            f"{__name__}:remove_document - Deleted {deleted} chunks",
            extra={"source_file": path},
        )
        return deleted

    async def cleanup_deleted_files(self, paths: Sequence[str]) -> int:
        """Delete chunks of several removed documents in one transaction."""
        if not paths:
            return 0
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    return await self.crud.delete_for_files(session, paths)
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to clean up {len(paths)} deleted files",
                operation="cleanup_deleted_files",
                details={"error": str(e)},
            ) from e

    async def existing_hashes(self) -> dict[str, str]:
        """source_file -> file_hash for everything in the store."""
        try:
            async with self.session_factory() as session:
                return await self.crud.query_existing_files(session)
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to query indexed files",
                operation="query_existing_files",
                details={"error": str(e)},
            ) from e

    async def index_batch(
        self,
        documents: Sequence[RawDocument | str | Path],
        replace: bool = False,
    ) -> BatchResult:
        """
        Index many documents with at most ``max_workers`` in flight.

        Paths are read inside the worker so unreadable files fail in
        isolation like any other document.

        Args:
            documents: Documents or file paths
            replace: Use atomic replacement (modified documents) instead of insert

        Returns:
            BatchResult: Chunks written, successes and per-path failures
        """
        result = BatchResult()
        if not documents:
            return result

        semaphore = asyncio.Semaphore(self.max_workers)
        total = len(documents)
        finished = 0
        operation = self.reindex_document if replace else self.index_document

        async def _worker(item: RawDocument | str | Path) -> None:
            nonlocal finished
            path = item.path if isinstance(item, RawDocument) else str(item)
            async with semaphore:
                try:
                    document = item if isinstance(item, RawDocument) else RawDocument.from_file(item)
                    written = await operation(document)
                except Exception as e:
                    log_exception_with_context(
                        logger,
                        f"{__name__}:index_batch - Document failed",
                        e,
                        source_file=path,
                    )
                    result.failed[path] = str(e)
                else:
                    result.chunks_written += written
                    result.succeeded.append(path)
                finally:
                    finished += 1
                    if finished % self.progress_interval == 0 or finished == total:
                        logger.info(
                            f"{__name__}:index_batch - Progress {finished}/{total} "
                            f"({result.failure_count} failed)"
                        )

        await asyncio.gather(*(_worker(item) for item in documents))
        result.succeeded.sort()
        return result

    async def load(self, paths: Sequence[str | Path], config: LoaderConfig) -> LoadStats:
        """
        Bring the store in line with the documents under ``paths``.

        Args:
            paths: Files or directories to index
            config: Loader mode flags

        Returns:
            LoadStats: Counters for the run

        Raises:
            InvalidConfigurationError: Conflicting loader flags
            FileNotFoundError: A path does not exist
            PersistenceError: Store could not be queried
        """
        config.validate()
        started = time.perf_counter()
        stats = LoadStats()

        logger.info(f"{__name__}:load - Starting incremental load ({config.mode_description()})")
        current = await asyncio.to_thread(discover_files_with_hashes, paths, self.extensions)
        existing = await self.existing_hashes()
        categorized = classify_documents(current, existing)
        categorized.log_summary()

        if config.force:
            to_add = [p for p in sorted(current) if p not in existing]
            to_replace = [p for p in sorted(current) if p in existing]
        else:
            to_add = categorized.new
            to_replace = categorized.modified if config.update else []
            stats.files_skipped = len(categorized.unchanged)
            if categorized.modified and not config.update:
                logger.warning(
                    f"{__name__}:load - Skipping {len(categorized.modified)} modified files "
                    "(use --update to process them)"
                )
                stats.files_skipped += len(categorized.modified)
        to_remove = categorized.removed if config.cleanup else []
        if categorized.removed and not config.cleanup:
            logger.warning(
                f"{__name__}:load - Skipping {len(categorized.removed)} deleted files "
                "(use --cleanup to remove them)"
            )

        if config.dry_run:
            stats.files_added = len(to_add)
            stats.files_updated = len(to_replace)
            stats.files_deleted = len(to_remove)
            logger.info(f"{__name__}:load - Dry run: no changes written")
        else:
            added = await self.index_batch(to_add)
            stats.files_added = len(added.succeeded)
            stats.chunks_inserted += added.chunks_written

            replaced = await self.index_batch(to_replace, replace=True)
            stats.files_updated = len(replaced.succeeded)
            stats.chunks_inserted += replaced.chunks_written

            for path, error in {**added.failed, **replaced.failed}.items():
                stats.files_failed += 1
                stats.failures[path] = error

            if to_remove:
                stats.chunks_deleted = await self.cleanup_deleted_files(to_remove)
                stats.files_deleted = len(to_remove)

        stats.duration_secs = time.perf_counter() - started
        stats.log_summary(logger)
        return stats
