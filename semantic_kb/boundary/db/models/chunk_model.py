"""
Semantic chunk ORM model.

One row per chunk of an indexed document. All rows for a source file
share one file_hash and total_chunks; the set is replaced as a whole
when the document changes.

Dependencies: sqlalchemy, semantic_kb.boundary.db.base
System role: Persistent chunk storage for semantic search
"""

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Float,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from semantic_kb.boundary.db.base import Base, TimestampMixin, UUIDMixin


class SemanticChunkModel(Base, UUIDMixin, TimestampMixin):
    """
    Semantic chunk ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        source_file: Path of the owning document
        file_hash: SHA-256 hex digest of the document content at index time
        chunk_index: Position of this chunk within the document (0-based)
        total_chunks: Number of chunks stored for the document
        sentence_start: First sentence index covered (inclusive)
        sentence_end: Last sentence index covered (inclusive)
        content: Chunk text
        embedding: Little-endian float32 vector of the chunk content
        avg_similarity: Mean pairwise similarity of the chunk's sentences
        title: Document title, when known
        category: Diataxis category, when known
        keywords: Keyword list
        word_count: Words in the chunk
        char_count: Characters in the chunk
        created_at: Row creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)

    Constraints:
        (source_file, chunk_index): UNIQUE
        chunk_index >= 0, total_chunks > 0, chunk_index < total_chunks
        sentence_start <= sentence_end
    """

    __tablename__ = "semantic_chunks"
    __table_args__ = (
        UniqueConstraint("source_file", "chunk_index", name="uq_semantic_chunks_file_index"),
        CheckConstraint("chunk_index >= 0", name="ck_semantic_chunks_index_nonnegative"),
        CheckConstraint("total_chunks > 0", name="ck_semantic_chunks_total_positive"),
        CheckConstraint("chunk_index < total_chunks", name="ck_semantic_chunks_index_bound"),
        CheckConstraint("sentence_start <= sentence_end", name="ck_semantic_chunks_sentence_range"),
        Index("ix_semantic_chunks_source_file", "source_file"),
        Index("ix_semantic_chunks_file_hash", "source_file", "file_hash"),
        Index("ix_semantic_chunks_category", "category"),
        Index("ix_semantic_chunks_created_at", "created_at"),
    )

    source_file: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    total_chunks: Mapped[int] = mapped_column(Integer, nullable=False)
    sentence_start: Mapped[int] = mapped_column(Integer, nullable=False)
    sentence_end: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    avg_similarity: Mapped[float] = mapped_column(Float, nullable=False)
    title: Mapped[str | None] = mapped_column(String(512), nullable=True)
    category: Mapped[str | None] = mapped_column(String(32), nullable=True)
    keywords: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    word_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    char_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<SemanticChunkModel(source_file={self.source_file!r}, "
            f"chunk_index={self.chunk_index}/{self.total_chunks})>"
        )
