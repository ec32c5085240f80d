"""
Chunk domain models.

Represents a semantic chunk produced by the chunk assembler together with
its descriptive metadata.

Dependencies: pydantic
System role: Semantic chunk data structure
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class DocumentCategory(str, Enum):
    """Diataxis documentation category."""

    TUTORIAL = "tutorial"
    HOW_TO = "how-to"
    REFERENCE = "reference"
    EXPLANATION = "explanation"


class ChunkMetadata(BaseModel):
    """Descriptive metadata attached to every chunk of a document."""

    source_file: str = Field(description="Path of the owning document")
    title: str | None = Field(default=None, description="Document or section title")
    category: DocumentCategory | None = Field(default=None, description="Diataxis category")
    keywords: list[str] = Field(default_factory=list, description="Deduplicated keywords")
    word_count: int = Field(default=0, ge=0)
    char_count: int = Field(default=0, ge=0)
    file_hash: str | None = Field(default=None, description="SHA-256 of the source content")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("keywords")
    @classmethod
    def _dedupe_keywords(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(k for k in value if k))


class SemanticChunk(BaseModel):
    """A contiguous run of sentences treated as one retrieval unit."""

    content: str = Field(description="Concatenated sentence text")
    chunk_index: int = Field(ge=0, description="Position within the document")
    total_chunks: int = Field(gt=0, description="Chunks produced for the document in this pass")
    start_sentence: int = Field(ge=0, description="First sentence index (inclusive)")
    end_sentence: int = Field(ge=0, description="Last sentence index (inclusive)")
    avg_similarity: float = Field(description="Mean intra-chunk pairwise similarity")
    embedding: list[float] = Field(default_factory=list, description="Embedding of the final content")
    metadata: ChunkMetadata

    @model_validator(mode="after")
    def _check_ranges(self) -> "SemanticChunk":
        if self.start_sentence > self.end_sentence:
            raise ValueError("start_sentence must be <= end_sentence")
        if self.chunk_index >= self.total_chunks:
            raise ValueError("chunk_index must be < total_chunks")
        return self

    @property
    def sentence_count(self) -> int:
        """Number of sentences covered by this chunk."""
        return self.end_sentence - self.start_sentence + 1

    @property
    def sentence_range(self) -> tuple[int, int]:
        return (self.start_sentence, self.end_sentence)
