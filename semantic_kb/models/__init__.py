"""Pydantic domain and wire models."""

from semantic_kb.models.chunk import ChunkMetadata, DocumentCategory, SemanticChunk

__all__ = ["ChunkMetadata", "DocumentCategory", "SemanticChunk"]
