"""ORM models."""

from semantic_kb.boundary.db.models.chunk_model import SemanticChunkModel

__all__ = ["SemanticChunkModel"]
