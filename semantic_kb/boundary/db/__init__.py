"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(), init_db()
  - SemanticChunkModel: Chunk table
  - chunk_crud: CRUD singleton
  - encode_embedding(), decode_embedding(): Embedding column codec

Dependencies: sqlalchemy, semantic_kb.configs
System role: Database adapter providing persistent chunk storage
"""

from semantic_kb.boundary.db.base import Base, TimestampMixin, UUIDMixin
from semantic_kb.boundary.db.connection import (
    create_engine_from_settings,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
    init_db,
)
from semantic_kb.boundary.db.embedding_codec import decode_embedding, encode_embedding
from semantic_kb.boundary.db.models.chunk_model import SemanticChunkModel
from semantic_kb.boundary.db.CRUD import BaseCRUD, ChunkCRUD, chunk_crud

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "create_engine_from_settings",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    "init_db",
    "decode_embedding",
    "encode_embedding",
    "SemanticChunkModel",
    "BaseCRUD",
    "ChunkCRUD",
    "chunk_crud",
]
