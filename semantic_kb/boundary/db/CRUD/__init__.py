"""
CRUD operations for database models.

Usage:
    from semantic_kb.boundary.db.CRUD import chunk_crud

    existing = await chunk_crud.query_existing_files(db)
"""

from semantic_kb.boundary.db.CRUD.base_crud import BaseCRUD
from semantic_kb.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud

__all__ = [
    "BaseCRUD",
    "ChunkCRUD",
    "chunk_crud",
]
