"""Incremental indexing: hashing, change classification, metadata and loader types."""

from semantic_kb.core.indexing.categorizer import (
    CategorizedFiles,
    FileStatus,
    classify,
    classify_documents,
    discover_files,
    discover_files_with_hashes,
)
from semantic_kb.core.indexing.hashing import (
    calculate_content_hash,
    calculate_file_hash,
    verify_hash_format,
)
from semantic_kb.core.indexing.loader import LoaderConfig, LoadStats, RawDocument
from semantic_kb.core.indexing.metadata import build_metadata

__all__ = [
    "CategorizedFiles",
    "FileStatus",
    "LoadStats",
    "LoaderConfig",
    "RawDocument",
    "build_metadata",
    "calculate_content_hash",
    "calculate_file_hash",
    "classify",
    "classify_documents",
    "discover_files",
    "discover_files_with_hashes",
    "verify_hash_format",
]
