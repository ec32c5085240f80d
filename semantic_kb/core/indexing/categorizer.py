"""
Document change classification.

Compares freshly computed content hashes with the hashes on record and
sorts every path into unchanged, new, modified or removed. Classification
is pure; nothing here touches the store.

Dependencies: pathlib (stdlib), semantic_kb.core.indexing.hashing
System role: Decides what the incremental indexer must do per document
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Mapping

from semantic_kb.core.indexing.hashing import calculate_file_hash

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".md", ".markdown")


class FileStatus(str, Enum):
    """Per-document classification for one indexing run."""

    UNCHANGED = "unchanged"
    NEW = "new"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass
class CategorizedFiles:
    """Paths grouped by FileStatus, each list sorted."""

    unchanged: list[str] = field(default_factory=list)
    new: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    def total_files(self) -> int:
        """Documents seen on disk or on record."""
        return len(self.unchanged) + len(self.new) + len(self.modified) + len(self.removed)

    def files_to_process(self) -> int:
        """Documents that need a store write."""
        return len(self.new) + len(self.modified) + len(self.removed)

    def log_summary(self) -> None:
        logger.info(
            f"{__name__}:log_summary - {len(self.unchanged)} unchanged, {len(self.new)} new, "
            f"{len(self.modified)} modified, {len(self.removed)} removed"
        )


def classify(current_hash: str | None, existing_hash: str | None) -> FileStatus:
    """Classify one document from its current and recorded hashes."""
    if current_hash is None:
        return FileStatus.REMOVED
    if existing_hash is None:
        return FileStatus.NEW
    if current_hash == existing_hash:
        return FileStatus.UNCHANGED
    return FileStatus.MODIFIED


def classify_documents(
    current: Mapping[str, str],
    existing: Mapping[str, str],
) -> CategorizedFiles:
    """
    Classify every document known on disk or in the store.

    Args:
        current: path -> hash for documents discovered now
        existing: path -> hash recorded in the store

    Returns:
        CategorizedFiles: Sorted path lists per status
    """
    result = CategorizedFiles()
    buckets = {
        FileStatus.UNCHANGED: result.unchanged,
        FileStatus.NEW: result.new,
        FileStatus.MODIFIED: result.modified,
        FileStatus.REMOVED: result.removed,
    }
    for path in sorted(set(current) | set(existing)):
        status = classify(current.get(path), existing.get(path))
        buckets[status].append(path)
    return result


def discover_files(
    paths: Iterable[str | Path],
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> list[Path]:
    """
    Expand files and directories into a sorted list of matching files.

    Explicit file paths are kept regardless of suffix; directories are
    walked recursively for the given suffixes.

    Raises:
        FileNotFoundError: A path does not exist
    """
    suffixes = {ext.lower() for ext in extensions}
    found: set[Path] = set()
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            found.add(path)
        elif path.is_dir():
            found.update(
                p for p in path.rglob("*")
                if p.is_file() and p.suffix.lower() in suffixes
            )
        else:
            raise FileNotFoundError(f"Path does not exist: {path}")
    return sorted(found)


def discover_files_with_hashes(
    paths: Iterable[str | Path],
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> dict[str, str]:
    """
    Discover files and hash their contents.

    Returns:
        dict[str, str]: path -> SHA-256 hex digest
    """
    hashes = {str(p): calculate_file_hash(p) for p in discover_files(paths, extensions)}
    logger.debug(
        f"{__name__}:discover_files_with_hashes - Hashed {len(hashes)} files"
    )
    return hashes
