"""
Content hashing for change detection.

SHA-256 hex digests identify a document version; comparing digests
decides whether a document needs re-indexing.

Dependencies: hashlib (stdlib)
System role: Change detection for the incremental indexer
"""

import hashlib
import re
from pathlib import Path

from semantic_kb.core.exceptions import ValidationError

HASH_LENGTH = 64
_HASH_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")
_READ_BLOCK = 64 * 1024


def calculate_content_hash(content: str) -> str:
    """SHA-256 hex digest of UTF-8 encoded text."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def calculate_file_hash(path: str | Path) -> str:
    """
    SHA-256 hex digest of a file's bytes, read in blocks.

    Raises:
        OSError: File cannot be read
    """
    digest = hashlib.sha256()
    with open(path, "rb") as handle:
        for block in iter(lambda: handle.read(_READ_BLOCK), b""):
            digest.update(block)
    return digest.hexdigest()


def verify_hash_format(value: str) -> None:
    """
    Check a digest is 64 hexadecimal characters.

    Raises:
        ValidationError: Wrong length or non-hex characters
    """
    if len(value) != HASH_LENGTH:
        raise ValidationError(
            f"Invalid hash length: expected {HASH_LENGTH}, got {len(value)}",
            field="file_hash",
        )
    if not _HASH_PATTERN.match(value):
        raise ValidationError("Hash contains non-hexadecimal characters", field="file_hash")
