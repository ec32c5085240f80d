"""
Lightweight document metadata extraction.

Category from path conventions, title and keywords from the first
markdown heading.

Dependencies: semantic_kb.models.chunk
System role: Populates ChunkMetadata before chunking
"""

from pathlib import PurePath

from semantic_kb.models.chunk import ChunkMetadata, DocumentCategory

HEADING_SCAN_LINES = 10
MAX_KEYWORDS = 5
MIN_KEYWORD_LENGTH = 4


def detect_category(path: str | PurePath) -> DocumentCategory | None:
    """Guess the Diataxis category from directory and file names."""
    lowered = str(path).lower()
    if "tutorial" in lowered:
        return DocumentCategory.TUTORIAL
    if "howto" in lowered or "how-to" in lowered or "how_to" in lowered:
        return DocumentCategory.HOW_TO
    if "reference" in lowered or "api" in lowered:
        return DocumentCategory.REFERENCE
    if "explanation" in lowered or "concept" in lowered:
        return DocumentCategory.EXPLANATION
    return None


def _first_heading(content: str) -> str | None:
    for line in content.splitlines()[:HEADING_SCAN_LINES]:
        if line.startswith("#"):
            heading = line.lstrip("#").strip()
            return heading or None
    return None


def extract_title(content: str) -> str | None:
    """Text of the first markdown heading within the opening lines."""
    return _first_heading(content)


def extract_keywords(content: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Lowercase words longer than three characters from the first heading."""
    heading = _first_heading(content)
    if not heading:
        return []
    words = (w.strip(".,:;!?()[]`'\"").lower() for w in heading.split())
    keywords = list(dict.fromkeys(w for w in words if len(w) >= MIN_KEYWORD_LENGTH))
    return keywords[:limit]


def build_metadata(source_file: str, content: str, file_hash: str | None = None) -> ChunkMetadata:
    """Document-level metadata shared by all of a document's chunks."""
    return ChunkMetadata(
        source_file=source_file,
        title=extract_title(content),
        category=detect_category(source_file),
        keywords=extract_keywords(content),
        word_count=len(content.split()),
        char_count=len(content),
        file_hash=file_hash,
    )
