"""
Search result aggregations.

Counts by category, by similarity band and by creation month over a
ranked result set (all matches, not just the current page).

Dependencies: collections (stdlib)
System role: Facet counts for advanced search responses
"""

from collections import Counter
from typing import Sequence

from semantic_kb.core.search.ranking import SearchResult

UNCATEGORIZED = "uncategorized"

# Upper bound exclusive except for the top band; the bottom band also takes negatives.
SIMILARITY_BANDS: tuple[tuple[str, float, float], ...] = (
    ("0.8-1.0", 0.8, 1.0),
    ("0.6-0.8", 0.6, 0.8),
    ("0.4-0.6", 0.4, 0.6),
    ("0.0-0.4", -1.0, 0.4),
)


def count_by_category(results: Sequence[SearchResult]) -> dict[str, int]:
    counts = Counter(r.category or UNCATEGORIZED for r in results)
    return dict(sorted(counts.items()))


def count_by_similarity_range(results: Sequence[SearchResult]) -> dict[str, int]:
    counts = {label: 0 for label, _, _ in SIMILARITY_BANDS}
    for result in results:
        for label, low, high in SIMILARITY_BANDS:
            if low <= result.similarity < high or (high == 1.0 and result.similarity >= 1.0):
                counts[label] += 1
                break
    return counts


def count_by_date(results: Sequence[SearchResult]) -> dict[str, int]:
    """Counts keyed by YYYY-MM of creation."""
    counts = Counter(r.created_at.strftime("%Y-%m") for r in results if r.created_at)
    return dict(sorted(counts.items()))
