"""
Search ranking and pagination.

Pure functions over already-scored candidates: validation of search
parameters, filtering, deterministic ordering, and offset or cursor
pagination. The search service supplies scored candidates.

Dependencies: semantic_kb.core.search.pagination, semantic_kb.core.exceptions
System role: Ranking stage of the query path
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence

from semantic_kb.core.exceptions import InvalidCursorError, InvalidSearchConfigError
from semantic_kb.core.search.pagination import PaginationCursor

MAX_RESULTS_LIMIT = 100


@dataclass
class SearchConfig:
    """
    Search parameters.

    Offset and cursor pagination are mutually exclusive; a cursor is the
    ``next_cursor`` or ``prev_cursor`` token of a previous page.
    """

    max_results: int = 10
    min_similarity: float = 0.0
    category_filter: list[str] | None = None
    offset: int = 0
    cursor: str | None = None
    max_similarity: float | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    tags: list[str] | None = None

    def validate(self) -> None:
        """
        Check parameter ranges.

        Raises:
            InvalidSearchConfigError: Out-of-range or conflicting parameters
        """
        if not 1 <= self.max_results <= MAX_RESULTS_LIMIT:
            raise InvalidSearchConfigError(
                f"max_results must be between 1 and {MAX_RESULTS_LIMIT}",
                field="max_results",
            )
        if not 0.0 <= self.min_similarity <= 1.0:
            raise InvalidSearchConfigError(
                "min_similarity must be between 0.0 and 1.0",
                field="min_similarity",
            )
        if self.max_similarity is not None:
            if not 0.0 <= self.max_similarity <= 1.0:
                raise InvalidSearchConfigError(
                    "max_similarity must be between 0.0 and 1.0",
                    field="max_similarity",
                )
            if self.max_similarity < self.min_similarity:
                raise InvalidSearchConfigError(
                    "min_similarity must be <= max_similarity",
                    field="max_similarity",
                )
        if self.offset < 0:
            raise InvalidSearchConfigError("offset must be >= 0", field="offset")
        if self.cursor and self.offset:
            raise InvalidSearchConfigError(
                "offset and cursor cannot be combined",
                field="cursor",
            )
        if self.date_from and self.date_to and _as_utc(self.date_from) > _as_utc(self.date_to):
            raise InvalidSearchConfigError(
                "date_from must be before date_to",
                field="date_from",
            )


@dataclass
class SearchResult:
    """One ranked chunk with the fields needed for presentation."""

    chunk_id: str
    similarity: float
    source_file: str
    content: str
    sentence_range: tuple[int, int]
    avg_similarity: float
    chunk_index: int = 0
    title: str | None = None
    category: str | None = None
    keywords: list[str] = field(default_factory=list)
    created_at: datetime | None = None


@dataclass
class SearchPage:
    """One page of ranked results."""

    results: list[SearchResult]
    total: int
    limit: int
    offset: int | None = None
    has_more: bool = False
    next_cursor: str | None = None
    prev_cursor: str | None = None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def sort_key(result: SearchResult) -> tuple[float, str]:
    """Descending similarity, ties broken by ascending chunk id."""
    return (-result.similarity, result.chunk_id)


def apply_filters(results: Sequence[SearchResult], config: SearchConfig) -> list[SearchResult]:
    """
    Keep results that satisfy the similarity, date and tag filters.

    Category filtering happens when candidates are loaded; it is applied
    here as well so in-memory callers get the same behaviour.
    """
    categories = set(config.category_filter or [])
    tags = {t.lower() for t in config.tags or []}
    date_from = _as_utc(config.date_from) if config.date_from else None
    date_to = _as_utc(config.date_to) if config.date_to else None

    kept = []
    for result in results:
        if result.similarity < config.min_similarity:
            continue
        if config.max_similarity is not None and result.similarity > config.max_similarity:
            continue
        if categories and result.category not in categories:
            continue
        if date_from or date_to:
            if result.created_at is None:
                continue
            created = _as_utc(result.created_at)
            if date_from and created < date_from:
                continue
            if date_to and created > date_to:
                continue
        if tags and not tags.intersection(k.lower() for k in result.keywords):
            continue
        kept.append(result)
    return kept


def rank(results: Sequence[SearchResult], config: SearchConfig) -> list[SearchResult]:
    """Filter then order results deterministically."""
    return sorted(apply_filters(results, config), key=sort_key)


def _cursor_for(result: SearchResult, forward: bool) -> str:
    return PaginationCursor(
        last_id=result.chunk_id,
        last_similarity=result.similarity,
        last_timestamp=result.created_at,
        forward=forward,
    ).encode()


def _cursor_bounds(ranked: Sequence[SearchResult], cursor: PaginationCursor) -> tuple[int, int]:
    """
    Locate the cursor anchor in the ranked list.

    Returns:
        tuple[int, int]: (results strictly before the anchor,
            index of the first result strictly after it)

    Raises:
        InvalidCursorError: Cursor without a score names an unknown id
    """
    if cursor.last_similarity is not None:
        anchor = (-cursor.last_similarity, cursor.last_id)
        before = sum(1 for r in ranked if sort_key(r) < anchor)
        after = before + sum(1 for r in ranked if sort_key(r) == anchor)
        return before, after

    for index, result in enumerate(ranked):
        if result.chunk_id == cursor.last_id:
            return index, index + 1
    raise InvalidCursorError("position no longer exists")


def paginate(ranked: Sequence[SearchResult], config: SearchConfig) -> SearchPage:
    """
    Slice ranked results into one page.

    Offset mode returns ``ranked[offset:offset + limit]``. Cursor mode
    resumes strictly after (or, for a backward cursor, strictly before)
    the encoded position.
    """
    limit = config.max_results
    total = len(ranked)

    if config.cursor:
        cursor = PaginationCursor.decode(config.cursor)
        before, after = _cursor_bounds(ranked, cursor)
        if cursor.forward:
            start, end = after, min(after + limit, total)
            has_more = end < total
        else:
            start, end = max(before - limit, 0), before
            has_more = start > 0
        page = list(ranked[start:end])
        return SearchPage(
            results=page,
            total=total,
            limit=limit,
            has_more=has_more,
            next_cursor=_cursor_for(page[-1], True) if page and end < total else None,
            prev_cursor=_cursor_for(page[0], False) if page and start > 0 else None,
        )

    start = min(config.offset, total)
    end = min(start + limit, total)
    page = list(ranked[start:end])
    return SearchPage(
        results=page,
        total=total,
        limit=limit,
        offset=config.offset,
        has_more=end < total,
        next_cursor=_cursor_for(page[-1], True) if page and end < total else None,
        prev_cursor=_cursor_for(page[0], False) if page and start > 0 else None,
    )
