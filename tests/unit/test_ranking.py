"""
Test suite for search ranking, filtering and pagination.

Tests parameter validation, similarity/date/tag filters, deterministic
ordering, offset pagination and forward/backward cursor pagination.

System role: Verification of the ranking stage of the query path
"""

import base64
from datetime import datetime, timezone

import pytest

from semantic_kb.core.exceptions import InvalidCursorError, InvalidSearchConfigError
from semantic_kb.core.search.pagination import PaginationCursor
from semantic_kb.core.search.ranking import (
    SearchConfig,
    SearchResult,
    apply_filters,
    paginate,
    rank,
)


def make_result(
    chunk_id: str,
    similarity: float,
    category: str | None = None,
    keywords: list[str] | None = None,
    created_at: datetime | None = None,
) -> SearchResult:
    return SearchResult(
        chunk_id=chunk_id,
        similarity=similarity,
        source_file=f"docs/{chunk_id}.md",
        content=f"content of {chunk_id}",
        sentence_range=(0, 1),
        avg_similarity=0.8,
        category=category,
        keywords=keywords or [],
        created_at=created_at,
    )


@pytest.fixture
def ranked() -> list[SearchResult]:
    results = [make_result(f"id-{i}", 0.9 - i * 0.1) for i in range(5)]
    return rank(results, SearchConfig())


class TestSearchConfigValidation:
    """Test suite for SearchConfig.validate()."""

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"max_results": 0}, "max_results must be between 1 and 100"),
            ({"max_results": 101}, "max_results must be between 1 and 100"),
            ({"min_similarity": 1.5}, "min_similarity must be between 0.0 and 1.0"),
            ({"min_similarity": -0.1}, "min_similarity must be between 0.0 and 1.0"),
            ({"offset": -1}, "offset must be >= 0"),
            ({"offset": 5, "cursor": "abc"}, "offset and cursor cannot be combined"),
            ({"min_similarity": 0.8, "max_similarity": 0.5}, "min_similarity must be <= max_similarity"),
        ],
    )
    def test_invalid_parameters_should_raise(self, kwargs: dict, message: str) -> None:
        with pytest.raises(InvalidSearchConfigError) as exc_info:
            SearchConfig(**kwargs).validate()

        assert exc_info.value.message == message

    def test_defaults_should_be_valid(self) -> None:
        SearchConfig().validate()


class TestRanking:
    """Test suite for rank() and apply_filters()."""

    def test_min_similarity_should_be_inclusive_lower_bound(self) -> None:
        # Arrange
        results = [make_result("a", 0.95), make_result("b", 0.89)]

        # Act
        kept = rank(results, SearchConfig(min_similarity=0.9))

        # Assert
        assert [r.chunk_id for r in kept] == ["a"]

    def test_should_order_by_similarity_then_id(self) -> None:
        results = [make_result("b", 0.5), make_result("c", 0.9), make_result("a", 0.5)]

        ordered = rank(results, SearchConfig())

        assert [r.chunk_id for r in ordered] == ["c", "a", "b"]

    def test_similarity_scores_should_be_non_increasing(self) -> None:
        results = [make_result(str(i), s) for i, s in enumerate([0.2, 0.7, 0.4, 0.9, 0.7])]

        ordered = rank(results, SearchConfig())

        scores = [r.similarity for r in ordered]
        assert scores == sorted(scores, reverse=True)

    def test_max_similarity_should_exclude_higher_scores(self) -> None:
        results = [make_result("a", 0.95), make_result("b", 0.6)]

        kept = apply_filters(results, SearchConfig(max_similarity=0.9))

        assert [r.chunk_id for r in kept] == ["b"]

    def test_category_filter_should_keep_matching_categories(self) -> None:
        results = [
            make_result("a", 0.9, category="how-to"),
            make_result("b", 0.8, category="reference"),
            make_result("c", 0.7),
        ]

        kept = apply_filters(results, SearchConfig(category_filter=["reference"]))

        assert [r.chunk_id for r in kept] == ["b"]

    def test_tag_filter_should_match_any_keyword_case_insensitively(self) -> None:
        results = [
            make_result("a", 0.9, keywords=["install", "setup"]),
            make_result("b", 0.8, keywords=["tuning"]),
        ]

        kept = apply_filters(results, SearchConfig(tags=["SETUP"]))

        assert [r.chunk_id for r in kept] == ["a"]

    def test_date_range_should_compare_naive_timestamps_as_utc(self) -> None:
        # Arrange
        results = [
            make_result("old", 0.9, created_at=datetime(2024, 1, 15)),
            make_result("new", 0.8, created_at=datetime(2024, 6, 1)),
            make_result("undated", 0.7),
        ]
        config = SearchConfig(date_from=datetime(2024, 3, 1, tzinfo=timezone.utc))

        # Act
        kept = apply_filters(results, config)

        # Assert
        assert [r.chunk_id for r in kept] == ["new"]


class TestOffsetPagination:
    """Test suite for offset-mode paginate()."""

    def test_should_slice_requested_page(self, ranked: list[SearchResult]) -> None:
        # Act
        page = paginate(ranked, SearchConfig(max_results=2, offset=2))

        # Assert
        assert [r.chunk_id for r in page.results] == ["id-2", "id-3"]
        assert page.total == 5
        assert page.offset == 2
        assert page.has_more is True
        assert page.next_cursor is not None
        assert page.prev_cursor is not None

    def test_last_page_should_not_have_more(self, ranked: list[SearchResult]) -> None:
        page = paginate(ranked, SearchConfig(max_results=2, offset=4))

        assert [r.chunk_id for r in page.results] == ["id-4"]
        assert page.has_more is False
        assert page.next_cursor is None

    def test_offset_past_end_should_return_empty_page(self, ranked: list[SearchResult]) -> None:
        page = paginate(ranked, SearchConfig(max_results=2, offset=50))

        assert page.results == []
        assert page.has_more is False


class TestCursorPagination:
    """Test suite for cursor-mode paginate()."""

    def test_forward_cursor_should_walk_all_pages(self, ranked: list[SearchResult]) -> None:
        # Arrange
        seen: list[str] = []
        config = SearchConfig(max_results=2)

        # Act
        while True:
            page = paginate(ranked, config)
            seen.extend(r.chunk_id for r in page.results)
            if not page.next_cursor:
                break
            config = SearchConfig(max_results=2, cursor=page.next_cursor)

        # Assert
        assert seen == [f"id-{i}" for i in range(5)]

    def test_backward_cursor_should_return_previous_page(self, ranked: list[SearchResult]) -> None:
        # Arrange
        first = paginate(ranked, SearchConfig(max_results=2))
        second = paginate(ranked, SearchConfig(max_results=2, cursor=first.next_cursor))

        # Act
        back = paginate(ranked, SearchConfig(max_results=2, cursor=second.prev_cursor))

        # Assert
        assert [r.chunk_id for r in second.results] == ["id-2", "id-3"]
        assert [r.chunk_id for r in back.results] == ["id-0", "id-1"]
        assert back.prev_cursor is None

    def test_cursor_should_survive_removal_of_anchor(self, ranked: list[SearchResult]) -> None:
        # Arrange
        first = paginate(ranked, SearchConfig(max_results=2))
        remaining = [r for r in ranked if r.chunk_id != "id-1"]

        # Act
        page = paginate(remaining, SearchConfig(max_results=2, cursor=first.next_cursor))

        # Assert
        assert [r.chunk_id for r in page.results] == ["id-2", "id-3"]

    def test_undecodable_cursor_should_raise(self, ranked: list[SearchResult]) -> None:
        with pytest.raises(InvalidCursorError):
            paginate(ranked, SearchConfig(cursor="%%%not-a-cursor%%%"))

    def test_id_only_cursor_with_unknown_id_should_raise(self, ranked: list[SearchResult]) -> None:
        token = PaginationCursor(last_id="missing").encode()

        with pytest.raises(InvalidCursorError):
            paginate(ranked, SearchConfig(cursor=token))


class TestPaginationCursor:
    """Test suite for PaginationCursor encode/decode."""

    def test_decode_should_restore_encoded_cursor(self) -> None:
        cursor = PaginationCursor(
            last_id="chunk-7",
            last_similarity=0.73,
            last_timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            forward=False,
        )

        assert PaginationCursor.decode(cursor.encode()) == cursor

    def test_token_should_be_url_safe(self) -> None:
        token = PaginationCursor(last_id="a/b+c?", last_similarity=0.5).encode()

        assert "+" not in token and "/" not in token

    def test_empty_token_should_raise(self) -> None:
        with pytest.raises(InvalidCursorError):
            PaginationCursor.decode("  ")

    def test_valid_base64_of_non_cursor_json_should_raise(self) -> None:
        token = base64.urlsafe_b64encode(b'{"unexpected": true}').decode()

        with pytest.raises(InvalidCursorError):
            PaginationCursor.decode(token)
