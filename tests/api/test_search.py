from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from semantic_kb.api.deps import get_search_service
from semantic_kb.configs import get_settings
from semantic_kb.core.exceptions import (
    EmbeddingGenerationError,
    EmptyQueryError,
    InvalidCursorError,
    PersistenceError,
)
from semantic_kb.core.search.ranking import SearchPage, SearchResult
from semantic_kb.main import create_app

CREATED = datetime(2024, 5, 17, tzinfo=timezone.utc)


def _result(chunk_id: str, similarity: float, category: str | None = "reference") -> SearchResult:
    return SearchResult(
        chunk_id=chunk_id,
        similarity=similarity,
        source_file=f"docs/{chunk_id}.md",
        content="Connection pools keep database sockets open between requests.",
        sentence_range=(0, 1),
        avg_similarity=0.7,
        chunk_index=0,
        title="Database Tuning",
        category=category,
        keywords=["database"],
        created_at=CREATED,
    )


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


@pytest.fixture
def mock_search_service(client):
    service = AsyncMock()
    client.app.dependency_overrides[get_search_service] = lambda: service
    return service


def test_search_returns_ranked_results(client, mock_search_service):
    results = [_result("a", 0.9), _result("b", 0.5)]
    mock_search_service.search.return_value = SearchPage(
        results=results, total=2, limit=10, offset=0
    )

    response = client.get("/api/v1/search", params={"q": "database pool"})

    assert response.status_code == 200
    data = response.json()
    assert data["query"] == "database pool"
    assert data["total_results"] == 2
    assert [r["id"] for r in data["results"]] == ["a", "b"]
    assert data["results"][0]["sentence_range"] == [0, 1]
    assert data["results"][0]["snippet"]
    assert data["pagination"]["has_more"] is False


def test_search_builds_config_from_query_params(client, mock_search_service):
    mock_search_service.search.return_value = SearchPage(results=[], total=0, limit=5)

    response = client.get(
        "/api/v1/search",
        params={"q": "pool", "limit": 5, "category": "Reference, tutorial", "min_similarity": 0.3},
    )

    assert response.status_code == 200
    query, config = mock_search_service.search.call_args.args
    assert query == "pool"
    assert config.max_results == 5
    assert config.category_filter == ["reference", "tutorial"]
    assert config.min_similarity == 0.3


def test_search_uses_default_limit(client, mock_search_service):
    mock_search_service.search.return_value = SearchPage(results=[], total=0, limit=10)

    client.get("/api/v1/search", params={"q": "pool"})

    _, config = mock_search_service.search.call_args.args
    assert config.max_results == get_settings().search.default_max_results


def test_search_rejects_out_of_range_limit(client, mock_search_service):
    response = client.get("/api/v1/search", params={"q": "pool", "limit": 500})

    assert response.status_code == 422
    mock_search_service.search.assert_not_called()


def test_search_maps_validation_errors_to_400(client, mock_search_service):
    mock_search_service.search.side_effect = EmptyQueryError()

    response = client.get("/api/v1/search", params={"q": " "})

    assert response.status_code == 400
    assert "empty" in response.json()["detail"].lower()


def test_search_maps_bad_cursor_to_400(client, mock_search_service):
    mock_search_service.search.side_effect = InvalidCursorError("not base64")

    response = client.get("/api/v1/search", params={"q": "pool", "cursor": "%%%"})

    assert response.status_code == 400


def test_search_maps_provider_failure_to_502(client, mock_search_service):
    mock_search_service.search.side_effect = EmbeddingGenerationError("ollama down")

    response = client.get("/api/v1/search", params={"q": "pool"})

    assert response.status_code == 502
    assert "ollama down" in response.json()["detail"]


def test_search_maps_storage_failure_to_500(client, mock_search_service):
    mock_search_service.search.side_effect = PersistenceError("db gone")

    response = client.get("/api/v1/search", params={"q": "pool"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Search failed"


def test_advanced_search_computes_aggregations_over_all_matches(client, mock_search_service):
    matches = [_result("a", 0.9), _result("b", 0.65, "tutorial"), _result("c", 0.2, None)]
    page = SearchPage(
        results=matches[:1], total=3, limit=1, offset=0, has_more=True, next_cursor="next-token"
    )
    mock_search_service.search_with_matches.return_value = (page, matches)

    response = client.post(
        "/api/v1/search/advanced",
        json={
            "query": "database",
            "options": {"max_results": 1},
            "aggregations": {"by_category": True, "by_similarity_range": True, "by_date": True},
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["results"]) == 1
    assert data["pagination"]["cursor"] == "next-token"
    aggregations = data["aggregations"]
    assert aggregations["by_category"] == {"reference": 1, "tutorial": 1, "uncategorized": 1}
    assert aggregations["by_similarity_range"] == {
        "0.8-1.0": 1,
        "0.6-0.8": 1,
        "0.4-0.6": 0,
        "0.0-0.4": 1,
    }
    assert aggregations["by_date"] == {"2024-05": 3}


def test_advanced_search_maps_filters_to_config(client, mock_search_service):
    mock_search_service.search_with_matches.return_value = (
        SearchPage(results=[], total=0, limit=20),
        [],
    )

    response = client.post(
        "/api/v1/search/advanced",
        json={
            "query": "  database  ",
            "filters": {
                "categories": ["How-To"],
                "similarity": {"min": 0.2, "max": 0.8},
                "tags": ["database"],
            },
            "options": {"offset": 4, "include_snippets": False},
        },
    )

    assert response.status_code == 200
    assert response.json()["aggregations"] is None
    query, config = mock_search_service.search_with_matches.call_args.args
    assert query == "database"
    assert config.category_filter == ["how-to"]
    assert config.min_similarity == 0.2
    assert config.max_similarity == 0.8
    assert config.offset == 4
    assert config.tags == ["database"]


def test_advanced_search_rejects_unknown_category(client, mock_search_service):
    response = client.post(
        "/api/v1/search/advanced",
        json={"query": "database", "filters": {"categories": ["recipes"]}},
    )

    assert response.status_code == 422
    mock_search_service.search_with_matches.assert_not_called()


def test_advanced_search_rejects_offset_with_cursor(client, mock_search_service):
    response = client.post(
        "/api/v1/search/advanced",
        json={"query": "database", "options": {"offset": 3, "cursor": "abc"}},
    )

    assert response.status_code == 422
