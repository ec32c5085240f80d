"""
Search API endpoints.

Routes: GET /search, POST /search/advanced

Dependencies: semantic_kb.application.search_service, semantic_kb.models
System role: Semantic search HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from semantic_kb.api.deps import get_search_service, get_settings_dependency
from semantic_kb.application.services.search_service import SearchService
from semantic_kb.configs import Settings
from semantic_kb.core.exceptions import (
    EmbeddingGenerationError,
    SemanticKBException,
    ValidationError,
)
from semantic_kb.core.search.aggregations import (
    count_by_category,
    count_by_date,
    count_by_similarity_range,
)
from semantic_kb.core.search.ranking import SearchConfig, SearchPage, SearchResult
from semantic_kb.core.search.snippets import make_snippet
from semantic_kb.models.search import (
    AdvancedSearchRequest,
    AggregationRequest,
    AggregationResponse,
    PaginationInfo,
    SearchOptions,
    SearchResponse,
    SearchResultItem,
)
from semantic_kb.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


def _http_error(error: SemanticKBException) -> HTTPException:
    """Map domain errors onto HTTP status codes."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=error.message)
    if isinstance(error, EmbeddingGenerationError):
        return HTTPException(status_code=502, detail=error.message)
    log_exception_with_context(logger, f"{__name__}:_http_error - Search failed", error)
    return HTTPException(status_code=500, detail="Search failed")


def _to_item(
    result: SearchResult,
    query: str,
    include_snippet: bool,
    snippet_length: int,
) -> SearchResultItem:
    return SearchResultItem(
        id=result.chunk_id,
        title=result.title,
        content=result.content,
        snippet=make_snippet(result.content, query, snippet_length) if include_snippet else None,
        category=result.category,
        similarity=result.similarity,
        source_file=result.source_file,
        sentence_range=result.sentence_range,
        avg_similarity=result.avg_similarity,
        chunk_index=result.chunk_index,
    )


def _pagination(page: SearchPage) -> PaginationInfo:
    return PaginationInfo(
        offset=page.offset,
        limit=page.limit,
        total=page.total,
        has_more=page.has_more,
        cursor=page.next_cursor,
        prev_cursor=page.prev_cursor,
    )


def _aggregate(request: AggregationRequest, matches: list[SearchResult]) -> AggregationResponse:
    return AggregationResponse(
        by_category=count_by_category(matches) if request.by_category else None,
        by_similarity_range=count_by_similarity_range(matches)
        if request.by_similarity_range
        else None,
        by_date=count_by_date(matches) if request.by_date else None,
    )


@router.get("", response_model=SearchResponse)
async def search(
    q: str = Query(..., description="Search query"),
    limit: int | None = Query(default=None, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    category: str | None = Query(default=None, description="Comma-separated categories"),
    cursor: str | None = Query(default=None),
    min_similarity: float = Query(default=0.0, ge=0.0, le=1.0),
    search_service: SearchService = Depends(get_search_service),
    settings: Settings = Depends(get_settings_dependency),
) -> SearchResponse:
    """
    Simple semantic search.

    Args:
        q: Query text
        limit: Page size (defaults to configured default_max_results)
        offset: Results to skip (offset pagination)
        category: Optional comma-separated category filter
        cursor: Token from a previous page (cursor pagination)
        min_similarity: Lowest similarity returned

    Raises:
        HTTPException(400): Invalid query or parameters
        HTTPException(502): Embedding provider failed
        HTTPException(500): Storage or scoring failure
    """
    categories = [c.strip().lower() for c in category.split(",") if c.strip()] if category else None
    config = SearchConfig(
        max_results=limit or settings.search.default_max_results,
        min_similarity=min_similarity,
        category_filter=categories,
        offset=offset,
        cursor=cursor,
    )
    try:
        page = await search_service.search(q, config)
    except SemanticKBException as e:
        raise _http_error(e) from e

    return SearchResponse(
        query=q,
        results=[
            _to_item(r, q, True, settings.search.snippet_length) for r in page.results
        ],
        total_results=page.total,
        pagination=_pagination(page),
    )


@router.post("/advanced", response_model=SearchResponse)
async def advanced_search(
    request: AdvancedSearchRequest,
    search_service: SearchService = Depends(get_search_service),
    settings: Settings = Depends(get_settings_dependency),
) -> SearchResponse:
    """
    Search with filters, aggregations and pagination options.

    Aggregations count every match that passes the filters, not only
    the returned page.

    Example Request:
        {
            "query": "async error handling",
            "filters": {"categories": ["how-to"], "similarity": {"min": 0.5}},
            "options": {"max_results": 5},
            "aggregations": {"by_category": true}
        }

    Raises:
        HTTPException(400): Invalid query, filters or cursor
        HTTPException(502): Embedding provider failed
        HTTPException(500): Storage or scoring failure
    """
    filters = request.filters
    options = request.options or SearchOptions()
    similarity = filters.similarity if filters else None
    date_range = filters.date_range if filters else None

    config = SearchConfig(
        max_results=options.max_results,
        min_similarity=similarity.min if similarity and similarity.min is not None else 0.0,
        max_similarity=similarity.max if similarity else None,
        category_filter=filters.categories if filters else None,
        offset=options.offset or 0,
        cursor=options.cursor,
        date_from=date_range.start if date_range else None,
        date_to=date_range.end if date_range else None,
        tags=filters.tags if filters else None,
    )
    try:
        page, matches = await search_service.search_with_matches(request.query, config)
    except SemanticKBException as e:
        raise _http_error(e) from e

    return SearchResponse(
        query=request.query,
        results=[
            _to_item(r, request.query, options.include_snippets, settings.search.snippet_length)
            for r in page.results
        ],
        total_results=page.total,
        aggregations=_aggregate(request.aggregations, matches) if request.aggregations else None,
        pagination=_pagination(page),
    )
