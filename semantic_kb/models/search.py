"""
Search API request and response models.

Wire contract for the search endpoints: filters, options, aggregations,
results and pagination state.

Dependencies: pydantic
System role: Search request/response schemas
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from semantic_kb.models.chunk import DocumentCategory

VALID_CATEGORIES = tuple(c.value for c in DocumentCategory)


class SimilarityRange(BaseModel):
    """Inclusive similarity bounds."""

    min: float | None = Field(default=None, ge=0.0, le=1.0)
    max: float | None = Field(default=None, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_order(self) -> "SimilarityRange":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("similarity min must be <= max")
        return self


class DateRange(BaseModel):
    """Inclusive creation-date bounds."""

    start: datetime | None = None
    end: datetime | None = None

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start and self.end and self.start > self.end:
            raise ValueError("date_range start must be before end")
        return self


class SearchFilters(BaseModel):
    """Optional result filters."""

    categories: list[str] | None = Field(default=None, description="Diataxis categories")
    similarity: SimilarityRange | None = None
    date_range: DateRange | None = None
    tags: list[str] | None = Field(default=None, description="Match chunks with any of these keywords")

    @field_validator("categories")
    @classmethod
    def _check_categories(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        normalized = [c.strip().lower() for c in value]
        invalid = [c for c in normalized if c not in VALID_CATEGORIES]
        if invalid:
            raise ValueError(
                f"Invalid categories {invalid}; expected one of {list(VALID_CATEGORIES)}"
            )
        return normalized


class SearchOptions(BaseModel):
    """Paging and presentation options."""

    max_results: int = Field(default=20, ge=1, le=100)
    offset: int | None = Field(default=None, ge=0)
    cursor: str | None = None
    include_snippets: bool = True

    @model_validator(mode="after")
    def _check_paging(self) -> "SearchOptions":
        if self.cursor and self.offset:
            raise ValueError("offset and cursor cannot be combined")
        return self


class AggregationRequest(BaseModel):
    """Which aggregations to compute."""

    by_category: bool = False
    by_similarity_range: bool = False
    by_date: bool = False


class AdvancedSearchRequest(BaseModel):
    """POST /search/advanced body."""

    query: str = Field(description="Search query text")
    filters: SearchFilters | None = None
    options: SearchOptions | None = None
    aggregations: AggregationRequest | None = None

    @field_validator("query")
    @classmethod
    def _check_query(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Query cannot be empty")
        return value.strip()


class SearchResultItem(BaseModel):
    """One ranked chunk."""

    id: str
    title: str | None = None
    content: str
    snippet: str | None = None
    category: str | None = None
    similarity: float
    source_file: str
    sentence_range: tuple[int, int]
    avg_similarity: float
    chunk_index: int


class AggregationResponse(BaseModel):
    """Facet counts over all matches."""

    by_category: dict[str, int] | None = None
    by_similarity_range: dict[str, int] | None = None
    by_date: dict[str, int] | None = None


class PaginationInfo(BaseModel):
    """Pagination state for the returned page."""

    offset: int | None = None
    limit: int
    total: int | None = None
    has_more: bool = False
    cursor: str | None = Field(default=None, description="Token for the next page")
    prev_cursor: str | None = Field(default=None, description="Token for the previous page")


class SearchResponse(BaseModel):
    """Search endpoint response."""

    query: str
    results: list[SearchResultItem]
    total_results: int
    aggregations: AggregationResponse | None = None
    pagination: PaginationInfo


class CacheStatsResponse(BaseModel):
    """Embedding cache statistics."""

    entry_count: int
    weighted_size: int
    hits: int
    misses: int
    evictions: int
    hit_rate: float
