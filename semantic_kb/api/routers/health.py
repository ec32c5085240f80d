"""
Health check API endpoints.

Routes: GET /health, GET /health/db, GET /health/cache

Dependencies: semantic_kb.boundary, semantic_kb.core.search
System role: Health check HTTP API
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from semantic_kb.api.deps import get_embedding_cache
from semantic_kb.boundary.db.connection import get_async_db
from semantic_kb.core.search.embedding_cache import EmbeddingCache
from semantic_kb.models.search import CacheStatsResponse


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/db", response_model=HealthResponse)
async def health_check_db(db: AsyncSession = Depends(get_async_db)) -> HealthResponse:
    """Database health check."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise HTTPException(status_code=503, detail=f"Database unavailable: {e}")
    return HealthResponse(status="healthy", message="Database connection OK")


@router.get("/cache", response_model=CacheStatsResponse)
async def health_check_cache(
    cache: EmbeddingCache = Depends(get_embedding_cache),
) -> CacheStatsResponse:
    """Embedding cache statistics."""
    stats = cache.stats()
    return CacheStatsResponse(
        entry_count=stats.entry_count,
        weighted_size=stats.weighted_size,
        hits=stats.hits,
        misses=stats.misses,
        evictions=stats.evictions,
        hit_rate=stats.hit_rate,
    )
