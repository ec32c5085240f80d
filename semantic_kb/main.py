"""
FastAPI application entry point.

Initializes FastAPI app, registers routers, adds middleware, and configures lifespan.

Dependencies: fastapi, semantic_kb.api, semantic_kb.observability, semantic_kb.configs
System role: Application initialization and configuration
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from semantic_kb import __version__
from semantic_kb.api import api_router
from semantic_kb.api.deps.dependencies import ServiceCache
from semantic_kb.boundary.db.connection import init_db
from semantic_kb.configs import get_settings
from semantic_kb.observability.logger import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Creates the chunk table if missing, attaches a ServiceCache to
    `app.state` and pre-warms its cache and provider. The provider's HTTP
    client is closed on shutdown.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Application startup: logging configured")

    await init_db()
    cache = ServiceCache()
    app.state.service_cache = cache
    _ = cache.embedding_cache
    _ = cache.provider
    logger.info(
        "Application startup complete",
        extra={"embedding_model": settings.embedding.model},
    )

    yield

    await cache.aclose()
    logger.info("Application shutdown: service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="Semantic Knowledge Base API",
        description="Semantic chunking, incremental indexing and similarity search",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "semantic_kb.main:app",
        host="localhost",
        port=8082,
        reload=True,
    )
