"""
Database connection management.

Provides the async SQLAlchemy engine, session factory, schema creation
and the FastAPI dependency for database session injection.

Dependencies: sqlalchemy, semantic_kb.configs
System role: Database connection lifecycle management
"""

from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from semantic_kb.boundary.db.base import Base
from semantic_kb.configs import get_settings
from semantic_kb.configs.database import DatabaseSettings


def create_engine_from_settings(db_config: DatabaseSettings) -> AsyncEngine:
    """
    Create async SQLAlchemy engine for the configured database.

    Server databases get a sized connection pool with pre-ping; SQLite
    uses the driver's default pool.

    Args:
        db_config: Database settings

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine
    """
    if db_config.is_sqlite:
        return create_async_engine(db_config.async_database_url, echo=db_config.echo_sql)

    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


@lru_cache
def get_async_engine() -> AsyncEngine:
    """
    Process-wide async engine built from application settings.

    Returns:
        AsyncEngine: Cached engine instance

    Usage:
        engine = get_async_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    return create_engine_from_settings(get_settings().database)


def get_async_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker:
    """
    Session factory bound to an engine.

    Sessions use autoflush=False and expire_on_commit=False for explicit
    transaction control.

    Args:
        engine: Engine to bind (defaults to the application engine)

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = get_async_session_factory()
        async with SessionFactory() as session:
            async with session.begin():
                session.add(obj)
    """
    return async_sessionmaker(
        bind=engine or get_async_engine(),
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create all tables and indexes that do not exist yet."""
    # Model modules register their tables on import.
    from semantic_kb.boundary.db.models import chunk_model  # noqa: F401

    target = engine or get_async_engine()
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session for FastAPI routes; closed when the response is sent.

    Yields:
        AsyncSession: Session bound to the application engine

    Usage:
        from fastapi import Depends

        @router.get("/health/db")
        async def check(db: AsyncSession = Depends(get_async_db)):
            await db.execute(text("SELECT 1"))
    """
    SessionFactory = get_async_session_factory()
    async with SessionFactory() as session:
        yield session
