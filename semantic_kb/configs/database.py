"""
Database configuration settings.

Manages the chunk store connection parameters for SQLAlchemy.
PostgreSQL (asyncpg) in deployments, SQLite (aiosqlite) for local runs.

Dependencies: pydantic, pydantic_settings
System role: Database connection configuration for ORM
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from semantic_kb.configs.base import BaseSettings


class DatabaseSettings(BaseSettings):
    """Chunk store database configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SKB_DB_",
        case_sensitive=False,
        extra="ignore",
    )

    url: str | None = Field(
        default=None,
        description="Full async SQLAlchemy URL; overrides the host/port fields when set",
    )
    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="postgres", description="PostgreSQL user")
    password: str = Field(default="postgres", description="PostgreSQL password")
    db: str = Field(default="semantic_kb", description="PostgreSQL database name")

    # Pool sizing applies to PostgreSQL only; SQLite uses the driver default.
    pool_size: int = Field(default=10, ge=1, description="Persistent pooled connections")
    max_overflow: int = Field(default=20, ge=0, description="Extra connections beyond pool_size")
    pool_timeout: int = Field(default=30, ge=1, description="Seconds to wait for a free connection")
    echo_sql: bool = Field(default=False, description="Log every SQL statement")

    @property
    def async_database_url(self) -> str:
        """
        Construct async database connection URL.

        Returns:
            str: SQLAlchemy async-compatible database URL
        """
        if self.url:
            return self.url
        return (
            f"postgresql+asyncpg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.db}"
        )

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured URL targets SQLite (no server-side pooling)."""
        return self.async_database_url.startswith("sqlite")
