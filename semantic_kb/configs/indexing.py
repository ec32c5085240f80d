"""
Incremental indexing configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Batch indexing concurrency and discovery settings
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from semantic_kb.configs.base import BaseSettings


class IndexingSettings(BaseSettings):
    """Batch indexer settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SKB_INDEXING_",
        case_sensitive=False,
        extra="ignore",
    )

    max_workers: int = Field(
        default=4,
        description="Documents indexed concurrently",
        ge=1,
    )
    progress_interval: int = Field(
        default=10,
        description="Log progress every N processed documents",
        ge=1,
    )
    file_extensions: list[str] = Field(
        default=[".md", ".markdown"],
        description="File suffixes picked up when walking directories",
    )
