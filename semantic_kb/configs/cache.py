"""
Query embedding cache configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Embedding cache sizing and expiry
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from semantic_kb.configs.base import BaseSettings


class CacheSettings(BaseSettings):
    """Embedding cache bounds."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SKB_CACHE_",
        case_sensitive=False,
        extra="ignore",
    )

    max_capacity: int = Field(default=1000, description="Maximum cached queries", ge=1)
    time_to_live_seconds: float = Field(
        default=3600.0,
        description="Absolute lifetime of an entry since insertion",
        gt=0,
    )
    time_to_idle_seconds: float = Field(
        default=1800.0,
        description="Lifetime of an entry since its last access",
        gt=0,
    )
