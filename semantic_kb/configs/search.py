"""
Search configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Search defaults for API and CLI
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from semantic_kb.configs.base import BaseSettings


class SearchSettings(BaseSettings):
    """Search defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SKB_SEARCH_",
        case_sensitive=False,
        extra="ignore",
    )

    default_max_results: int = Field(default=10, ge=1, le=100)
    snippet_length: int = Field(
        default=200,
        description="Maximum characters in a result snippet",
        ge=20,
    )
