"""
Embedding provider configuration settings.

Controls the Ollama HTTP endpoint, model, timeouts and retry count used
for every embedding request.

Dependencies: pydantic, pydantic_settings
System role: Embedding backend configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from semantic_kb.configs.base import BaseSettings


class EmbeddingSettings(BaseSettings):
    """Ollama embedding provider configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="OLLAMA_",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server base URL",
    )
    model: str = Field(
        default="nomic-embed-text",
        description="Embedding model name",
    )
    timeout_seconds: float = Field(
        default=300.0,
        description="Per-request timeout for embedding calls",
        gt=0,
    )
    max_retries: int = Field(
        default=5,
        description="Maximum attempts for transient embedding failures",
        ge=1,
    )
    max_concurrent_requests: int = Field(
        default=4,
        description="Concurrent requests allowed while embedding a batch",
        ge=1,
    )
