"""
Semantic chunking configuration settings.

Environment defaults for the chunk assembler. The strategy name selects a
preset, individual fields override it when set.

Dependencies: pydantic, pydantic_settings
System role: Chunker configuration source
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from semantic_kb.configs.base import BaseSettings


class ChunkingSettings(BaseSettings):
    """Chunk assembler defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SKB_CHUNKING_",
        case_sensitive=False,
        extra="ignore",
    )

    strategy: str = Field(
        default="default",
        description="Preset name (default, technical, narrative, custom)",
    )
    similarity_threshold: float | None = Field(
        default=None,
        description="Override for the preset similarity threshold",
    )
    max_chunk_sentences: int | None = Field(
        default=None,
        description="Override for the preset maximum sentences per chunk",
    )
    threshold_policy: str = Field(
        default="min",
        description="How the percentile and fixed thresholds combine (min or max)",
    )
