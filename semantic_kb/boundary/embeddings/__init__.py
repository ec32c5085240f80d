"""Embedding providers: capability interface and the Ollama HTTP client."""

from semantic_kb.boundary.embeddings.provider import (
    EmbeddingProvider,
    validate_batch_dimensions,
)
from semantic_kb.boundary.embeddings.ollama_client import OllamaEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "OllamaEmbeddingProvider",
    "validate_batch_dimensions",
]
