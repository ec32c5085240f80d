"""
Embedding provider capability interface.

Every component that needs vectors depends on this interface only; the
Ollama HTTP client is the production implementation and tests substitute
deterministic doubles behind the same methods.

Dependencies: abc (stdlib), semantic_kb.core.exceptions
System role: Embedding backend abstraction
"""

from abc import ABC, abstractmethod
from typing import Sequence

from semantic_kb.core.exceptions import DimensionMismatchError, EmbeddingGenerationError


def validate_batch_dimensions(vectors: Sequence[Sequence[float]]) -> int:
    """
    Check that every vector in a batch shares one dimension.

    Args:
        vectors: Embeddings returned for one batch

    Returns:
        int: The shared dimension (0 for an empty batch)

    Raises:
        DimensionMismatchError: A vector differs from the first one
    """
    if not vectors:
        return 0
    expected = len(vectors[0])
    for vector in vectors[1:]:
        if len(vector) != expected:
            raise DimensionMismatchError(expected, len(vector))
    return expected


class EmbeddingProvider(ABC):
    """Produces fixed-dimension vectors for text."""

    model_name: str = ""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text.

        Raises:
            EmptyTextError: Text is empty or whitespace
            EmbeddingGenerationError: Backend failed
        """

    async def embed_batch(
        self,
        texts: Sequence[str],
        batch_size: int = 32,
    ) -> list[list[float]]:
        """
        Embed texts in batches of ``batch_size``, preserving order.

        Raises:
            EmbeddingGenerationError: Backend failed or a batch mixed dimensions
        """
        vectors: list[list[float]] = []
        for start in range(0, len(texts), max(batch_size, 1)):
            batch = [await self.embed(text) for text in texts[start:start + batch_size]]
            self._check_batch(batch)
            vectors.extend(batch)
        self._check_batch(vectors)
        return vectors

    def _check_batch(self, vectors: Sequence[Sequence[float]]) -> None:
        try:
            validate_batch_dimensions(vectors)
        except DimensionMismatchError as e:
            raise EmbeddingGenerationError(
                f"Embedding batch returned mixed dimensions: {e.message}",
                model=self.model_name or None,
                details=dict(e.details),
            ) from e

    async def aclose(self) -> None:
        """Release backend resources."""
        return None
