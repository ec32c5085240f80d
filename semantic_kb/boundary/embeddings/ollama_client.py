"""
Ollama embedding client.

Calls the Ollama `/api/embeddings` endpoint over HTTP. Every request has a
timeout; timeouts, transport errors and 5xx responses are retried with
exponential jitter before surfacing as EmbeddingGenerationError.

Dependencies: httpx, tenacity, semantic_kb.configs
System role: Production embedding provider
"""

import asyncio
import logging
from typing import Sequence

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from semantic_kb.boundary.embeddings.provider import EmbeddingProvider
from semantic_kb.configs.embedding import EmbeddingSettings
from semantic_kb.core.exceptions import EmbeddingGenerationError, EmptyTextError

logger = logging.getLogger(__name__)


class TransientEmbeddingError(Exception):
    """Retryable backend failure (5xx or transport problem)."""


class OllamaEmbeddingProvider(EmbeddingProvider):
    """
    Embedding provider backed by a local or remote Ollama server.

    Wraps a shared httpx.AsyncClient. Batches fan out to at most
    ``max_concurrent_requests`` in-flight calls.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout_seconds: float = 300.0,
        max_retries: int = 5,
        max_concurrent_requests: int = 4,
        client: httpx.AsyncClient | None = None,
        retry_wait_initial: float = 1.0,
        retry_wait_max: float = 30.0,
    ) -> None:
        """
        Initialize Ollama provider.

        Args:
            base_url: Ollama server URL
            model: Embedding model name
            timeout_seconds: Per-request timeout
            max_retries: Attempts for transient failures
            max_concurrent_requests: In-flight request bound for batches
            client: Pre-built httpx client (tests inject a MockTransport)
            retry_wait_initial: Initial backoff in seconds
            retry_wait_max: Backoff ceiling in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.model_name = model
        self.max_retries = max_retries
        self._retry_wait_initial = retry_wait_initial
        self._retry_wait_max = retry_wait_max
        self._semaphore = asyncio.Semaphore(max_concurrent_requests)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_seconds),
        )

    @classmethod
    def from_settings(cls, settings: EmbeddingSettings) -> "OllamaEmbeddingProvider":
        """Build a provider from EmbeddingSettings."""
        return cls(
            base_url=settings.base_url,
            model=settings.model,
            timeout_seconds=settings.timeout_seconds,
            max_retries=settings.max_retries,
            max_concurrent_requests=settings.max_concurrent_requests,
        )

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text via POST /api/embeddings.

        Raises:
            EmptyTextError: Text is empty or whitespace
            EmbeddingGenerationError: Request failed after retries or payload malformed
        """
        if not text or not text.strip():
            raise EmptyTextError()

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(TransientEmbeddingError),
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential_jitter(
                    initial=self._retry_wait_initial,
                    max=self._retry_wait_max,
                    jitter=self._retry_wait_initial,
                ),
                before_sleep=lambda retry_state: logger.warning(
                    f"{__name__}:embed - Retry {retry_state.attempt_number}/"
                    f"{self.max_retries} after transient failure"
                ),
                reraise=True,
            ):
                with attempt:
                    return await self._request_embedding(text)
        except TransientEmbeddingError as e:
            raise EmbeddingGenerationError(
                f"Embedding request failed after {self.max_retries} attempts: {e}",
                model=self.model_name,
                details={"base_url": self.base_url},
            ) from e

    async def embed_batch(
        self,
        texts: Sequence[str],
        batch_size: int = 32,
    ) -> list[list[float]]:
        """
        Embed texts with bounded concurrency, preserving input order.

        Raises:
            EmbeddingGenerationError: Any item failed or the batch mixed dimensions
        """
        vectors: list[list[float]] = []
        for start in range(0, len(texts), max(batch_size, 1)):
            batch = texts[start:start + batch_size]
            logger.debug(
                f"{__name__}:embed_batch - Embedding batch",
                extra={"batch_start": start, "batch_size": len(batch)},
            )
            results = await asyncio.gather(*(self._bounded_embed(t) for t in batch))
            self._check_batch(results)
            vectors.extend(results)
        self._check_batch(vectors)
        return vectors

    async def _bounded_embed(self, text: str) -> list[float]:
        async with self._semaphore:
            return await self.embed(text)

    async def _request_embedding(self, text: str) -> list[float]:
        try:
            response = await self._client.post(
                f"{self.base_url}/api/embeddings",
                json={"model": self.model_name, "prompt": text},
            )
        except (httpx.TimeoutException, httpx.TransportError) as e:
            raise TransientEmbeddingError(f"{type(e).__name__}: {e}") from e

        if response.status_code >= 500:
            raise TransientEmbeddingError(
                f"Ollama returned {response.status_code}: {response.text[:200]}"
            )
        if response.status_code >= 400:
            raise EmbeddingGenerationError(
                f"Ollama rejected embedding request with status {response.status_code}",
                model=self.model_name,
                details={"body": response.text[:200]},
            )

        try:
            payload = response.json()
            embedding = payload["embedding"]
        except (ValueError, KeyError, TypeError) as e:
            raise EmbeddingGenerationError(
                "Ollama response did not contain an embedding",
                model=self.model_name,
            ) from e

        if not isinstance(embedding, list) or not embedding:
            raise EmbeddingGenerationError(
                "Ollama returned an empty embedding",
                model=self.model_name,
            )
        return [float(v) for v in embedding]

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "OllamaEmbeddingProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
