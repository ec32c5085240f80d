"""
Deterministic embedding provider doubles and sample documents.

Substituted behind the EmbeddingProvider interface so chunking, indexing
and search run without an Ollama server.
"""

import hashlib
import re
from typing import Mapping, Sequence

from semantic_kb.boundary.embeddings.provider import EmbeddingProvider
from semantic_kb.core.exceptions import EmbeddingGenerationError, EmptyTextError

_WORD = re.compile(r"\w+")


class HashingEmbeddingProvider(EmbeddingProvider):
    """Bag-of-words vectors: every word bumps one blake2b-chosen bucket."""

    def __init__(self, dimension: int = 32) -> None:
        self.dimension = dimension
        self.model_name = "hashing-test"
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise EmptyTextError()
        self.calls.append(text)
        vector = [0.0] * self.dimension
        # Last component keeps every vector non-zero.
        vector[-1] = 0.1
        for word in _WORD.findall(text.lower()):
            digest = hashlib.blake2b(word.encode("utf-8"), digest_size=4).digest()
            vector[int.from_bytes(digest, "little") % (self.dimension - 1)] += 1.0
        return vector


class StaticEmbeddingProvider(EmbeddingProvider):
    """Returns fixed vectors per text, a default vector otherwise."""

    def __init__(
        self,
        vectors: Mapping[str, Sequence[float]],
        default: Sequence[float] = (1.0, 1.0),
    ) -> None:
        self.vectors = {k: list(v) for k, v in vectors.items()}
        self.default = list(default)
        self.model_name = "static-test"
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise EmptyTextError()
        self.calls.append(text)
        return list(self.vectors.get(text, self.default))


class FailingEmbeddingProvider(EmbeddingProvider):
    """Fails every call, or only for texts containing ``trigger``."""

    def __init__(self, trigger: str | None = None, delegate: EmbeddingProvider | None = None) -> None:
        self.trigger = trigger
        self.delegate = delegate or HashingEmbeddingProvider()
        self.model_name = "failing-test"

    async def embed(self, text: str) -> list[float]:
        if self.trigger is None or self.trigger in text:
            raise EmbeddingGenerationError("provider unavailable", model=self.model_name)
        return await self.delegate.embed(text)


SAMPLE_DOC = """# Getting Started With Widgets

Widgets are small reusable components for dashboards.
Every widget renders a single metric on screen.

Installing the widget package takes one command.
Run the installer from your project root directory.
"""

OTHER_DOC = """# Database Tuning Reference

Connection pools keep database sockets open between requests.
Pool size limits how many queries run at the same time.
"""
