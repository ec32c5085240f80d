"""
Semantic chunk assembler.

Groups consecutive sentences into coherent chunks. Boundaries fall where
the similarity between neighbouring sentences drops below a threshold
derived from the document's own similarity distribution, then chunk sizes
are brought inside the configured bounds.

Pipeline stages:
1. Split text into sentences (SentenceSplitter)
2. Embed sentences in batches (EmbeddingProvider)
3. Detect boundaries from pairwise similarities and a percentile threshold
4. Split oversized and merge undersized candidates
5. Embed each final chunk and score its cohesion (mean consecutive-pair
   similarity of its sentences)

Dependencies: semantic_kb.core.semantic, semantic_kb.boundary.embeddings
System role: Chunk assembly stage of the indexing path
"""

import logging
from typing import Sequence

from semantic_kb.boundary.embeddings.provider import EmbeddingProvider
from semantic_kb.core.exceptions import EmptyDocumentError, InvalidConfigurationError
from semantic_kb.core.semantic.config import ChunkerConfig
from semantic_kb.core.semantic.similarity import (
    mean,
    pairwise_similarities,
    percentile,
)
from semantic_kb.core.semantic.splitter import SentenceSplitter
from semantic_kb.models.chunk import ChunkMetadata, SemanticChunk

logger = logging.getLogger(__name__)

# (start, end) sentence indices, end exclusive
Span = tuple[int, int]


def effective_threshold(
    similarities: Sequence[float],
    config: ChunkerConfig,
) -> float:
    """
    Combine the percentile-derived and the fixed similarity thresholds.

    Args:
        similarities: Consecutive-pair similarities for the document
        config: Chunker configuration

    Returns:
        float: Threshold below which a boundary is placed
    """
    if not similarities:
        return config.similarity_threshold
    dynamic = percentile(similarities, config.similarity_percentile)
    if config.threshold_policy == "max":
        return max(dynamic, config.similarity_threshold)
    return min(dynamic, config.similarity_threshold)


def detect_boundaries(similarities: Sequence[float], threshold: float) -> list[int]:
    """
    Sentence indices that start a new chunk.

    Index 0 is always included; index ``i + 1`` is included whenever
    ``similarities[i] < threshold``.
    """
    boundaries = [0]
    for i, score in enumerate(similarities):
        if score < threshold:
            boundaries.append(i + 1)
    return boundaries


def spans_from_boundaries(boundaries: Sequence[int], sentence_count: int) -> list[Span]:
    """Turn boundary indices into contiguous half-open spans."""
    edges = list(boundaries) + [sentence_count]
    return [(edges[i], edges[i + 1]) for i in range(len(boundaries)) if edges[i] < edges[i + 1]]


def split_oversized(
    span: Span,
    similarities: Sequence[float],
    max_sentences: int,
) -> list[Span]:
    """
    Split a span at its weakest internal link until every part fits.

    The internal link between sentences ``k`` and ``k + 1`` is scored by
    ``similarities[k]``; ties go to the earliest position.
    """
    start, end = span
    if end - start <= max_sentences:
        return [span]

    weakest = min(range(start, end - 1), key=lambda k: (similarities[k], k))
    left = (start, weakest + 1)
    right = (weakest + 1, end)
    return (
        split_oversized(left, similarities, max_sentences)
        + split_oversized(right, similarities, max_sentences)
    )


def merge_undersized(
    spans: Sequence[Span],
    min_sentences: int,
    max_sentences: int,
    similarities: Sequence[float] | None = None,
) -> list[Span]:
    """
    Fold spans shorter than ``min_sentences`` into a neighbour.

    An undersized span merges into the preceding span; a leading one merges
    forward into its successor. When the merged span would exceed
    ``max_sentences`` it is cut again at its weakest link among the cuts
    that leave both parts within ``[min_sentences, max_sentences]``. Only
    when ``max_sentences < 2 * min_sentences`` does no such cut exist; the
    merged span is then kept whole, past the maximum.

    Args:
        spans: Contiguous spans, each at most ``max_sentences`` long
        min_sentences: Smallest chunk size
        max_sentences: Largest chunk size
        similarities: Consecutive-pair similarities used to pick re-split
            points; without them the earliest valid cut is used

    Returns:
        list[Span]: Contiguous spans covering the same sentences
    """
    merged: list[Span] = []
    for span in spans:
        if merged and (
            _size(merged[-1]) < min_sentences or _size(span) < min_sentences
        ):
            previous = merged.pop()
            merged.extend(
                _join(previous, span, min_sentences, max_sentences, similarities)
            )
        else:
            merged.append(span)
    return merged


def _size(span: Span) -> int:
    return span[1] - span[0]


def _join(
    left: Span,
    right: Span,
    min_sentences: int,
    max_sentences: int,
    similarities: Sequence[float] | None,
) -> list[Span]:
    start, end = left[0], right[1]
    size = end - start
    if size <= max_sentences or max_sentences < 2 * min_sentences:
        return [(start, end)]

    # Cut positions keeping both parts inside the size bounds.
    first = start + max(min_sentences, size - max_sentences)
    last = start + min(max_sentences, size - min_sentences)
    if similarities is None:
        cut = first
    else:
        cut = min(range(first, last + 1), key=lambda k: (similarities[k - 1], k))
    return [(start, cut), (cut, end)]


class SemanticChunker:
    """
    Builds semantic chunks for one document at a time.

    Depends only on the EmbeddingProvider interface; the sentence and chunk
    embeddings both come from the injected provider.
    """

    def __init__(self, config: ChunkerConfig, provider: EmbeddingProvider) -> None:
        """
        Initialize chunker.

        Args:
            config: Chunker configuration (validated here)
            provider: Embedding provider for sentence and chunk vectors

        Raises:
            InvalidConfigurationError: Config values out of range
        """
        config.validate()
        self.config = config
        self.provider = provider
        self.splitter = SentenceSplitter(config.min_sentence_length)

    async def chunk_document(
        self,
        content: str,
        metadata: ChunkMetadata | None = None,
    ) -> list[SemanticChunk]:
        """
        Split, embed and assemble one document.

        Args:
            content: Raw document text
            metadata: Document metadata copied onto every chunk

        Returns:
            list[SemanticChunk]: Chunks ordered by chunk_index

        Raises:
            EmptyDocumentError: No sentences survived segmentation
            EmbeddingGenerationError: Provider failed
            SimilarityCalculationError: Provider returned unusable vectors
        """
        source = metadata.source_file if metadata else None
        sentences = self.splitter.split(content)
        if not sentences:
            raise EmptyDocumentError(source)

        logger.debug(
            f"{__name__}:chunk_document - Embedding sentences",
            extra={"source_file": source, "sentence_count": len(sentences)},
        )
        embeddings = await self.provider.embed_batch(
            sentences, batch_size=self.config.embedding_batch_size
        )
        return await self.assemble(sentences, embeddings, metadata)

    async def assemble(
        self,
        sentences: Sequence[str],
        embeddings: Sequence[Sequence[float]],
        metadata: ChunkMetadata | None = None,
    ) -> list[SemanticChunk]:
        """
        Group embedded sentences into chunks.

        Args:
            sentences: Sentences in document order
            embeddings: One vector per sentence
            metadata: Document metadata copied onto every chunk

        Returns:
            list[SemanticChunk]: Chunks with fresh content embeddings

        Raises:
            EmptyDocumentError: No sentences
            InvalidConfigurationError: Sentence and embedding counts differ
            EmbeddingGenerationError: Provider failed on a chunk
            SimilarityCalculationError: Sentence vectors are incomparable
        """
        if not sentences:
            raise EmptyDocumentError(metadata.source_file if metadata else None)
        if len(sentences) != len(embeddings):
            raise InvalidConfigurationError(
                "Sentence and embedding counts differ",
                details={"sentences": len(sentences), "embeddings": len(embeddings)},
            )

        similarities = pairwise_similarities(embeddings)
        spans = self.plan_spans(similarities, len(sentences))

        base_metadata = metadata or ChunkMetadata(source_file="unknown")
        total = len(spans)
        chunks: list[SemanticChunk] = []
        for index, (start, end) in enumerate(spans):
            content = " ".join(sentences[start:end])
            cohesion = self._cohesion(embeddings[start:end])
            vector = await self.provider.embed(content)
            chunk_metadata = base_metadata.model_copy(
                update={
                    "word_count": len(content.split()),
                    "char_count": len(content),
                }
            )
            chunks.append(
                SemanticChunk(
                    content=content,
                    chunk_index=index,
                    total_chunks=total,
                    start_sentence=start,
                    end_sentence=end - 1,
                    avg_similarity=cohesion,
                    embedding=vector,
                    metadata=chunk_metadata,
                )
            )

        logger.info(
            f"{__name__}:assemble - Assembled {total} chunks from {len(sentences)} sentences",
            extra={"source_file": base_metadata.source_file},
        )
        return chunks

    def plan_spans(self, similarities: Sequence[float], sentence_count: int) -> list[Span]:
        """
        Decide chunk spans from consecutive similarities.

        Returns half-open ``(start, end)`` sentence spans covering
        ``0..sentence_count`` without gaps.
        """
        threshold = effective_threshold(similarities, self.config)
        boundaries = detect_boundaries(similarities, threshold)
        spans = spans_from_boundaries(boundaries, sentence_count)

        sized: list[Span] = []
        for span in spans:
            sized.extend(split_oversized(span, similarities, self.config.max_chunk_sentences))

        return merge_undersized(
            sized,
            self.config.min_chunk_sentences,
            self.config.max_chunk_sentences,
            similarities,
        )

    @staticmethod
    def _cohesion(vectors: Sequence[Sequence[float]]) -> float:
        if len(vectors) < 2:
            return 1.0
        return mean(pairwise_similarities(vectors))
