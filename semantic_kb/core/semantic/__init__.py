"""
Semantic chunking: sentence segmentation, similarity math and chunk assembly.
"""

from semantic_kb.core.semantic.chunker import SemanticChunker
from semantic_kb.core.semantic.config import ChunkerConfig
from semantic_kb.core.semantic.similarity import (
    cosine_similarities,
    cosine_similarity,
    pairwise_similarities,
    percentile,
)
from semantic_kb.core.semantic.splitter import SentenceSplitter, split_sentences

__all__ = [
    "ChunkerConfig",
    "SemanticChunker",
    "SentenceSplitter",
    "cosine_similarities",
    "cosine_similarity",
    "pairwise_similarities",
    "percentile",
    "split_sentences",
]
