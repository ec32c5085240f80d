"""
Chunk assembler configuration.

Holds tuning knobs for semantic chunking together with named presets
for technical and narrative documentation.

Dependencies: dataclasses (stdlib), semantic_kb.core.exceptions
System role: Chunker configuration and validation
"""

from dataclasses import dataclass, replace

from semantic_kb.core.exceptions import InvalidConfigurationError

STRATEGIES = ("default", "technical", "narrative", "custom")
THRESHOLD_POLICIES = ("min", "max")


@dataclass(frozen=True)
class ChunkerConfig:
    """
    Semantic chunker settings.

    ``threshold_policy`` decides how the percentile-derived threshold and
    the fixed ``similarity_threshold`` combine: ``"min"`` keeps sentences
    together unless both signals agree on a split, ``"max"`` splits when
    either signal does.
    """

    similarity_threshold: float = 0.7
    min_chunk_sentences: int = 3
    max_chunk_sentences: int = 30
    similarity_percentile: float = 0.5
    min_sentence_length: int = 10
    embedding_batch_size: int = 32
    model_name: str = "nomic-embed-text"
    threshold_policy: str = "min"

    @classmethod
    def technical_docs(cls) -> "ChunkerConfig":
        """Tighter cohesion with room for long reference sections."""
        return cls(similarity_threshold=0.75, max_chunk_sentences=40)

    @classmethod
    def narrative(cls) -> "ChunkerConfig":
        """Looser cohesion with shorter chunks for prose."""
        return cls(
            similarity_threshold=0.65,
            max_chunk_sentences=20,
            similarity_percentile=0.4,
        )

    @classmethod
    def for_strategy(cls, strategy: str) -> "ChunkerConfig":
        """
        Build a preset by name.

        Args:
            strategy: One of default, technical, narrative, custom

        Raises:
            InvalidConfigurationError: Unknown strategy name
        """
        name = strategy.lower()
        if name == "technical":
            return cls.technical_docs()
        if name == "narrative":
            return cls.narrative()
        if name in ("default", "custom"):
            return cls()
        raise InvalidConfigurationError(
            f"Unknown chunking strategy: {strategy}",
            field="strategy",
            details={"allowed": list(STRATEGIES)},
        )

    def with_overrides(self, **overrides) -> "ChunkerConfig":
        """Copy with non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def validate(self) -> None:
        """
        Check every field is in range.

        Raises:
            InvalidConfigurationError: First out-of-range field found
        """
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise InvalidConfigurationError(
                "similarity_threshold must be between 0.0 and 1.0",
                field="similarity_threshold",
            )
        if not 0.0 <= self.similarity_percentile <= 1.0:
            raise InvalidConfigurationError(
                "similarity_percentile must be between 0.0 and 1.0",
                field="similarity_percentile",
            )
        if self.min_chunk_sentences < 1:
            raise InvalidConfigurationError(
                "min_chunk_sentences must be at least 1",
                field="min_chunk_sentences",
            )
        if self.max_chunk_sentences < self.min_chunk_sentences:
            raise InvalidConfigurationError(
                "max_chunk_sentences must be >= min_chunk_sentences",
                field="max_chunk_sentences",
            )
        if self.min_sentence_length < 1:
            raise InvalidConfigurationError(
                "min_sentence_length must be at least 1",
                field="min_sentence_length",
            )
        if self.embedding_batch_size < 1:
            raise InvalidConfigurationError(
                "embedding_batch_size must be at least 1",
                field="embedding_batch_size",
            )
        if not self.model_name.strip():
            raise InvalidConfigurationError(
                "model_name cannot be empty",
                field="model_name",
            )
        if self.threshold_policy not in THRESHOLD_POLICIES:
            raise InvalidConfigurationError(
                "threshold_policy must be 'min' or 'max'",
                field="threshold_policy",
            )
