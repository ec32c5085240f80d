"""
Exception hierarchy for the semantic knowledge base.

Three families: input validation, similarity arithmetic and embedding
I/O, plus persistence failures. Every exception carries a `details`
dict that logging helpers flatten into record context.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class SemanticKBException(Exception):
    """
    Base exception for all semantic knowledge base errors.

    Keyword context (``field=``, ``model=``, ``operation=`` ...) is merged
    into ``details``; ``None`` values are dropped.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.details = dict(details or {})
        self.details.update({key: val for key, val in context.items() if val is not None})
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(SemanticKBException):
    """Raised when input validation fails; ``field`` names the offending input."""


class InvalidConfigurationError(ValidationError):
    """Raised when chunker or loader configuration is out of range."""


class EmptyDocumentError(ValidationError):
    """Raised when segmentation yields no sentences."""

    def __init__(self, source: str | None = None) -> None:
        super().__init__("Document produced no sentences", source_file=source or None)


class EmptyQueryError(ValidationError):
    """Raised when a search query is blank."""

    def __init__(self) -> None:
        super().__init__("Search query cannot be empty", field="query")


class InvalidSearchConfigError(ValidationError):
    """Raised when search parameters are out of range."""


class InvalidCursorError(ValidationError):
    """Raised when a pagination cursor cannot be decoded."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid pagination cursor: {reason}", field="cursor")


class SimilarityCalculationError(SemanticKBException):
    """Base exception for similarity computation failures."""


class DimensionMismatchError(SimilarityCalculationError):
    """Raised when two vectors (or a batch) disagree on dimension."""

    def __init__(self, expected: int, actual: int) -> None:
        """
        Initialize dimension mismatch error.

        Args:
            expected: Dimension of the first/reference vector
            actual: Dimension of the offending vector
        """
        super().__init__(
            f"Vector dimensions do not match: {expected} != {actual}",
            {"expected": expected, "actual": actual},
        )


class ZeroVectorError(SimilarityCalculationError):
    """Raised when a vector has zero magnitude."""

    def __init__(self) -> None:
        super().__init__("Cannot compute similarity for zero vector")


class InvalidValueError(SimilarityCalculationError):
    """Raised when a similarity result is NaN or infinite."""

    def __init__(self, value: float) -> None:
        super().__init__(
            f"Similarity calculation produced invalid value: {value}",
            {"value": repr(value)},
        )


class EmbeddingGenerationError(SemanticKBException):
    """Raised when the embedding provider fails to produce vectors."""


class EmptyTextError(EmbeddingGenerationError):
    """Raised when an empty text is submitted for embedding."""

    def __init__(self) -> None:
        super().__init__("Cannot embed empty text")


class EmbeddingParseError(SemanticKBException):
    """Raised when a stored embedding cannot be decoded."""

    def __init__(self, byte_length: int, chunk_id: str | None = None) -> None:
        super().__init__(
            f"Invalid embedding byte length: {byte_length} (must be multiple of 4)",
            byte_length=byte_length,
            chunk_id=chunk_id or None,
        )


class PersistenceError(SemanticKBException):
    """Raised when chunk store reads or writes fail; ``operation`` names the store call."""
