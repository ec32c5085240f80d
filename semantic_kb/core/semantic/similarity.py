"""
Vector similarity math.

Cosine similarity, consecutive-pair similarity sequences and percentile
statistics used to derive adaptive chunk boundaries and to rank search
candidates. Vectors are scored as float64 numpy arrays whatever their
stored precision.

Dependencies: numpy, semantic_kb.core.exceptions
System role: Similarity engine shared by chunking and search
"""

from typing import Sequence

import numpy as np

from semantic_kb.core.exceptions import (
    DimensionMismatchError,
    InvalidValueError,
    ZeroVectorError,
)

Vector = Sequence[float] | np.ndarray


def _as_matrix(vectors: Sequence[Vector], dimension: int | None = None) -> np.ndarray:
    """Stack vectors into an (N, D) array, rejecting ragged or empty rows."""
    rows = [np.asarray(v, dtype=np.float64).ravel() for v in vectors]
    expected = rows[0].size if dimension is None else dimension
    for row in rows:
        if row.size != expected:
            raise DimensionMismatchError(expected, row.size)
    if expected == 0:
        raise DimensionMismatchError(0, 0)
    return np.stack(rows)


def _checked(scores: np.ndarray) -> np.ndarray:
    invalid = ~np.isfinite(scores)
    if invalid.any():
        raise InvalidValueError(float(scores[invalid][0]))
    # Rounding can push parallel vectors a hair past the unit interval.
    return np.clip(scores, -1.0, 1.0)


def _norms(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1)
    if (norms == 0.0).any():
        raise ZeroVectorError()
    return norms


def cosine_similarity(a: Vector, b: Vector) -> float:
    """
    Cosine of the angle between two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        float: Similarity in [-1.0, 1.0]

    Raises:
        DimensionMismatchError: Vectors differ in length or are empty
        ZeroVectorError: Either vector has zero magnitude
        InvalidValueError: Result is NaN or infinite
    """
    return float(cosine_similarities(a, [b])[0])


def cosine_similarities(query: Vector, candidates: Sequence[Vector]) -> np.ndarray:
    """
    Cosine similarity of one query against many candidates in one pass.

    Args:
        query: Query vector
        candidates: Candidate vectors, each the query's dimension

    Returns:
        np.ndarray: One score per candidate, in candidate order

    Raises:
        DimensionMismatchError: A candidate differs from the query in length
        ZeroVectorError: The query or a candidate has zero magnitude
        InvalidValueError: A score is NaN or infinite
    """
    q = np.asarray(query, dtype=np.float64).ravel()
    if not len(candidates):
        return np.empty(0, dtype=np.float64)

    matrix = _as_matrix(candidates, dimension=q.size)
    query_norm = _norms(q[np.newaxis, :])[0]
    with np.errstate(invalid="ignore", over="ignore"):
        scores = (matrix @ q) / (_norms(matrix) * query_norm)
    return _checked(scores)


def pairwise_similarities(vectors: Sequence[Vector]) -> list[float]:
    """
    Similarities between each vector and its successor.

    Returns N-1 scores for N vectors; fewer than two vectors yield [].
    """
    if len(vectors) < 2:
        return []
    matrix = _as_matrix(vectors)
    norms = _norms(matrix)
    with np.errstate(invalid="ignore", over="ignore"):
        dots = np.einsum("ij,ij->i", matrix[:-1], matrix[1:])
        scores = dots / (norms[:-1] * norms[1:])
    return _checked(scores).tolist()


def percentile(values: Sequence[float], p: float) -> float:
    """
    Percentile by linear interpolation between closest ranks.

    Args:
        values: Non-empty sample
        p: Fraction in [0.0, 1.0]; 0 gives the minimum, 1 the maximum

    Returns:
        float: Interpolated percentile value

    Raises:
        ValueError: Empty input or p outside [0, 1]
    """
    if not len(values):
        raise ValueError("percentile of empty sequence")
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"percentile must be between 0.0 and 1.0, got {p}")
    return float(np.percentile(np.asarray(values, dtype=np.float64), p * 100, method="linear"))


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if not len(values):
        return 0.0
    return float(np.mean(values))
