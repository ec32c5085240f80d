"""
Binary codec for stored embeddings.

Embeddings are persisted as packed little-endian 32-bit floats and read
back as numpy arrays, ready for batch scoring.

Dependencies: numpy
System role: Embedding column serialization
"""

from typing import Sequence

import numpy as np

from semantic_kb.core.exceptions import EmbeddingParseError

STORED_DTYPE = np.dtype("<f4")


def encode_embedding(vector: Sequence[float] | np.ndarray) -> bytes:
    """Pack a vector as little-endian float32 bytes."""
    return np.asarray(vector, dtype=STORED_DTYPE).tobytes()


def decode_embedding(data: bytes, chunk_id: str | None = None) -> np.ndarray:
    """
    Unpack little-endian float32 bytes.

    Args:
        data: Stored embedding payload
        chunk_id: Row identifier for error context

    Returns:
        np.ndarray: Read-only float32 view over ``data``

    Raises:
        EmbeddingParseError: Payload length is not a multiple of 4
    """
    if len(data) % STORED_DTYPE.itemsize != 0:
        raise EmbeddingParseError(len(data), chunk_id)
    return np.frombuffer(data, dtype=STORED_DTYPE)
