"""
Vector Math - Cosine similarity and fixed-width vector codec

WHAT: Similarity scoring and float32 blob encoding for stored embeddings
WHERE: memrag/runtime/rag/vector.py - leaf utility for retrieval and caching
WHO: Retrieval scans, embedding cache, memory supersession checks
TIME: O(d) per comparison

Embeddings are persisted as little-endian float32 blobs so that a stored vector
decodes to exactly the array that was written.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

VECTOR_DTYPE = np.dtype("<f4")


def as_vector(values: Sequence[float] | np.ndarray) -> np.ndarray:
    """Coerce any float sequence to a 1-D float32 array."""
    arr = np.asarray(values, dtype=VECTOR_DTYPE)
    if arr.ndim != 1:
        raise ValueError(f"Expected a 1-D vector, got shape {arr.shape}")
    return arr


def encode_vector(vector: Sequence[float] | np.ndarray) -> bytes:
    return as_vector(vector).tobytes()


def decode_vector(blob: bytes) -> np.ndarray:
    if len(blob) % VECTOR_DTYPE.itemsize:
        raise ValueError(f"Vector blob length {len(blob)} is not a multiple of {VECTOR_DTYPE.itemsize}")
    return np.frombuffer(blob, dtype=VECTOR_DTYPE).copy()


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Cosine similarity of two equal-length vectors; 0.0 when either is all zeros."""
    v1 = np.asarray(a, dtype=np.float64)
    v2 = np.asarray(b, dtype=np.float64)
    if v1.shape != v2.shape:
        raise ValueError(f"Vector length mismatch: {v1.shape[0]} vs {v2.shape[0]}")
    norm = np.linalg.norm(v1) * np.linalg.norm(v2)
    if norm == 0:
        return 0.0
    return float(np.dot(v1, v2) / norm)


__all__ = [
    "VECTOR_DTYPE",
    "as_vector",
    "cosine_similarity",
    "decode_vector",
    "encode_vector",
]
