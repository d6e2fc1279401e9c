"""
Exact cosine similarity scoring over in-memory vectors.

Suitable for small collections; large collections should be searched
through an approximate nearest-neighbour index (see ``indexing``).
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from .errors import ValidationError


def _as_vector(values: Sequence[float]) -> np.ndarray:
    vec = np.asarray(values, dtype=np.float64)
    if vec.ndim != 1 or vec.size == 0:
        raise ValidationError("Embedding vectors must be non-empty one-dimensional sequences")
    return vec


def cosine_distance(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Return ``1 - dot(a, b) / (|a| * |b|)``.

    Raises:
        ValidationError: If the vectors differ in length or either has zero norm.
    """
    a = _as_vector(vec_a)
    b = _as_vector(vec_b)
    if a.shape != b.shape:
        raise ValidationError(f"Vector dimensions must match: {a.size} != {b.size}")

    denom = float(np.linalg.norm(a) * np.linalg.norm(b))
    if denom == 0.0:
        raise ValidationError("Cosine distance is undefined for zero vectors")
    return 1.0 - float(np.dot(a, b)) / denom


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Return ``1 - cosine_distance(a, b)``, a value in [-1, 1]."""
    return 1.0 - cosine_distance(vec_a, vec_b)


def rank_by_similarity(
    query: Sequence[float],
    matrix: np.ndarray,
    min_similarity: float,
    limit: int,
) -> List[Tuple[int, float]]:
    """
    Score every row of ``matrix`` against ``query`` and return the best rows.

    Only rows with similarity strictly above ``min_similarity`` are kept.
    Rows are ordered by descending similarity; equal scores keep row order.
    Rows with zero norm have undefined similarity and are never returned.

    Returns:
        At most ``limit`` ``(row_index, similarity)`` pairs.
    """
    q = _as_vector(query)
    if matrix.size == 0 or limit <= 0:
        return []
    if matrix.ndim != 2 or matrix.shape[1] != q.size:
        raise ValidationError(
            f"Vector dimensions must match: {q.size} != {matrix.shape[-1]}"
        )

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = (matrix @ q) / norms
    scores = np.clip(scores, -1.0, 1.0)

    # NaN (zero-norm rows) compares False and drops out here.
    candidates = np.flatnonzero(scores > min_similarity)
    order = candidates[np.argsort(-scores[candidates], kind="stable")][:limit]
    return [(int(i), float(scores[i])) for i in order]


__all__ = ["cosine_distance", "cosine_similarity", "rank_by_similarity"]
