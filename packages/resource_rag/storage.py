from __future__ import annotations

import logging
import threading
from typing import List, Optional, Protocol, Sequence

import numpy as np

from .errors import ValidationError
from .models import EmbeddingRecord, SimilarityResult
from .similarity import rank_by_similarity

_log = logging.getLogger(__name__)


def check_nonzero(records: Sequence[EmbeddingRecord]) -> None:
    """Reject zero vectors, whose cosine similarity is undefined."""
    for rec in records:
        if not any(rec.embedding):
            raise ValidationError(f"Record {rec.id} has a zero embedding vector")


class EmbeddingStore(Protocol):
    """Persistent store of (content, vector, resource id) records."""

    def insert(self, records: Sequence[EmbeddingRecord]) -> None:
        ...

    def delete_resource(self, resource_id: str) -> int:
        """Delete every record of a resource and return how many were removed."""
        ...

    def search(
        self,
        query_vector: Sequence[float],
        min_similarity: float,
        limit: int,
    ) -> List[SimilarityResult]:
        """Return up to ``limit`` records scoring above ``min_similarity``, best first."""
        ...

    def count(self) -> int:
        ...


class InMemoryEmbeddingStore:
    """
    Embedding store kept in process memory and scanned exactly on search.

    The first inserted vector fixes the dimensionality of the store.
    """

    def __init__(self, dimensions: Optional[int] = None) -> None:
        self.dimensions = dimensions
        self._records: list[EmbeddingRecord] = []
        self._lock = threading.Lock()

    def _check_dimensions(self, vector: Sequence[float], expected: Optional[int] = None) -> None:
        expected = expected if expected is not None else self.dimensions
        if expected is not None and len(vector) != expected:
            raise ValidationError(f"Vector dimensions must match: {len(vector)} != {expected}")

    def insert(self, records: Sequence[EmbeddingRecord]) -> None:
        if not records:
            return
        with self._lock:
            dims = self.dimensions if self.dimensions is not None else len(records[0].embedding)
            for rec in records:
                self._check_dimensions(rec.embedding, dims)
            check_nonzero(records)
            self.dimensions = dims
            self._records.extend(records)
            total = len(self._records)
        _log.info("Stored %d records (total=%d)", len(records), total)

    def delete_resource(self, resource_id: str) -> int:
        with self._lock:
            kept = [r for r in self._records if r.resource_id != resource_id]
            removed = len(self._records) - len(kept)
            self._records = kept
        _log.info("Deleted %d records of resource %s", removed, resource_id)
        return removed

    def search(
        self,
        query_vector: Sequence[float],
        min_similarity: float,
        limit: int,
    ) -> List[SimilarityResult]:
        self._check_dimensions(query_vector)
        with self._lock:
            records = list(self._records)
        if not records:
            return []

        matrix = np.asarray([r.embedding for r in records], dtype=np.float64)
        ranked = rank_by_similarity(query_vector, matrix, min_similarity, limit)
        return [
            SimilarityResult(content=records[idx].content, similarity=score)
            for idx, score in ranked
        ]

    def count(self) -> int:
        with self._lock:
            return len(self._records)


__all__ = ["EmbeddingStore", "InMemoryEmbeddingStore", "check_nonzero"]
