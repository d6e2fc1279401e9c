from __future__ import annotations

import logging
from typing import List

from .embeddings import EmbeddingGenerator
from .models import SimilarityResult
from .storage import EmbeddingStore

_log = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.5
TOP_K = 4


def find_relevant_content(
    query: str,
    generator: EmbeddingGenerator,
    store: EmbeddingStore,
    *,
    min_similarity: float = SIMILARITY_THRESHOLD,
    limit: int = TOP_K,
) -> List[SimilarityResult]:
    """
    Return the stored chunks most similar to ``query``.

    The query is embedded, then the store scores every record by cosine
    similarity, keeps those strictly above ``min_similarity`` and returns at
    most ``limit`` of them in descending similarity order.
    """
    query_vector = generator.embed_query(query)
    results = store.search(query_vector, min_similarity=min_similarity, limit=limit)

    _log.info(
        "Retrieved %d chunks (threshold=%.2f, limit=%d) for query: %s",
        len(results),
        min_similarity,
        limit,
        query[:80],
    )
    return results


__all__ = ["find_relevant_content", "SIMILARITY_THRESHOLD", "TOP_K"]
