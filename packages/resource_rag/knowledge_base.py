from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from .config import RagSettings, get_settings
from .embeddings import EmbeddingGenerator, get_embedding_generator
from .errors import StorageError
from .models import EmbeddingRecord, IngestResult, SimilarityResult
from .retrieval import SIMILARITY_THRESHOLD, TOP_K, find_relevant_content
from .storage import EmbeddingStore, InMemoryEmbeddingStore

_log = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class KnowledgeBase:
    """Embed resources into a store and retrieve relevant chunks for queries."""

    def __init__(
        self,
        generator: EmbeddingGenerator,
        store: EmbeddingStore,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        top_k: int = TOP_K,
    ) -> None:
        self.generator = generator
        self.store = store
        self.similarity_threshold = similarity_threshold
        self.top_k = top_k

    def add_resource(self, content: str, resource_id: Optional[str] = None) -> IngestResult:
        """
        Chunk, embed and store a resource.

        Raises:
            ValidationError: If the content yields no chunks.
            ServiceError: If the embedding request fails.
            StorageError: If the records cannot be persisted.
        """
        resource_id = resource_id or _new_id()
        embedded = self.generator.generate_embeddings(content)
        records = [
            EmbeddingRecord(
                id=_new_id(),
                resource_id=resource_id,
                content=chunk.content,
                embedding=chunk.embedding,
            )
            for chunk in embedded
        ]
        try:
            self.store.insert(records)
        except StorageError:
            # Batched stores may have persisted part of the resource.
            _log.error("Storing resource %s failed, removing partial records", resource_id)
            self.store.delete_resource(resource_id)
            raise
        _log.info("Ingested resource %s (%d chunks)", resource_id, len(records))
        return IngestResult(resource_id=resource_id, chunk_count=len(records))

    def delete_resource(self, resource_id: str) -> int:
        """Remove a resource's embeddings; returns the number deleted."""
        return self.store.delete_resource(resource_id)

    def find_relevant_content(self, query: str) -> List[SimilarityResult]:
        return find_relevant_content(
            query,
            self.generator,
            self.store,
            min_similarity=self.similarity_threshold,
            limit=self.top_k,
        )


def build_knowledge_base(settings: RagSettings | None = None) -> KnowledgeBase:
    """Wire the configured embedding provider and store into a KnowledgeBase."""
    if settings is None:
        settings = get_settings()

    store: EmbeddingStore
    if settings.store_backend == "memory":
        store = InMemoryEmbeddingStore(dimensions=settings.embedding_dimensions)
    else:
        # Imported lazily so the memory backend does not need a Qdrant client.
        from .indexing import get_qdrant_store

        store = get_qdrant_store(settings)

    _log.info(
        "Knowledge base: provider=%s model=%s store=%s",
        settings.embedding_provider,
        settings.embedding_model,
        settings.store_backend,
    )
    return KnowledgeBase(
        get_embedding_generator(settings),
        store,
        similarity_threshold=settings.similarity_threshold,
        top_k=settings.top_k,
    )


__all__ = ["KnowledgeBase", "build_knowledge_base"]
