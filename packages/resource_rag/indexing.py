from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from qdrant_client import QdrantClient
from qdrant_client.http.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    HnswConfigDiff,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from .config import RagSettings
from .errors import StorageError, ValidationError
from .models import EmbeddingRecord, SimilarityResult
from .storage import check_nonzero

_log = logging.getLogger(__name__)

VECTOR_NAME = "dense"


@dataclass(frozen=True)
class QdrantSettings:
    host: str = "localhost"
    port: int = 6333
    prefer_grpc: bool = False
    path: Optional[Path] = None

    @classmethod
    def from_rag_settings(cls, settings: RagSettings) -> "QdrantSettings":
        return cls(
            host=settings.qdrant_host,
            port=settings.qdrant_port,
            prefer_grpc=settings.qdrant_prefer_grpc,
            path=settings.qdrant_path,
        )


def get_qdrant_client(settings: QdrantSettings | None = None) -> QdrantClient:
    """Return a Qdrant client configured from settings or defaults."""
    if settings is None:
        settings = QdrantSettings()
    if settings.path is not None:
        return QdrantClient(path=str(settings.path))
    return QdrantClient(
        host=settings.host,
        port=settings.port,
        grpc_port=6334,
        prefer_grpc=settings.prefer_grpc,
        timeout=60.0,
    )


def _batch_iter(seq: Sequence, batch_size: int) -> Iterable[Sequence]:
    for i in range(0, len(seq), batch_size):
        yield seq[i : i + batch_size]


def _resource_filter(resource_id: str) -> Filter:
    return Filter(must=[FieldCondition(key="resource_id", match=MatchValue(value=resource_id))])


class QdrantEmbeddingStore:
    """
    Embedding store backed by a Qdrant collection.

    Vectors live under the named vector ``dense`` with cosine distance and an
    HNSW index, so search latency stays sublinear in the number of records.
    The collection is created on the first insert, sized from that batch.
    """

    def __init__(
        self,
        client: QdrantClient,
        collection_name: str = "embeddings",
        hnsw_m: int = 16,
        hnsw_ef_construct: int = 64,
        batch_size: int = 64,
    ) -> None:
        self.client = client
        self.collection_name = collection_name
        self.hnsw_m = hnsw_m
        self.hnsw_ef_construct = hnsw_ef_construct
        self.batch_size = batch_size

    def _collection_exists(self) -> bool:
        return self.client.collection_exists(self.collection_name)

    def _ensure_collection(self, dim: int) -> None:
        """Create collection with a cosine HNSW-indexed vector if it does not exist."""
        if self._collection_exists():
            return

        _log.info("Creating Qdrant collection '%s' (dim=%d)", self.collection_name, dim)
        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config={VECTOR_NAME: VectorParams(size=dim, distance=Distance.COSINE)},
            hnsw_config=HnswConfigDiff(m=self.hnsw_m, ef_construct=self.hnsw_ef_construct),
        )
        # Keyword index for cascading deletes by resource.
        self.client.create_payload_index(
            collection_name=self.collection_name,
            field_name="resource_id",
            field_schema=PayloadSchemaType.KEYWORD,
        )

    def _collection_dim(self) -> int:
        info = self.client.get_collection(self.collection_name)
        return info.config.params.vectors[VECTOR_NAME].size

    def insert(self, records: Sequence[EmbeddingRecord]) -> None:
        if not records:
            return

        dims = {len(r.embedding) for r in records}
        if len(dims) != 1:
            raise ValidationError(f"Vector dimensions must match within a batch: {sorted(dims)}")
        dim = dims.pop()
        check_nonzero(records)

        try:
            self._ensure_collection(dim)
            existing_dim = self._collection_dim()
        except Exception as exc:
            raise StorageError(f"Qdrant collection setup failed: {exc}") from exc
        if existing_dim != dim:
            raise ValidationError(f"Vector dimensions must match: {dim} != {existing_dim}")

        for batch in _batch_iter(list(records), self.batch_size):
            points = [
                PointStruct(
                    id=rec.id,
                    vector={VECTOR_NAME: rec.embedding},
                    payload={"resource_id": rec.resource_id, "content": rec.content},
                )
                for rec in batch
            ]
            _log.info("Upserting %d points to Qdrant...", len(points))
            try:
                self.client.upsert(collection_name=self.collection_name, points=points, wait=True)
            except Exception as exc:
                raise StorageError(f"Qdrant upsert failed: {exc}") from exc

    def delete_resource(self, resource_id: str) -> int:
        try:
            if not self._collection_exists():
                return 0
            removed = self.client.count(
                collection_name=self.collection_name,
                count_filter=_resource_filter(resource_id),
                exact=True,
            ).count
            self.client.delete(
                collection_name=self.collection_name,
                points_selector=FilterSelector(filter=_resource_filter(resource_id)),
                wait=True,
            )
        except Exception as exc:
            raise StorageError(f"Qdrant delete failed for resource {resource_id}: {exc}") from exc

        _log.info("Deleted %d points of resource %s", removed, resource_id)
        return removed

    def search(
        self,
        query_vector: Sequence[float],
        min_similarity: float,
        limit: int,
    ) -> List[SimilarityResult]:
        try:
            if not self._collection_exists():
                return []
            existing_dim = self._collection_dim()
        except Exception as exc:
            raise StorageError(f"Qdrant collection lookup failed: {exc}") from exc
        if len(query_vector) != existing_dim:
            raise ValidationError(
                f"Vector dimensions must match: {len(query_vector)} != {existing_dim}"
            )

        try:
            response = self.client.query_points(
                collection_name=self.collection_name,
                query=list(query_vector),
                using=VECTOR_NAME,
                score_threshold=min_similarity,
                limit=limit,
                with_payload=True,
            )
        except Exception as exc:
            raise StorageError(f"Qdrant query failed: {exc}") from exc

        results: list[SimilarityResult] = []
        for point in response.points:
            # score_threshold is inclusive; the cut-off here is strict.
            if point.score <= min_similarity:
                continue
            payload = point.payload or {}
            # Scores are float32 and can overshoot the cosine range slightly.
            similarity = min(1.0, max(-1.0, float(point.score)))
            results.append(SimilarityResult(content=payload["content"], similarity=similarity))
        return results

    def count(self) -> int:
        try:
            if not self._collection_exists():
                return 0
            return self.client.count(collection_name=self.collection_name, exact=True).count
        except Exception as exc:
            raise StorageError(f"Qdrant count failed: {exc}") from exc


def get_qdrant_store(settings: RagSettings, client: QdrantClient | None = None) -> QdrantEmbeddingStore:
    """Build a QdrantEmbeddingStore from settings."""
    if client is None:
        client = get_qdrant_client(QdrantSettings.from_rag_settings(settings))
    return QdrantEmbeddingStore(
        client,
        collection_name=settings.collection_name,
        hnsw_m=settings.hnsw_m,
        hnsw_ef_construct=settings.hnsw_ef_construct,
        batch_size=settings.upsert_batch_size,
    )


__all__ = [
    "QdrantEmbeddingStore",
    "QdrantSettings",
    "get_qdrant_client",
    "get_qdrant_store",
    "VECTOR_NAME",
]
