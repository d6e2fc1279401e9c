"""
Shared test fixtures and configuration for pytest.
"""

import re
from typing import List, Sequence, Union

import pytest

from resource_rag.embeddings import EmbeddingGenerator
from resource_rag.errors import ServiceError
from resource_rag.knowledge_base import KnowledgeBase
from resource_rag.storage import InMemoryEmbeddingStore


# ============================================================================
# Fake embedding service
# ============================================================================

# Words mapped onto shared "concept" dimensions so that related words
# (e.g. "blue" and "color") point in the same direction.
CONCEPTS = {
    "sky": 0,
    "blue": 1,
    "color": 1,
    "water": 2,
    "boils": 3,
    "degrees": 4,
    "dogs": 5,
    "mammals": 6,
    "stock": 7,
    "market": 8,
    "trends": 9,
}
BIAS_DIM = 10
DIMENSIONS = 11

SKY_TEXT = "The sky is blue. Water boils at 100 degrees. Dogs are mammals."


def concept_vector(text: str) -> List[float]:
    """Deterministic bag-of-concepts vector with a constant bias component."""
    vec = [0.0] * DIMENSIONS
    for word in re.findall(r"[a-z]+", text.lower()):
        idx = CONCEPTS.get(word)
        if idx is not None:
            vec[idx] += 1.0
    vec[BIAS_DIM] = 1.0
    return vec


class FakeEmbeddingProvider:
    """Records every call and returns concept vectors."""

    def __init__(self) -> None:
        self.calls: list = []

    def embed(self, texts: Union[str, Sequence[str]], model: str) -> List[List[float]]:
        self.calls.append((texts, model))
        batch = [texts] if isinstance(texts, str) else list(texts)
        if not batch:
            raise ServiceError("empty input")
        return [concept_vector(t) for t in batch]


class FailingEmbeddingProvider:
    def embed(self, texts, model):
        raise ServiceError("rate limited")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def fake_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def generator(fake_provider) -> EmbeddingGenerator:
    return EmbeddingGenerator(fake_provider, model="test-embedding-model")


@pytest.fixture
def memory_store() -> InMemoryEmbeddingStore:
    return InMemoryEmbeddingStore()


@pytest.fixture
def qdrant_store():
    """QdrantEmbeddingStore running in-process (qdrant-client local mode)."""
    from qdrant_client import QdrantClient

    from resource_rag.indexing import QdrantEmbeddingStore

    client = QdrantClient(location=":memory:")
    yield QdrantEmbeddingStore(client, collection_name="test_embeddings", batch_size=2)
    client.close()


@pytest.fixture(params=["memory", "qdrant"])
def any_store(request):
    """Run a test against both store implementations."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def knowledge_base(generator, memory_store) -> KnowledgeBase:
    return KnowledgeBase(generator, memory_store)
