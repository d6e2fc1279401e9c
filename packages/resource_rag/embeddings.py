from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol, Sequence, Union

from openai import OpenAI, OpenAIError

from .chunking import generate_chunks
from .config import RagSettings
from .errors import ServiceError, ValidationError
from .models import EmbeddedChunk

_log = logging.getLogger(__name__)

# Literal two-character sequence (backslash + "n"), not a newline character.
_ESCAPED_NEWLINE = "\\n"


class EmbeddingProvider(Protocol):
    """An embedding-model service mapping texts to fixed-length vectors."""

    def embed(self, texts: Union[str, Sequence[str]], model: str) -> List[List[float]]:
        """Return one vector per input text, in input order."""
        ...


class OpenAIEmbeddingProvider:
    """Embedding provider backed by the OpenAI embeddings API."""

    def __init__(
        self,
        client: OpenAI | None = None,
        api_key: str | None = None,
        dimensions: int | None = None,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._dimensions = dimensions

    def _get_client(self) -> OpenAI:
        # Created lazily; missing credentials surface on the first request.
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def embed(self, texts: Union[str, Sequence[str]], model: str) -> List[List[float]]:
        payload: Union[str, List[str]] = texts if isinstance(texts, str) else list(texts)
        kwargs: Dict[str, Any] = {"model": model, "input": payload}
        # ada-002 rejects the dimensions parameter; only v3 models accept it.
        if self._dimensions is not None and model.startswith("text-embedding-3"):
            kwargs["dimensions"] = self._dimensions

        try:
            response = self._get_client().embeddings.create(**kwargs)
        except OpenAIError as exc:
            raise ServiceError(f"OpenAI embedding request failed: {exc}") from exc

        data = sorted(response.data, key=lambda item: item.index)
        _log.debug(
            "OpenAI returned %d embeddings (model=%s, usage=%s tokens)",
            len(data),
            model,
            getattr(response.usage, "total_tokens", "?"),
        )
        return [list(item.embedding) for item in data]


class BGEM3EmbeddingProvider:
    """Local dense embeddings from a BGE-M3 model (requires the `local` extra)."""

    def __init__(self, batch_size: int = 16, max_length: int = 8192) -> None:
        self.batch_size = batch_size
        self.max_length = max_length
        self._models: Dict[str, Any] = {}

    @staticmethod
    def _get_device() -> str:
        """Return device string, prefer GPU when available."""
        import torch

        if torch.cuda.is_available():
            return "cuda"
        return "cpu"

    def get_model(self, model: str) -> Any:
        """Lazily load the BGE-M3 model for the given name."""
        if model in self._models:
            return self._models[model]

        from FlagEmbedding import BGEM3FlagModel

        device = self._get_device()
        use_fp16 = device == "cuda"
        _log.info("Loading BGEM3FlagModel '%s' on device=%s (fp16=%s)", model, device, use_fp16)
        self._models[model] = BGEM3FlagModel(model, use_fp16=use_fp16, device=device)
        return self._models[model]

    def embed(self, texts: Union[str, Sequence[str]], model: str) -> List[List[float]]:
        batch = [texts] if isinstance(texts, str) else list(texts)
        if not batch:
            raise ServiceError("BGE-M3 cannot embed an empty batch")

        try:
            outputs = self.get_model(model).encode(
                batch,
                batch_size=self.batch_size,
                max_length=self.max_length,
                return_dense=True,
                return_sparse=False,
                return_colbert_vecs=False,
            )
        except Exception as exc:
            raise ServiceError(f"BGE-M3 encoding failed: {exc}") from exc

        return [[float(x) for x in vec] for vec in outputs["dense_vecs"]]


class EmbeddingGenerator:
    """
    Turn chunks and queries into embedding vectors.

    The model identifier is fixed at construction. Every call maps to exactly
    one provider request; there is no caching and no retry, so a failed
    request surfaces to the caller as ``ServiceError``.
    """

    def __init__(self, provider: EmbeddingProvider, model: str) -> None:
        self.provider = provider
        self.model = model

    def embed_many(self, chunks: Sequence[str]) -> List[EmbeddedChunk]:
        """Embed all chunks in a single batched request, zipped positionally."""
        chunks = list(chunks)
        vectors = self.provider.embed(chunks, model=self.model)
        if len(vectors) != len(chunks):
            raise ServiceError(
                f"Embedding service returned {len(vectors)} vectors for {len(chunks)} inputs"
            )

        _log.info("Embedded %d chunks with model '%s'", len(chunks), self.model)
        return [
            EmbeddedChunk(content=chunk, embedding=vector)
            for chunk, vector in zip(chunks, vectors)
        ]

    def embed_query(self, text: str) -> List[float]:
        """Embed a single query string."""
        normalized = normalize_query(text)
        vectors = self.provider.embed(normalized, model=self.model)
        if len(vectors) != 1:
            raise ServiceError(f"Embedding service returned {len(vectors)} vectors for one query")
        return vectors[0]

    def generate_embeddings(self, text: str) -> List[EmbeddedChunk]:
        """Chunk a whole resource text and embed every chunk."""
        chunks = generate_chunks(text)
        if not chunks:
            raise ValidationError("Resource text is empty; nothing to embed")
        return self.embed_many(chunks)


def normalize_query(text: str) -> str:
    """Replace literal backslash-n sequences with a single space."""
    return text.replace(_ESCAPED_NEWLINE, " ")


def get_embedding_provider(settings: RagSettings) -> EmbeddingProvider:
    """Return the embedding provider selected in settings."""
    if settings.embedding_provider == "bge-m3":
        return BGEM3EmbeddingProvider()
    return OpenAIEmbeddingProvider(
        api_key=settings.openai_api_key,
        dimensions=settings.embedding_dimensions,
    )


def get_embedding_generator(settings: RagSettings) -> EmbeddingGenerator:
    """Build an EmbeddingGenerator for the configured provider and model."""
    return EmbeddingGenerator(get_embedding_provider(settings), model=settings.embedding_model)


__all__ = [
    "BGEM3EmbeddingProvider",
    "EmbeddingGenerator",
    "EmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "get_embedding_generator",
    "get_embedding_provider",
    "normalize_query",
]
