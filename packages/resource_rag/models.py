from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class EmbeddedChunk(BaseModel):
    """A chunk of resource text paired with its embedding vector."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., min_length=1, description="Chunk text that was embedded.")
    embedding: List[float] = Field(..., description="Vector returned by the embedding model.")


class EmbeddingRecord(BaseModel):
    """Persisted form of an embedded chunk."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Generated unique identifier of the record.")
    resource_id: str = Field(
        ...,
        description="Identifier of the parent resource; deleting it deletes this record.",
    )
    content: str = Field(..., min_length=1, description="Chunk text.")
    embedding: List[float] = Field(..., description="Embedding vector of the chunk text.")


class SimilarityResult(BaseModel):
    """A retrieved chunk and its cosine similarity to the query."""

    content: str
    similarity: float = Field(..., description="Cosine similarity in [-1, 1].")


class IngestResult(BaseModel):
    """Outcome of embedding and storing one resource."""

    resource_id: str
    chunk_count: int = Field(..., ge=0)


__all__ = ["EmbeddedChunk", "EmbeddingRecord", "SimilarityResult", "IngestResult"]
