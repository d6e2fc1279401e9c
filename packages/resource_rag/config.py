from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BGE_M3_MODEL = "BAAI/bge-m3"
BGE_M3_DIMENSIONS = 1024


class RagSettings(BaseSettings):
    """Configuration for embedding generation, storage and retrieval."""

    model_config = SettingsConfigDict(
        env_prefix="RAG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Embedding service
    embedding_provider: Literal["openai", "bge-m3"] = Field(
        default="openai",
        description="Which embedding service to call.",
    )
    embedding_model: str = Field(
        default="text-embedding-ada-002",
        description="Model identifier passed to the embedding service.",
    )
    embedding_dimensions: int = Field(
        default=1536,
        gt=0,
        description="Vector length produced by the embedding model.",
    )
    openai_api_key: Optional[str] = Field(
        default=None,
        description="API key; when unset the OpenAI SDK reads OPENAI_API_KEY.",
    )

    # Vector store
    store_backend: Literal["qdrant", "memory"] = Field(
        default="qdrant",
        description="Where embedding records are persisted.",
    )
    qdrant_host: str = "localhost"
    qdrant_port: int = 6333
    qdrant_path: Optional[Path] = Field(
        default=None,
        description="Directory for embedded (serverless) Qdrant storage.",
    )
    qdrant_prefer_grpc: bool = False
    collection_name: str = "embeddings"
    hnsw_m: int = Field(default=16, gt=0)
    hnsw_ef_construct: int = Field(default=64, gt=0)
    upsert_batch_size: int = Field(default=64, gt=0)

    # Retrieval
    similarity_threshold: float = Field(
        default=0.5,
        ge=-1.0,
        le=1.0,
        description="Results must score strictly above this cosine similarity.",
    )
    top_k: int = Field(
        default=4,
        ge=1,
        description="Maximum number of results returned per query.",
    )

    @model_validator(mode="after")
    def _provider_defaults(self) -> "RagSettings":
        """Use BGE-M3 model name and size unless set explicitly."""
        if self.embedding_provider == "bge-m3":
            if "embedding_model" not in self.model_fields_set:
                self.embedding_model = BGE_M3_MODEL
            if "embedding_dimensions" not in self.model_fields_set:
                self.embedding_dimensions = BGE_M3_DIMENSIONS
        return self


def get_settings() -> RagSettings:
    """Return settings read from the environment and .env."""
    return RagSettings()


__all__ = ["RagSettings", "get_settings"]
