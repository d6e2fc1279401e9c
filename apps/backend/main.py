from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from resource_rag.errors import RagError, ServiceError, StorageError, ValidationError
from resource_rag.knowledge_base import KnowledgeBase, build_knowledge_base
from resource_rag.models import IngestResult, SimilarityResult

_log = logging.getLogger(__name__)

app = FastAPI(title="Resource RAG API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ResourceRequest(BaseModel):
    content: str
    resource_id: Optional[str] = None


class QueryRequest(BaseModel):
    question: str = Field(..., min_length=1)


@lru_cache(maxsize=1)
def get_knowledge_base() -> KnowledgeBase:
    """Build the knowledge base once per process from environment settings."""
    return build_knowledge_base()


def _to_http_error(exc: RagError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    _log.exception("Request failed")
    if isinstance(exc, ServiceError):
        return HTTPException(status_code=502, detail=f"Embedding service failed: {exc}")
    if isinstance(exc, StorageError):
        return HTTPException(status_code=503, detail=f"Vector store failed: {exc}")
    return HTTPException(status_code=500, detail=str(exc))


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/resources", response_model=IngestResult, status_code=201)
def create_resource(
    req: ResourceRequest,
    kb: KnowledgeBase = Depends(get_knowledge_base),
) -> IngestResult:
    try:
        return kb.add_resource(req.content, resource_id=req.resource_id)
    except RagError as exc:
        raise _to_http_error(exc) from exc


@app.delete("/resources/{resource_id}")
def delete_resource(
    resource_id: str,
    kb: KnowledgeBase = Depends(get_knowledge_base),
) -> dict[str, int]:
    try:
        removed = kb.delete_resource(resource_id)
    except RagError as exc:
        raise _to_http_error(exc) from exc
    return {"deleted": removed}


@app.post("/query", response_model=list[SimilarityResult])
def query(
    req: QueryRequest,
    kb: KnowledgeBase = Depends(get_knowledge_base),
) -> list[SimilarityResult]:
    try:
        return kb.find_relevant_content(req.question)
    except RagError as exc:
        raise _to_http_error(exc) from exc


__all__ = ["app"]
