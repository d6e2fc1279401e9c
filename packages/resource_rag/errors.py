from __future__ import annotations


class RagError(Exception):
    """Base class for all resource-rag failures."""


class ServiceError(RagError):
    """The embedding service was unreachable, rate-limited or rejected the input."""


class StorageError(RagError):
    """The vector store failed to persist, delete or query records."""


class ValidationError(RagError):
    """Input cannot be processed, e.g. text that yields no chunks."""


__all__ = ["RagError", "ServiceError", "StorageError", "ValidationError"]
