"""
Core embedding and retrieval logic for resource-rag.

This package contains:
- Data models for embedded chunks and similarity results
- Period-based chunking of resource text
- Embedding generation (OpenAI or local BGE-M3)
- Vector stores (in-memory numpy scan, Qdrant HNSW index)
- Cosine similarity retrieval of the most relevant chunks
"""
