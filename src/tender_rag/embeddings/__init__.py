"""Embedding providers for chunk and query vectors."""

from tender_rag.embeddings.base import EmbeddingProvider
from tender_rag.embeddings.factory import (
    available_providers,
    build_embedding_provider,
    get_embedding_provider,
)
from tender_rag.embeddings.hash_provider import HashEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "HashEmbeddingProvider",
    "available_providers",
    "build_embedding_provider",
    "get_embedding_provider",
]
