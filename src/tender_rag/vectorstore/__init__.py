"""Vector store backends: FAISS (local) and Qdrant (production)."""

from tender_rag.vectorstore.base import VectorStore
from tender_rag.vectorstore.factory import available_stores, get_vector_store
from tender_rag.vectorstore.schemas import MetadataFilter, SearchResult, VectorRecord

__all__ = [
    "MetadataFilter",
    "SearchResult",
    "VectorRecord",
    "VectorStore",
    "available_stores",
    "get_vector_store",
]
