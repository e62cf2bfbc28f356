"""Chunk store interface shared by the FAISS and Qdrant backends.

Every record carries ``ChunkMetadata``; a tender's chunk set is addressed by
its ``source_id`` so re-ingestion can replace it wholesale. Searches may be
scoped with a ``MetadataFilter`` (one tender, or published tenders only).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from tender_rag.vectorstore.schemas import MetadataFilter, SearchResult, VectorRecord


class VectorStore(ABC):
    """Similarity index over tender chunks."""

    @abstractmethod
    def add(self, records: list[VectorRecord]) -> int:
        """Insert chunk records; returns how many were stored."""

    @abstractmethod
    def search(
        self,
        query_embedding: list[float],
        top_k: int = 10,
        metadata_filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        """Return up to ``top_k`` chunks nearest to ``query_embedding``, best first.

        With a filter, only matching chunks are ranked, so a scoped query
        still returns ``top_k`` results when enough matching chunks exist.
        """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Vector length every added record must have."""

    @abstractmethod
    def count(self) -> int:
        """Number of stored chunks."""

    @abstractmethod
    def delete(self, ids: list[str]) -> int:
        """Delete chunks by record id; unknown ids are ignored."""

    @abstractmethod
    def delete_source(self, source_id: str) -> int:
        """Delete the whole chunk set of one tender; returns the count removed."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every chunk."""

    def save(self, path: str) -> None:
        """Persist to ``path``; only local backends support this."""
        raise NotImplementedError(f"{type(self).__name__} cannot be saved to disk")

    def load(self, path: str) -> None:
        """Restore from ``path``; only local backends support this."""
        raise NotImplementedError(f"{type(self).__name__} cannot be loaded from disk")
