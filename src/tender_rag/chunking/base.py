"""Abstract base class for all chunkers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace

from tender_rag.chunking.schemas import Chunk, ChunkMetadata
from tender_rag.chunking.scoring import extract_key_terms, score_importance


class BaseChunker(ABC):
    """Interface for document chunking strategies."""

    @abstractmethod
    def chunk(self, text: str, metadata: ChunkMetadata | None = None) -> list[Chunk]:
        """Split text into chunks.

        Args:
            text: Full text to split.
            metadata: Document/section metadata propagated to each chunk.

        Returns:
            List of ``Chunk`` objects. Empty or blank text yields ``[]``.
        """

    @classmethod
    def strategy_name(cls) -> str:
        """Return human-readable strategy name."""
        return cls.__name__

    @staticmethod
    def _make_chunk(content: str, meta: ChunkMetadata, **position) -> Chunk:
        """Tag ``content`` with key-terms and importance on top of ``meta``."""
        tagged = replace(
            meta,
            key_terms=extract_key_terms(content),
            importance=score_importance(content, meta.is_mandatory),
            **position,
        )
        return Chunk(content=content, metadata=tagged)
