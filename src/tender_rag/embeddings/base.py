"""Embedding provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):
    """Turns chunk text and queries into fixed-size vectors.

    Vectors from one provider must all have ``dimension`` entries; the
    vector store is created with the same dimension.
    """

    @abstractmethod
    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed chunk texts, one vector per text in input order."""

    @abstractmethod
    def embed_query(self, query: str) -> list[float]:
        """Embed a retrieval query."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector this provider returns."""

    def embed_in_batches(self, texts: list[str], batch_size: int = 32) -> list[list[float]]:
        """Embed ``texts`` with at most ``batch_size`` texts per provider call."""
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        vectors: list[list[float]] = []
        for i in range(0, len(texts), batch_size):
            vectors.extend(self.embed_texts(texts[i : i + batch_size]))
        return vectors
