"""Ollama embedding provider for offline deployments with a local model server.

Batches go to ``/api/embed``; servers that predate it get one
``/api/embeddings`` call per text. Every returned vector is checked against
the configured dimension so a model swap cannot silently corrupt the index.
"""

from __future__ import annotations

import logging

import httpx

from tender_rag.embeddings.base import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_DIM = 768


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embed tender chunks through a local Ollama server."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        dimension: int = DEFAULT_DIM,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.model = model
        self._dimension = dimension
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"), timeout=timeout, transport=transport
        )

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        resp = self._client.post("/api/embed", json={"model": self.model, "input": texts})
        if resp.status_code == 404:
            logger.debug("Server has no /api/embed, embedding %d texts one by one", len(texts))
            return [self.embed_query(text) for text in texts]
        resp.raise_for_status()
        return [self._checked(vector) for vector in resp.json()["embeddings"]]

    def embed_query(self, query: str) -> list[float]:
        resp = self._client.post("/api/embeddings", json={"model": self.model, "prompt": query})
        resp.raise_for_status()
        return self._checked(resp.json()["embedding"])

    @property
    def dimension(self) -> int:
        return self._dimension

    def _checked(self, vector: list[float]) -> list[float]:
        if len(vector) != self._dimension:
            raise ValueError(
                f"{self.model} returned {len(vector)}-dim vectors, expected {self._dimension}"
            )
        return vector
