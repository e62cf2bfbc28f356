"""Deterministic hash-based embedding provider.

Produces a unit vector seeded from the SHA-256 digest of the text. The
vectors are stable across runs and processes but carry no semantic meaning:
identical texts collide, similar texts do not land near each other. This is
the default so the pipeline runs offline; swap in a real provider for
meaningful retrieval quality.
"""

from __future__ import annotations

import hashlib
import logging

import numpy as np

from tender_rag.embeddings.base import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_DIM = 1536


class HashEmbeddingProvider(EmbeddingProvider):
    """Placeholder embeddings derived from a text hash."""

    def __init__(self, dimension: int = DEFAULT_DIM):
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._dimension = dimension

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        return [self._hash_embed(t) for t in texts]

    def embed_query(self, query: str) -> list[float]:
        return self._hash_embed(query)

    @property
    def dimension(self) -> int:
        return self._dimension

    def _hash_embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise ValueError("Cannot generate embedding for empty text")
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        rng = np.random.default_rng(int.from_bytes(digest, "big"))
        vec = rng.standard_normal(self._dimension).astype(np.float32)
        vec /= np.linalg.norm(vec)
        return vec.tolist()
