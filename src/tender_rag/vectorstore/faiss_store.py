"""FAISS vector store: local, zero infrastructure.

Uses a flat inner-product index over L2-normalized vectors (cosine
similarity) with a parallel record list for metadata filtering. Raw vectors
are kept alongside the index so deletes can rebuild it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np

from tender_rag.vectorstore.base import VectorStore
from tender_rag.vectorstore.schemas import (
    MetadataFilter,
    SearchResult,
    VectorRecord,
    metadata_from_dict,
    metadata_to_dict,
)

logger = logging.getLogger(__name__)


class FAISSStore(VectorStore):
    """FAISS-backed vector store with metadata filtering."""

    def __init__(self, dimension: int = 1536):
        try:
            import faiss
        except ImportError as exc:
            raise ImportError(
                "faiss-cpu required: pip install tender-rag[faiss]"
            ) from exc

        self._faiss = faiss
        self._dimension = dimension
        self._index = faiss.IndexFlatIP(dimension)  # Inner product (cosine after normalization)
        self._records: list[dict] = []  # position in index -> {id, text, metadata}
        self._vectors = np.empty((0, dimension), dtype=np.float32)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        vectors = np.array([r.embedding for r in records], dtype=np.float32)
        if vectors.shape[1] != self._dimension:
            raise ValueError(
                f"Embedding dimension {vectors.shape[1]} does not match store dimension {self._dimension}"
            )
        # L2-normalize for cosine similarity via inner product
        self._faiss.normalize_L2(vectors)

        self._index.add(vectors)
        self._vectors = np.vstack([self._vectors, vectors])
        self._records.extend(
            {"id": r.id, "text": r.text, "metadata": r.metadata} for r in records
        )

        logger.info("FAISSStore added %d records (total: %d)", len(records), self.count())
        return len(records)

    def search(
        self,
        query_embedding: list[float],
        top_k: int = 10,
        metadata_filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        if self._index.ntotal == 0 or top_k <= 0:
            return []

        query_vec = np.array([query_embedding], dtype=np.float32)
        self._faiss.normalize_L2(query_vec)

        # A filtered search scans the whole index so scoped queries never starve
        fetch_k = self._index.ntotal if metadata_filter else min(top_k, self._index.ntotal)

        scores, indices = self._index.search(query_vec, fetch_k)

        results: list[SearchResult] = []
        for score, idx in zip(scores[0], indices[0], strict=True):
            if idx == -1:
                continue
            record = self._records[int(idx)]

            if metadata_filter and not metadata_filter.matches(record["metadata"]):
                continue

            results.append(SearchResult(
                id=record["id"],
                text=record["text"],
                score=float(score),
                metadata=record["metadata"],
            ))

            if len(results) >= top_k:
                break

        return results

    @property
    def dimension(self) -> int:
        return self._dimension

    def count(self) -> int:
        return self._index.ntotal

    def delete(self, ids: list[str]) -> int:
        id_set = set(ids)
        return self._rebuild_without(lambda record: record["id"] in id_set)

    def delete_source(self, source_id: str) -> int:
        return self._rebuild_without(lambda record: record["metadata"].source_id == source_id)

    def clear(self) -> None:
        self._index = self._faiss.IndexFlatIP(self._dimension)
        self._records = []
        self._vectors = np.empty((0, self._dimension), dtype=np.float32)

    def save(self, path: str) -> None:
        """Save FAISS index and metadata to disk."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        self._faiss.write_index(self._index, str(p / "index.faiss"))

        serializable = [
            {
                "id": record["id"],
                "text": record["text"],
                "metadata": metadata_to_dict(record["metadata"]),
            }
            for record in self._records
        ]
        with open(p / "metadata.json", "w", encoding="utf-8") as f:
            json.dump({"dimension": self._dimension, "records": serializable}, f, ensure_ascii=False)

        logger.info("FAISSStore saved to %s (%d records)", path, self.count())

    def load(self, path: str) -> None:
        """Load FAISS index and metadata from disk."""
        p = Path(path)

        self._index = self._faiss.read_index(str(p / "index.faiss"))
        self._dimension = self._index.d

        with open(p / "metadata.json", encoding="utf-8") as f:
            data = json.load(f)

        self._records = [
            {
                "id": record["id"],
                "text": record["text"],
                "metadata": metadata_from_dict(record["metadata"]),
            }
            for record in data["records"]
        ]
        total = self._index.ntotal
        self._vectors = (
            self._index.reconstruct_n(0, total)
            if total
            else np.empty((0, self._dimension), dtype=np.float32)
        )
        logger.info("FAISSStore loaded from %s (%d records)", path, self.count())

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _rebuild_without(self, should_drop) -> int:
        # IndexFlatIP has no native delete; rebuild from the kept vectors.
        keep = [i for i, record in enumerate(self._records) if not should_drop(record)]
        deleted = len(self._records) - len(keep)
        if deleted == 0:
            return 0

        self._records = [self._records[i] for i in keep]
        self._vectors = self._vectors[keep] if keep else np.empty((0, self._dimension), dtype=np.float32)
        self._index = self._faiss.IndexFlatIP(self._dimension)
        if keep:
            self._index.add(np.ascontiguousarray(self._vectors))

        logger.info("FAISSStore deleted %d records (total: %d)", deleted, self.count())
        return deleted
