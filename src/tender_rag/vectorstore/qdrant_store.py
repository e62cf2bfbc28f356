"""Qdrant vector store: production-grade with native payload filtering.

Requires the ``qdrant`` extra. Supports both Qdrant Cloud and local instances.
"""

from __future__ import annotations

import logging

from tender_rag.vectorstore.base import VectorStore
from tender_rag.vectorstore.schemas import (
    MetadataFilter,
    SearchResult,
    VectorRecord,
    metadata_from_dict,
    metadata_to_dict,
)

logger = logging.getLogger(__name__)


class QdrantStore(VectorStore):
    """Qdrant-backed vector store."""

    def __init__(
        self,
        collection_name: str = "tender_chunks",
        dimension: int = 1536,
        url: str | None = None,
        api_key: str | None = None,
        path: str | None = None,
    ):
        try:
            from qdrant_client import QdrantClient, models
        except ImportError as exc:
            raise ImportError(
                "qdrant-client required: pip install tender-rag[qdrant]"
            ) from exc

        self._models = models
        self._collection_name = collection_name
        self._dimension = dimension

        # Connect to Qdrant
        if url:
            self._client = QdrantClient(url=url, api_key=api_key)
        elif path:
            self._client = QdrantClient(path=path)
        else:
            # In-memory for testing
            self._client = QdrantClient(":memory:")

        collections = [c.name for c in self._client.get_collections().collections]
        if collection_name not in collections:
            self._create_collection()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        points = []
        for record in records:
            payload = metadata_to_dict(record.metadata)
            payload["text"] = record.text
            points.append(self._models.PointStruct(
                id=record.id,
                vector=record.embedding,
                payload=payload,
            ))

        self._client.upsert(
            collection_name=self._collection_name,
            points=points,
        )

        logger.info("QdrantStore added %d records", len(records))
        return len(records)

    def search(
        self,
        query_embedding: list[float],
        top_k: int = 10,
        metadata_filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        if top_k <= 0:
            return []

        response = self._client.query_points(
            collection_name=self._collection_name,
            query=query_embedding,
            limit=top_k,
            query_filter=self._build_filter(metadata_filter),
        )

        results: list[SearchResult] = []
        for point in response.points:
            payload = dict(point.payload or {})
            text = payload.pop("text", "")
            results.append(SearchResult(
                id=str(point.id),
                text=text,
                score=point.score if point.score is not None else 0.0,
                metadata=metadata_from_dict(payload),
            ))

        return results

    @property
    def dimension(self) -> int:
        return self._dimension

    def count(self) -> int:
        return self._client.count(self._collection_name, exact=True).count

    def delete(self, ids: list[str]) -> int:
        if not ids:
            return 0
        existing = self._client.retrieve(self._collection_name, ids=ids)
        self._client.delete(
            collection_name=self._collection_name,
            points_selector=self._models.PointIdsList(points=ids),
        )
        return len(existing)

    def delete_source(self, source_id: str) -> int:
        source_filter = self._build_filter(MetadataFilter(source_id=source_id))
        deleted = self._client.count(
            self._collection_name, count_filter=source_filter, exact=True
        ).count
        if deleted:
            self._client.delete(
                collection_name=self._collection_name,
                points_selector=self._models.FilterSelector(filter=source_filter),
            )
            logger.info("QdrantStore deleted %d records for %s", deleted, source_id)
        return deleted

    def clear(self) -> None:
        self._client.delete_collection(self._collection_name)
        self._create_collection()

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create_collection(self) -> None:
        self._client.create_collection(
            collection_name=self._collection_name,
            vectors_config=self._models.VectorParams(
                size=self._dimension,
                distance=self._models.Distance.COSINE,
            ),
        )
        logger.info("Created Qdrant collection '%s' (dim=%d)", self._collection_name, self._dimension)

    def _build_filter(self, metadata_filter: MetadataFilter | None):
        if metadata_filter is None:
            return None

        must = [
            self._models.FieldCondition(key=key, match=self._models.MatchValue(value=value))
            for key, value in metadata_filter.to_dict().items()
        ]
        must_not = []
        if metadata_filter.exclude_source_id:
            must_not.append(self._models.FieldCondition(
                key="source_id",
                match=self._models.MatchValue(value=metadata_filter.exclude_source_id),
            ))

        if not must and not must_not:
            return None
        return self._models.Filter(must=must or None, must_not=must_not or None)
