"""Data models for vector store operations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from tender_rag.chunking.schemas import Category, ChunkMetadata


@dataclass
class VectorRecord:
    """A chunk with its embedding, ready for storage."""

    id: str
    text: str
    embedding: list[float]
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass(frozen=True)
class SearchResult:
    """A single search result from the vector store."""

    id: str
    text: str
    score: float
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass
class MetadataFilter:
    """Filter search results by metadata fields.

    All specified fields must match (AND logic). ``exclude_source_id``
    removes one document from otherwise-matching results.
    """

    source_id: str | None = None
    exclude_source_id: str | None = None
    published_only: bool = False
    category: Category | None = None

    def matches(self, meta: ChunkMetadata) -> bool:
        """Check if a chunk's metadata matches this filter."""
        if self.source_id and meta.source_id != self.source_id:
            return False
        if self.exclude_source_id and meta.source_id == self.exclude_source_id:
            return False
        if self.published_only and not meta.published:
            return False
        return not (self.category and meta.category != self.category)

    def to_dict(self) -> dict[str, Any]:
        """Flat ``must`` conditions for Qdrant-style filtering."""
        d: dict[str, Any] = {}
        if self.source_id:
            d["source_id"] = self.source_id
        if self.published_only:
            d["published"] = True
        if self.category:
            d["category"] = str(self.category)
        return d


# ---------------------------------------------------------------------------
# Metadata serialization shared by the persistent backends
# ---------------------------------------------------------------------------


def metadata_to_dict(meta: ChunkMetadata) -> dict[str, Any]:
    d = asdict(meta)
    d["category"] = str(meta.category)
    d["key_terms"] = list(meta.key_terms)
    return d


def metadata_from_dict(data: dict[str, Any]) -> ChunkMetadata:
    known = {k: v for k, v in data.items() if k in ChunkMetadata.__dataclass_fields__}
    known["category"] = Category(known.get("category", Category.GENERAL))
    known["key_terms"] = tuple(known.get("key_terms") or ())
    return ChunkMetadata(**known)
