"""Data models for chunks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Category(StrEnum):
    """Section taxonomy used to tag chunks."""

    OVERVIEW = "OVERVIEW"
    ELIGIBILITY = "ELIGIBILITY"
    TECHNICAL = "TECHNICAL"
    FINANCIAL = "FINANCIAL"
    EVALUATION = "EVALUATION"
    TERMS = "TERMS"
    GENERAL = "GENERAL"


@dataclass(frozen=True)
class ChunkMetadata:
    """Metadata carried by each chunk, stored alongside its embedding."""

    source_id: str | None = None
    section_id: str | None = None
    category: Category = Category.GENERAL
    section_title: str | None = None
    is_mandatory: bool = False
    sector: str | None = None
    tender_type: str | None = None
    published: bool = False

    # Position / overlap bookkeeping
    chunk_index: int = 0
    start_word: int | None = None
    end_word: int | None = None
    word_count: int = 0
    sentence_count: int | None = None
    has_overlap: bool = False

    # Content signals
    key_terms: tuple[str, ...] = ()
    importance: int = 5


@dataclass(frozen=True)
class Chunk:
    """A single retrievable fragment of one source document."""

    content: str
    metadata: ChunkMetadata

    @property
    def source_id(self) -> str | None:
        return self.metadata.source_id

    @property
    def section_id(self) -> str | None:
        return self.metadata.section_id
