"""Fixed-size word-window chunker with overlap.

Each window holds ``chunk_size`` words and starts ``chunk_size - overlap``
words after the previous one, so the tail of one chunk is repeated at the
head of the next. The final window always ends at the last word.
"""

from __future__ import annotations

import logging

from tender_rag.chunking.base import BaseChunker
from tender_rag.chunking.schemas import Chunk, ChunkMetadata

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 450
DEFAULT_OVERLAP = 50


class WindowChunker(BaseChunker):
    """Word-count windows with a fixed overlap."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError(
                f"overlap must be in [0, chunk_size), got overlap={overlap} chunk_size={chunk_size}"
            )
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, text: str, metadata: ChunkMetadata | None = None) -> list[Chunk]:
        meta = metadata or ChunkMetadata()
        words = (text or "").split()
        if not words:
            return []

        stride = self.chunk_size - self.overlap
        total = len(words)
        chunks: list[Chunk] = []
        start = 0

        while start < total:
            end = min(start + self.chunk_size, total)
            index = len(chunks)
            chunks.append(
                self._make_chunk(
                    " ".join(words[start:end]),
                    meta,
                    chunk_index=index,
                    start_word=start,
                    end_word=end,
                    word_count=end - start,
                    has_overlap=index > 0 and self.overlap > 0,
                )
            )
            if end == total:
                break
            start += stride

        logger.debug(
            "WindowChunker produced %d chunks from %d words (size=%d, overlap=%d)",
            len(chunks), total, self.chunk_size, self.overlap,
        )
        return chunks
