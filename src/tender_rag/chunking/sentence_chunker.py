"""Sentence-boundary-preserving chunker.

Packs whole sentences into chunks of up to ``chunk_size`` words. When a
chunk is closed, its trailing sentences (at least ``overlap`` words) are
carried into the next one. A final chunk shorter than ``min_chunk_size``
words is folded into its predecessor instead of being emitted on its own.
"""

from __future__ import annotations

import logging
import re

from tender_rag.chunking.base import BaseChunker
from tender_rag.chunking.schemas import Chunk, ChunkMetadata
from tender_rag.chunking.window_chunker import DEFAULT_CHUNK_SIZE, DEFAULT_OVERLAP

logger = logging.getLogger(__name__)

MIN_CHUNK_SIZE = 200

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    """Split after ``.``, ``!`` or ``?`` followed by whitespace."""
    return [s.strip() for s in _SENTENCE_SPLIT.split(text or "") if s.strip()]


def _word_count(sentence: str) -> int:
    return len(sentence.split())


class SentenceChunker(BaseChunker):
    """Variable-size chunks that never split a sentence."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_OVERLAP,
        min_chunk_size: int = MIN_CHUNK_SIZE,
    ):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError(
                f"overlap must be in [0, chunk_size), got overlap={overlap} chunk_size={chunk_size}"
            )
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.min_chunk_size = min_chunk_size

    def chunk(self, text: str, metadata: ChunkMetadata | None = None) -> list[Chunk]:
        meta = metadata or ChunkMetadata()
        sentences = split_sentences(text)
        if not sentences:
            return []

        # Each group is (sentences, number of leading sentences carried as overlap)
        groups: list[tuple[list[str], int]] = []
        current: list[str] = []
        carried = 0
        current_words = 0

        for sentence in sentences:
            n_words = _word_count(sentence)
            if current and len(current) > carried and current_words + n_words > self.chunk_size:
                groups.append((current, carried))
                current, current_words = self._overlap_tail(current)
                carried = len(current)
            current.append(sentence)
            current_words += n_words

        if len(current) > carried:
            if groups and current_words < self.min_chunk_size:
                # Fold only the new sentences into the previous group
                prev, prev_carried = groups[-1]
                groups[-1] = (prev + current[carried:], prev_carried)
            else:
                groups.append((current, carried))

        chunks = [
            self._make_chunk(
                " ".join(group),
                meta,
                chunk_index=i,
                word_count=sum(_word_count(s) for s in group),
                sentence_count=len(group),
                has_overlap=n_carried > 0,
            )
            for i, (group, n_carried) in enumerate(groups)
        ]

        logger.debug(
            "SentenceChunker produced %d chunks from %d sentences",
            len(chunks), len(sentences),
        )
        return chunks

    def _overlap_tail(self, sentences: list[str]) -> tuple[list[str], int]:
        """Trailing sentences totalling at least ``overlap`` words."""
        if self.overlap <= 0:
            return [], 0
        tail: list[str] = []
        words = 0
        for sentence in reversed(sentences):
            if words >= self.overlap:
                break
            tail.insert(0, sentence)
            words += _word_count(sentence)
        # Never carry the whole chunk forward
        if len(tail) == len(sentences):
            tail = tail[1:]
            words = sum(_word_count(s) for s in tail)
        return tail, words
