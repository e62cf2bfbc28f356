"""Context compression for retrieved chunks.

Shrinks chunk text before it is placed in a prompt while keeping the
sentences most likely to carry binding requirements: obligations, limits,
amounts and deadlines.
"""

from __future__ import annotations

import logging
import re

from tender_rag.tokens.counter import TokenCounter

logger = logging.getLogger(__name__)

MAX_CHUNK_CHARS = 500
DEFAULT_MAX_SENTENCES = 3
MIN_SENTENCE_CHARS = 10
CHUNK_SEPARATOR = "\n\n"

_SENTENCE_TERMINATORS = re.compile(r"[.!?]+")
_WHITESPACE = re.compile(r"\s+")
_DIGIT = re.compile(r"\d")

IMPORTANT_KEYWORDS: tuple[str, ...] = (
    "mandatory", "required", "must", "shall", "minimum", "maximum",
    "eligibility", "criteria", "deadline", "penalty", "disqualified",
    "compliance", "specification", "price", "payment", "emd", "tender",
    "amount", "percentage", "years", "experience", "certificate",
    "₹", "rs.", "inr", "$", "€", "£",
)

FILLER_PHRASES: tuple[str, ...] = (
    "for example", "such as", "i.e.", "e.g.", "note that",
    "please note", "it should be noted", "as mentioned",
    "furthermore", "moreover", "however", "nevertheless",
)
_FILLER_CLAUSES = [
    re.compile(re.escape(phrase) + r"[^.!?]*[.!?]", re.IGNORECASE)
    for phrase in FILLER_PHRASES
]


def _score_sentence(sentence: str) -> int:
    lowered = sentence.lower()
    score = sum(1 for keyword in IMPORTANT_KEYWORDS if keyword in lowered)
    if _DIGIT.search(sentence):
        score += 2
    return score


def compress_chunk(text: str | None, max_sentences: int = DEFAULT_MAX_SENTENCES) -> str:
    """Reduce a chunk to its first sentence plus its most important ones.

    Short chunks (no more than ``max_sentences`` sentences) are only
    whitespace-normalized. The result never exceeds 500 characters.
    """
    if not text:
        return ""

    cleaned = _WHITESPACE.sub(" ", text).strip()
    fragments = [s.strip() for s in _SENTENCE_TERMINATORS.split(cleaned) if s.strip()]
    if not fragments:
        return cleaned[:MAX_CHUNK_CHARS]

    # The opening sentence is kept whatever its length
    first = fragments[0]
    rest = [s for s in fragments[1:] if len(s) > MIN_SENTENCE_CHARS]

    if len(rest) + 1 <= max_sentences:
        return cleaned[:MAX_CHUNK_CHARS]

    # Stable sort keeps earlier sentences ahead on ties
    ranked = sorted(range(len(rest)), key=lambda i: _score_sentence(rest[i]), reverse=True)
    keep = sorted(ranked[: max(0, max_sentences - 1)])

    result = ". ".join([first, *(rest[i] for i in keep)]).strip() + "."
    return result[:MAX_CHUNK_CHARS]


def compress_chunks(
    chunks: list[str] | None,
    max_sentences: int = DEFAULT_MAX_SENTENCES,
) -> list[str]:
    if not chunks:
        return []
    return [compress_chunk(chunk, max_sentences) for chunk in chunks]


def _joined_tokens(chunks: list[str]) -> int:
    return TokenCounter.estimate(CHUNK_SEPARATOR.join(chunks))


def compress_to_fit(chunks: list[str] | None, max_tokens: int) -> list[str]:
    """Compress chunks until their joined estimate fits ``max_tokens``.

    Tries three sentences per chunk, then two, then drops chunks from the
    end (the least relevant ones) until the budget is met. Accepted chunks
    are never cut mid-text. A budget that nothing fits yields ``[]``.
    """
    if not chunks:
        return []

    compressed = compress_chunks(chunks, DEFAULT_MAX_SENTENCES)
    total = _joined_tokens(compressed)

    if total > max_tokens:
        compressed = compress_chunks(chunks, 2)
        total = _joined_tokens(compressed)

    dropped = 0
    while compressed and total > max_tokens:
        compressed.pop()
        dropped += 1
        total = _joined_tokens(compressed)

    if dropped:
        logger.info(
            "Dropped %d of %d chunks to fit %d-token budget",
            dropped, len(chunks), max_tokens,
        )
    return compressed


def format_context(chunks: list[str] | None, label: str = "CONTEXT") -> str:
    """Render chunks as ``[LABEL-n] text`` blocks separated by blank lines."""
    if not chunks:
        return ""
    return CHUNK_SEPARATOR.join(
        f"[{label}-{i}] {chunk}" for i, chunk in enumerate(chunks, start=1)
    )


def remove_filler(text: str | None) -> str:
    """Drop clauses introduced by filler phrases ("for example", "moreover", ...)."""
    if not text:
        return ""
    result = text
    for pattern in _FILLER_CLAUSES:
        result = pattern.sub("", result)
    return _WHITESPACE.sub(" ", result).strip()
