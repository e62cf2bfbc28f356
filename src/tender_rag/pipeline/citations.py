"""Citation extraction and source mapping.

Parses ``[SESSION-1]``, ``[REFERENCE-2]`` and ``[SESSION-1, SESSION-3]``
labels from an answer and maps them back to the chunks that were placed in
the prompt under those labels.
"""

from __future__ import annotations

import re

from tender_rag.pipeline.schemas import Citation
from tender_rag.retrieval.orchestrator import GLOBAL_LABEL, SESSION_LABEL
from tender_rag.retrieval.schemas import RetrievalResult
from tender_rag.vectorstore.schemas import SearchResult

_BRACKET_RE = re.compile(r"\[([^\[\]]+)\]")
_LABEL_RE = re.compile(rf"({SESSION_LABEL}|{GLOBAL_LABEL})-(\d+)", re.IGNORECASE)

SNIPPET_CHARS = 200


def extract_citations(answer: str, retrieval: RetrievalResult) -> list[Citation]:
    """Map every label cited in ``answer`` to its retrieved chunk.

    Labels are numbered within their scope, in the order the compressed
    chunks were rendered. Labels with no matching chunk are ignored.
    """
    scopes: dict[str, list[SearchResult]] = {
        SESSION_LABEL: retrieval.session_results[: len(retrieval.compressed_session)],
        GLOBAL_LABEL: retrieval.global_results[: len(retrieval.compressed_global)],
    }

    cited: list[tuple[str, int]] = []
    for bracket in _BRACKET_RE.finditer(answer):
        for label, number in _LABEL_RE.findall(bracket.group(1)):
            key = (label.upper(), int(number))
            if key not in cited:
                cited.append(key)

    citations: list[Citation] = []
    for label, index in cited:
        results = scopes[label]
        if not 1 <= index <= len(results):
            continue
        result = results[index - 1]
        snippet = result.text[:SNIPPET_CHARS] + "..." if len(result.text) > SNIPPET_CHARS else result.text
        citations.append(Citation(
            label=f"{label}-{index}",
            index=index,
            text=snippet,
            source_id=result.metadata.source_id or "unknown",
            section_title=result.metadata.section_title or "",
            score=result.score,
        ))
    return citations


def format_citations(citations: list[Citation]) -> str:
    """Format citations as a markdown source block."""
    if not citations:
        return ""

    lines = ["\n---\n**Sources:**"]
    for c in citations:
        parts = [f"[{c.label}]", c.source_id]
        if c.section_title:
            parts.append(f"({c.section_title})")
        lines.append(f"- {' | '.join(parts)}")
    return "\n".join(lines)
