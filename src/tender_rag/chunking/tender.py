"""Chunk a whole tender: its overview plus each of its sections."""

from __future__ import annotations

import logging
from dataclasses import replace

from tender_rag.chunking.factory import get_chunker
from tender_rag.chunking.schemas import Category, Chunk, ChunkMetadata
from tender_rag.chunking.scoring import infer_category
from tender_rag.chunking.sentence_chunker import MIN_CHUNK_SIZE
from tender_rag.chunking.window_chunker import DEFAULT_CHUNK_SIZE, DEFAULT_OVERLAP
from tender_rag.documents.schemas import TenderDocument

logger = logging.getLogger(__name__)

MIN_OVERVIEW_CHARS = 50
MIN_SECTION_CHARS = 30
OVERVIEW_TITLE = "Tender Overview"


def chunk_tender(
    document: TenderDocument,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
    sentence_mode: bool = False,
    min_chunk_size: int = MIN_CHUNK_SIZE,
) -> list[Chunk]:
    """Split a tender into tagged chunks.

    The overview (``title`` and ``description``) is chunked first when it is
    longer than 50 characters, then every section whose content is at least
    30 characters long. Sections keep their own category and mandatory flag.
    """
    if sentence_mode:
        chunker = get_chunker(
            "sentence", chunk_size=chunk_size, overlap=overlap, min_chunk_size=min_chunk_size
        )
    else:
        chunker = get_chunker("window", chunk_size=chunk_size, overlap=overlap)
    base = ChunkMetadata(
        source_id=document.tender_id,
        sector=document.sector,
        tender_type=document.tender_type,
        published=document.published,
    )
    chunks: list[Chunk] = []

    overview = f"{document.title}\n\n{document.description}".strip()
    if len(overview) > MIN_OVERVIEW_CHARS:
        chunks.extend(
            chunker.chunk(
                overview,
                replace(
                    base,
                    category=Category.OVERVIEW,
                    section_title=OVERVIEW_TITLE,
                    is_mandatory=True,
                ),
            )
        )

    for section in document.sections:
        if len(section.content) < MIN_SECTION_CHARS:
            continue
        combined = f"{section.title}\n\n{section.content}".strip()
        chunks.extend(
            chunker.chunk(
                combined,
                replace(
                    base,
                    section_id=section.section_id,
                    category=infer_category(section.title),
                    section_title=section.title,
                    is_mandatory=section.is_mandatory,
                ),
            )
        )

    logger.info(
        "Chunked tender %s into %d chunks (%d sections, sentence_mode=%s)",
        document.tender_id, len(chunks), len(document.sections), sentence_mode,
    )
    return chunks
