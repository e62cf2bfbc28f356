"""Ingestion pipeline: tender -> chunk -> embed -> replace stored chunk set.

Re-ingesting a tender replaces its chunks. The delete and the insert run
under one per-tender lock so two ingests of the same tender cannot
interleave and leave a mixed chunk set behind.
"""

from __future__ import annotations

import logging
import threading
import uuid

from tender_rag.chunking.sentence_chunker import MIN_CHUNK_SIZE
from tender_rag.chunking.tender import chunk_tender
from tender_rag.chunking.window_chunker import DEFAULT_CHUNK_SIZE, DEFAULT_OVERLAP
from tender_rag.documents.schemas import TenderDocument
from tender_rag.embeddings.base import EmbeddingProvider
from tender_rag.pipeline.schemas import IngestResult
from tender_rag.vectorstore.base import VectorStore
from tender_rag.vectorstore.schemas import VectorRecord

logger = logging.getLogger(__name__)


class IngestPipeline:
    """Orchestrates tender ingestion: chunk -> embed -> delete old -> store."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_OVERLAP,
        sentence_mode: bool = False,
        min_chunk_size: int = MIN_CHUNK_SIZE,
        batch_size: int = 32,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.sentence_mode = sentence_mode
        self.min_chunk_size = min_chunk_size
        self.batch_size = batch_size
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, tender_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(tender_id, threading.Lock())

    def ingest_tender(self, document: TenderDocument) -> IngestResult:
        """Chunk, embed and store a tender, replacing any previous chunk set.

        A tender that yields no chunks still has its previous chunks removed.
        """
        warnings: list[str] = []

        chunks = chunk_tender(
            document,
            chunk_size=self.chunk_size,
            overlap=self.overlap,
            sentence_mode=self.sentence_mode,
            min_chunk_size=self.min_chunk_size,
        )

        all_embeddings = self.embedding_provider.embed_in_batches(
            [c.content for c in chunks], self.batch_size
        )

        # Checked before the delete so a rejected batch leaves the old chunks intact
        expected = self.vector_store.dimension
        for embedding in all_embeddings:
            if len(embedding) != expected:
                raise ValueError(
                    f"Embedding dimension {len(embedding)} does not match "
                    f"store dimension {expected} for tender {document.tender_id}"
                )

        records = [
            VectorRecord(
                id=str(uuid.uuid4()),
                text=chunk.content,
                embedding=embedding,
                metadata=chunk.metadata,
            )
            for chunk, embedding in zip(chunks, all_embeddings, strict=True)
        ]

        with self._lock_for(document.tender_id):
            deleted = self.vector_store.delete_source(document.tender_id)
            stored = self.vector_store.add(records) if records else 0

        if not chunks:
            warnings.append("Chunker produced zero chunks")
            logger.warning("Tender %s produced no chunks", document.tender_id)

        logger.info(
            "Ingested tender %s: %d chunks -> %d embedded -> %d stored (%d replaced)",
            document.tender_id,
            len(chunks),
            len(all_embeddings),
            stored,
            deleted,
        )

        return IngestResult(
            tender_id=document.tender_id,
            chunks_created=len(chunks),
            chunks_embedded=len(all_embeddings),
            chunks_stored=stored,
            chunks_deleted=deleted,
            warnings=warnings,
        )

    def remove_tender(self, tender_id: str) -> int:
        """Delete every stored chunk of ``tender_id``; returns the count removed."""
        with self._lock_for(tender_id):
            deleted = self.vector_store.delete_source(tender_id)
        logger.info("Removed %d chunks for tender %s", deleted, tender_id)
        return deleted
