"""Tender-aware document chunking."""

from tender_rag.chunking.base import BaseChunker
from tender_rag.chunking.factory import available_chunkers, get_chunker
from tender_rag.chunking.schemas import Category, Chunk, ChunkMetadata
from tender_rag.chunking.scoring import extract_key_terms, infer_category, score_importance
from tender_rag.chunking.sentence_chunker import SentenceChunker
from tender_rag.chunking.tender import chunk_tender
from tender_rag.chunking.window_chunker import WindowChunker

__all__ = [
    "BaseChunker",
    "Category",
    "Chunk",
    "ChunkMetadata",
    "SentenceChunker",
    "WindowChunker",
    "available_chunkers",
    "chunk_tender",
    "extract_key_terms",
    "get_chunker",
    "infer_category",
    "score_importance",
]
