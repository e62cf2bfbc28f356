"""Budget-aware compression of retrieved context."""

from tender_rag.compression.compressor import (
    compress_chunk,
    compress_chunks,
    compress_to_fit,
    format_context,
    remove_filler,
)

__all__ = [
    "compress_chunk",
    "compress_chunks",
    "compress_to_fit",
    "format_context",
    "remove_filler",
]
