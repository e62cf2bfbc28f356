"""Chunker factory: dispatch a chunking mode to its chunker class.

Each entry in the registry is imported lazily on first use; instances built
with default arguments are cached.
"""

from __future__ import annotations

import importlib
import logging

from tender_rag.chunking.base import BaseChunker

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Chunker registry
#
# Each entry: (mode, module_path, class_name)
# ---------------------------------------------------------------------------

_CHUNKER_REGISTRY: list[tuple[str, str, str]] = [
    ("window", "tender_rag.chunking.window_chunker", "WindowChunker"),
    ("sentence", "tender_rag.chunking.sentence_chunker", "SentenceChunker"),
]

# Singleton cache
_chunker_cache: dict[str, BaseChunker] = {}


def get_chunker(mode: str = "window", **kwargs) -> BaseChunker:
    """Get a chunker for the given mode.

    Args:
        mode: ``"window"`` or ``"sentence"``.
        **kwargs: Passed to the chunker constructor (chunk_size, overlap, ...).

    Raises:
        ValueError: If the mode is unknown.
    """
    if not kwargs and mode in _chunker_cache:
        return _chunker_cache[mode]

    for registered, module_path, cls_name in _CHUNKER_REGISTRY:
        if registered == mode:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            instance = cls(**kwargs)
            if not kwargs:
                _chunker_cache[mode] = instance
            logger.debug("Created chunker %s", cls_name)
            return instance

    raise ValueError(
        f"Unknown chunking mode '{mode}'. Available: {available_chunkers()}"
    )


def available_chunkers() -> list[str]:
    """Return names of registered chunkers."""
    return [mode for mode, _, _ in _CHUNKER_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _chunker_cache.clear()
