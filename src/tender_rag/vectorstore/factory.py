"""Vector store factory: registry, lazy import, singleton cache.

``build_vector_store`` wires a store from settings and restores a saved
FAISS index when one exists at the configured path.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path

from tender_rag.config import Settings
from tender_rag.vectorstore.base import VectorStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Store registry: (store_key, module_path, class_name)
# ---------------------------------------------------------------------------

_STORE_REGISTRY: list[tuple[str, str, str]] = [
    ("faiss", "tender_rag.vectorstore.faiss_store", "FAISSStore"),
    ("qdrant", "tender_rag.vectorstore.qdrant_store", "QdrantStore"),
]

# Singleton cache
_store_cache: dict[str, VectorStore] = {}


def get_vector_store(backend: str = "faiss", **kwargs) -> VectorStore:
    """Get a vector store by name.

    Args:
        backend: One of ``faiss``, ``qdrant``.
        **kwargs: Passed to the store constructor.

    Returns:
        A ``VectorStore`` instance.
    """
    key = backend.lower()

    if not kwargs and key in _store_cache:
        return _store_cache[key]

    for reg_key, module_path, cls_name in _STORE_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            instance = getattr(mod, cls_name)(**kwargs)
            if not kwargs:
                _store_cache[key] = instance
            return instance

    raise ValueError(f"Unknown vector store '{backend}'. Available: {available_stores()}")


def build_vector_store(settings: Settings) -> VectorStore:
    """Create the configured store, loading persisted FAISS data if present."""
    cfg = settings.vectorstore
    dimension = settings.embedding.dimension

    if cfg.backend == "qdrant":
        return get_vector_store(
            "qdrant",
            collection_name=cfg.collection,
            dimension=dimension,
            url=cfg.url,
            path=None if cfg.url else cfg.path,
        )

    store = get_vector_store(cfg.backend, dimension=dimension)
    if (Path(cfg.path) / "index.faiss").exists():
        store.load(cfg.path)
    else:
        logger.debug("No saved index at %s, starting empty", cfg.path)
    return store


def available_stores() -> list[str]:
    """Return names of registered vector stores."""
    return [k for k, _, _ in _STORE_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _store_cache.clear()
