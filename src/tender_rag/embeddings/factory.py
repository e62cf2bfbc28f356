"""Embedding provider factory: registry, lazy import, singleton cache."""

from __future__ import annotations

import importlib
import logging

from tender_rag.config import Settings
from tender_rag.embeddings.base import EmbeddingProvider

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Provider registry: (provider_key, module_path, class_name)
# ---------------------------------------------------------------------------

_PROVIDER_REGISTRY: list[tuple[str, str, str]] = [
    ("hash", "tender_rag.embeddings.hash_provider", "HashEmbeddingProvider"),
    ("ollama", "tender_rag.embeddings.ollama_provider", "OllamaEmbeddingProvider"),
    ("openai", "tender_rag.embeddings.openai_provider", "OpenAIEmbeddingProvider"),
]

# Singleton cache
_provider_cache: dict[str, EmbeddingProvider] = {}


def get_embedding_provider(
    provider: str = "hash",
    **kwargs,
) -> EmbeddingProvider:
    """Get an embedding provider by name.

    Args:
        provider: One of ``hash``, ``ollama``, ``openai``.
        **kwargs: Passed to the provider constructor.

    Returns:
        An ``EmbeddingProvider`` instance.
    """
    key = provider.lower()

    if not kwargs and key in _provider_cache:
        return _provider_cache[key]

    for reg_key, module_path, cls_name in _PROVIDER_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            instance = cls(**kwargs)
            if not kwargs:
                _provider_cache[key] = instance
            return instance

    available = [k for k, _, _ in _PROVIDER_REGISTRY]
    raise ValueError(f"Unknown embedding provider '{provider}'. Available: {available}")


def build_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Create the configured provider with its model and dimension."""
    cfg = settings.embedding
    kwargs: dict = {}
    if cfg.provider in ("hash", "ollama"):
        kwargs["dimension"] = cfg.dimension
    if cfg.model and cfg.provider != "hash":
        kwargs["model"] = cfg.model
    return get_embedding_provider(cfg.provider, **kwargs)


def available_providers() -> list[str]:
    """Return names of registered embedding providers."""
    return [k for k, _, _ in _PROVIDER_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _provider_cache.clear()
