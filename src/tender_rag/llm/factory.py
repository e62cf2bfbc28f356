"""LLM provider factory: registry, lazy import, singleton cache.

``build_gateway`` assembles every registered provider in priority order,
with credentials from the environment and timeouts from settings.
"""

from __future__ import annotations

import importlib
import logging

import httpx

from tender_rag.config import ProviderCredentials, Settings
from tender_rag.llm.base import LLMProvider
from tender_rag.llm.gateway import ProviderGateway
from tender_rag.tokens.counter import TokenCounter

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Provider registry: (provider_key, module_path, class_name)
# ---------------------------------------------------------------------------

_PROVIDER_REGISTRY: list[tuple[str, str, str]] = [
    ("groq", "tender_rag.llm.chat_provider", "GroqProvider"),
    ("gemini", "tender_rag.llm.gemini_provider", "GeminiProvider"),
    ("huggingface", "tender_rag.llm.huggingface_provider", "HuggingFaceProvider"),
    ("openai", "tender_rag.llm.chat_provider", "OpenAIProvider"),
]

# Singleton cache
_provider_cache: dict[str, LLMProvider] = {}


def get_llm_provider(
    provider: str = "groq",
    **kwargs,
) -> LLMProvider:
    """Get an LLM provider by name.

    Args:
        provider: One of ``groq``, ``gemini``, ``huggingface``, ``openai``.
        **kwargs: Passed to the provider constructor.

    Returns:
        An ``LLMProvider`` instance.
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
    raise ValueError(f"Unknown LLM provider '{provider}'. Available: {available}")


def build_gateway(
    settings: Settings | None = None,
    credentials: ProviderCredentials | None = None,
    transport: httpx.BaseTransport | None = None,
) -> ProviderGateway:
    """Build a gateway over every provider, ordered by ``llm.provider_priority``.

    Providers without a credential are still registered; the gateway skips
    them during fallback.
    """
    settings = settings or Settings()
    credentials = credentials or ProviderCredentials.from_env()

    providers: list[LLMProvider] = []
    for name in settings.llm.provider_priority:
        kwargs = {
            "api_key": getattr(credentials, f"{name}_api_key", None),
            "timeout": settings.llm.timeout,
            "transport": transport,
        }
        if name == "groq" and credentials.groq_model:
            kwargs["default_model"] = credentials.groq_model
        providers.append(get_llm_provider(name, **kwargs))

    logger.info(
        "Gateway providers: %s (configured: %s)",
        [p.name for p in providers],
        [p.name for p in providers if p.is_configured] or "none",
    )
    return ProviderGateway(
        providers,
        TokenCounter(settings.tokens.model_limits, settings.tokens.fallback_max_tokens),
    )


def available_providers() -> list[str]:
    """Return names of registered LLM providers."""
    return [k for k, _, _ in _PROVIDER_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _provider_cache.clear()
