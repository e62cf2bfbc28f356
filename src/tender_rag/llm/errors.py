"""Typed failures raised by the provider gateway.

Components that wrap the gateway catch ``LLMError`` and map it to their own
deterministic fallback result.
"""

from __future__ import annotations


class LLMError(Exception):
    """Base class for every gateway failure."""


class NoProviderConfiguredError(LLMError):
    """No provider in the priority list has a credential."""

    def __init__(self, message: str = "No LLM provider API key configured"):
        super().__init__(message)


class ProviderNotConfiguredError(LLMError):
    """An explicitly requested provider has no credential."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"API key not configured for provider: {provider}")


class TokenOverflowError(LLMError):
    """The prompt cannot be made to fit the model's safe limit."""

    def __init__(self, overflow: int):
        self.overflow = overflow
        super().__init__(
            f"Prompt exceeds token limit by {overflow} tokens. "
            "Cannot safely truncate. Please reduce context size."
        )


class ProviderError(LLMError):
    """Non-2xx response or transport failure from a provider.

    ``status`` is ``None`` for timeouts and connection errors.
    """

    def __init__(self, provider: str, status: int | None, body: str = ""):
        self.provider = provider
        self.status = status
        self.body = body
        if status is None:
            super().__init__(f"{provider} request failed: {body}")
        else:
            super().__init__(f"{provider} API failed: {status} - {body}")


class MalformedOutputError(LLMError):
    """Provider output could not be parsed into the expected structure."""
