"""Abstract base class for LLM providers.

Every adapter posts one JSON request over httpx and pulls a single string
out of the provider's response envelope. Adapters differ only in the wire
shape, which each one declares through ``build_request`` and
``extract_text``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from tender_rag.llm.errors import MalformedOutputError, ProviderError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class ProviderCallSpec:
    """One unit of work for the gateway. Stateless and single-use."""

    user_prompt: str
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    provider_id: str | None = None
    model_id: str | None = None
    temperature: float = 0.0
    max_response_tokens: int = 2000


@dataclass(frozen=True)
class ProviderRequest:
    """An HTTP request ready to send."""

    url: str
    json: dict[str, Any]
    headers: dict[str, str]
    params: dict[str, str] | None = None


class LLMProvider(ABC):
    """Interface for LLM response generation."""

    name: str = ""
    wire_format: str = ""
    models: tuple[str, ...] = ()

    def __init__(
        self,
        api_key: str | None = None,
        default_model: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.default_model = default_model or self.models[0]
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @abstractmethod
    def build_request(
        self,
        prompt: str,
        system: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> ProviderRequest:
        """Translate a prompt pair into this provider's wire shape."""

    @abstractmethod
    def extract_text(self, data: Any) -> str:
        """Pull the generated text out of the decoded response body."""

    def generate(
        self,
        prompt: str,
        system: str | None = None,
        *,
        model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 2000,
    ) -> str:
        """Generate a response from the LLM.

        Args:
            prompt: The user prompt.
            system: Optional system prompt.
            model: Model id; defaults to the provider's default model.
            temperature: Sampling temperature.
            max_tokens: Maximum response tokens.

        Returns:
            Generated text, stripped.

        Raises:
            ProviderError: On non-2xx responses, timeouts and transport errors.
            MalformedOutputError: If the response body is not JSON.
        """
        request = self.build_request(
            prompt,
            system or DEFAULT_SYSTEM_PROMPT,
            model or self.default_model,
            temperature,
            max_tokens,
        )
        try:
            resp = self._client.post(
                request.url,
                json=request.json,
                headers=request.headers,
                params=request.params,
            )
        except httpx.HTTPError as exc:
            logger.error("%s transport failure: %s", self.name, exc)
            raise ProviderError(self.name, None, str(exc)) from exc

        if not resp.is_success:
            logger.error("%s returned HTTP %d", self.name, resp.status_code)
            raise ProviderError(self.name, resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            raise MalformedOutputError(f"{self.name} returned a non-JSON body") from exc

        return (self.extract_text(data) or "").strip()

    def close(self) -> None:
        self._client.close()
