"""Provider gateway: pick a provider, guard the token budget, dispatch.

Providers are held in a fixed priority order. A call either names its
provider or takes the first one with a configured credential. Before
anything leaves the process, ``system + user`` is checked against the
model's safe limit; an oversize user prompt is truncated once to fit, and
the call fails with ``TokenOverflowError`` when that is impossible.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from tender_rag.llm.base import LLMProvider, ProviderCallSpec
from tender_rag.llm.errors import (
    NoProviderConfiguredError,
    ProviderNotConfiguredError,
    TokenOverflowError,
)
from tender_rag.tokens.counter import TokenCounter

logger = logging.getLogger(__name__)

SAFETY_MARGIN_TOKENS = 100
MIN_USER_TOKENS = 500


class ProviderGateway:
    """Single entry point for every LLM call.

    Args:
        providers: Adapters in fallback priority order.
        token_counter: Estimator used for the pre-flight safety check.
    """

    def __init__(
        self,
        providers: list[LLMProvider],
        token_counter: TokenCounter | None = None,
    ):
        self.providers = list(providers)
        self.token_counter = token_counter or TokenCounter()

    # ------------------------------------------------------------------
    # Provider resolution
    # ------------------------------------------------------------------

    def get_provider(self, provider_id: str) -> LLMProvider:
        for provider in self.providers:
            if provider.name == provider_id:
                return provider
        raise ValueError(f"Unsupported provider: {provider_id}")

    def configured_providers(self) -> list[str]:
        return [p.name for p in self.providers if p.is_configured]

    def is_available(self, provider_id: str | None = None) -> bool:
        """True if ``provider_id`` (or, without one, any provider) can be called."""
        if provider_id is None:
            return bool(self.configured_providers())
        return any(p.name == provider_id and p.is_configured for p in self.providers)

    def resolve(self, provider_id: str | None = None) -> LLMProvider:
        if provider_id:
            provider = self.get_provider(provider_id)
            if not provider.is_configured:
                raise ProviderNotConfiguredError(provider_id)
            return provider
        for provider in self.providers:
            if provider.is_configured:
                return provider
        raise NoProviderConfiguredError()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def call(self, spec: ProviderCallSpec) -> str:
        """Dispatch ``spec`` and return the provider's plain-text answer.

        Raises:
            ValueError: Empty user prompt or unknown provider.
            NoProviderConfiguredError: No provider has a credential.
            ProviderNotConfiguredError: The requested provider has no credential.
            TokenOverflowError: The prompt cannot be truncated to fit.
            ProviderError: Non-2xx or transport failure.
        """
        if not spec.user_prompt:
            raise ValueError("User prompt is required")

        provider = self.resolve(spec.provider_id)
        model = spec.model_id or provider.default_model
        spec = self._fit_to_budget(spec, model)

        logger.info("Calling %s (model=%s)", provider.name, model)
        return provider.generate(
            spec.user_prompt,
            spec.system_prompt,
            model=model,
            temperature=spec.temperature,
            max_tokens=spec.max_response_tokens,
        )

    def _fit_to_budget(self, spec: ProviderCallSpec, model: str) -> ProviderCallSpec:
        check = self._check(spec, model)
        logger.debug(
            "Token count: %d / %d (%s)",
            check.token_count, check.safe_limit, "SAFE" if check.safe else "OVERFLOW",
        )
        if check.safe:
            return spec

        logger.warning("Token overflow: %d tokens over limit", check.overflow)
        budget = self.token_counter.get_budget(model, spec.max_response_tokens)
        system_tokens = self.token_counter.estimate(spec.system_prompt)
        available = min(budget.prompt, check.safe_limit) - system_tokens - SAFETY_MARGIN_TOKENS

        if available <= MIN_USER_TOKENS:
            raise TokenOverflowError(check.overflow)

        logger.warning("Truncating user prompt to %d tokens", available)
        truncated = replace(
            spec, user_prompt=self.token_counter.truncate(spec.user_prompt, available)
        )

        recheck = self._check(truncated, model)
        if not recheck.safe:
            raise TokenOverflowError(recheck.overflow)
        return truncated

    def _check(self, spec: ProviderCallSpec, model: str):
        return self.token_counter.is_safe(f"{spec.system_prompt}\n\n{spec.user_prompt}", model)
