"""Provider-agnostic token estimation and budgeting.

Uses a character approximation (about 4 characters per token) rather than a
real tokenizer, so estimates are cheap, deterministic and identical for every
provider.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

CHARS_PER_TOKEN = 4
SAFE_FRACTION = 0.75
DEFAULT_RESPONSE_TOKENS = 2000
TRUNCATION_MARKER = "\n...[truncated]"

DEFAULT_MODEL_LIMITS: dict[str, int] = {
    "llama-3.3-70b-versatile": 8000,
    "llama-3.1-70b-versatile": 8000,
    "gemini-1.5-flash": 8000,
    "gemini-1.5-pro": 32000,
    "gpt-3.5-turbo": 4000,
    "gpt-4": 8000,
    "gpt-4-turbo": 128000,
}
FALLBACK_MAX_TOKENS = 6000


@dataclass(frozen=True)
class SafetyCheck:
    """Result of checking a prompt against a model's safe limit."""

    safe: bool
    token_count: int
    max_tokens: int
    safe_limit: int
    overflow: int


@dataclass(frozen=True)
class TokenBudget:
    """Per-purpose token allowance for one (model, response size) pair."""

    total: int
    prompt: int
    response: int
    system: int
    context: int
    task: int


class TokenCounter:
    """Estimate token cost and compute budgets for known models.

    Args:
        model_limits: Overrides merged on top of the built-in context table.
        fallback_max_tokens: Context size assumed for unknown models.
    """

    def __init__(
        self,
        model_limits: dict[str, int] | None = None,
        fallback_max_tokens: int = FALLBACK_MAX_TOKENS,
    ):
        self.model_limits = {**DEFAULT_MODEL_LIMITS, **(model_limits or {})}
        self.fallback_max_tokens = fallback_max_tokens

    @staticmethod
    def estimate(text: str | None) -> int:
        """Estimated token count: ``ceil(len(text) / 4)``."""
        if not text:
            return 0
        return math.ceil(len(text) / CHARS_PER_TOKEN)

    def max_tokens(self, model: str | None = None) -> int:
        if not model:
            return self.fallback_max_tokens
        return self.model_limits.get(model, self.fallback_max_tokens)

    def is_safe(self, prompt: str, model: str | None = None) -> SafetyCheck:
        """Check that ``prompt`` fits within 75% of the model's context.

        The remaining 25% is reserved for the response.
        """
        token_count = self.estimate(prompt)
        max_tokens = self.max_tokens(model)
        safe_limit = math.floor(max_tokens * SAFE_FRACTION)
        return SafetyCheck(
            safe=token_count <= safe_limit,
            token_count=token_count,
            max_tokens=max_tokens,
            safe_limit=safe_limit,
            overflow=max(0, token_count - safe_limit),
        )

    def get_budget(
        self,
        model: str | None = None,
        response_tokens: int = DEFAULT_RESPONSE_TOKENS,
    ) -> TokenBudget:
        """Split the prompt allowance 10% system / 60% context / 30% task."""
        total = self.max_tokens(model)
        prompt = total - response_tokens
        return TokenBudget(
            total=total,
            prompt=prompt,
            response=response_tokens,
            system=math.floor(prompt * 0.1),
            context=math.floor(prompt * 0.6),
            task=math.floor(prompt * 0.3),
        )

    @staticmethod
    def truncate(text: str | None, max_tokens: int) -> str:
        """Hard-cut ``text`` at ``max_tokens * 4`` characters and mark the cut."""
        if not text:
            return ""
        max_chars = max(0, max_tokens) * CHARS_PER_TOKEN
        if len(text) <= max_chars:
            return text
        return text[:max_chars] + TRUNCATION_MARKER
