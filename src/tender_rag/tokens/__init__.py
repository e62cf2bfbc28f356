"""Token estimation and budget allocation."""

from tender_rag.tokens.counter import SafetyCheck, TokenBudget, TokenCounter

__all__ = ["SafetyCheck", "TokenBudget", "TokenCounter"]
