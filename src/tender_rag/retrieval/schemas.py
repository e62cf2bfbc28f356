"""Data models for retrieval operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from tender_rag.config import RetrievalSettings
from tender_rag.vectorstore.schemas import SearchResult


class AnalysisType(StrEnum):
    ELIGIBILITY = "eligibility"
    TECHNICAL = "technical"
    FINANCIAL = "financial"
    RISK = "risk"
    EVALUATION = "evaluation"
    GENERAL = "general"


@dataclass
class RetrievalConfig:
    """Per-category chunk limits for session and global scope.

    Limits are clamped to ``[session_min, session_max]`` and
    ``[global_min, global_max]``; unknown categories get the floor.
    ``absolute_max`` caps session plus global chunks together.
    """

    session_limits: dict[str, int] = field(
        default_factory=lambda: RetrievalSettings().session_limits
    )
    global_limits: dict[str, int] = field(
        default_factory=lambda: RetrievalSettings().global_limits
    )
    session_min: int = 5
    session_max: int = 8
    global_min: int = 3
    global_max: int = 5
    absolute_max: int = 10
    session_share: float = 0.6
    global_share: float = 0.4

    @classmethod
    def from_settings(cls, settings: RetrievalSettings) -> RetrievalConfig:
        return cls(
            session_limits=dict(settings.session_limits),
            global_limits=dict(settings.global_limits),
            session_min=settings.session_min,
            session_max=settings.session_max,
            global_min=settings.global_min,
            global_max=settings.global_max,
            absolute_max=settings.absolute_max,
        )

    def session_limit(self, analysis_type: str) -> int:
        raw = self.session_limits.get(str(analysis_type), self.session_min)
        return max(self.session_min, min(raw, self.session_max))

    def global_limit(self, analysis_type: str) -> int:
        raw = self.global_limits.get(str(analysis_type), self.global_min)
        return max(self.global_min, min(raw, self.global_max))


@dataclass
class RetrievalStats:
    """Counts and token usage of one retrieval, for observability."""

    retrieved_session: int = 0
    retrieved_global: int = 0
    compressed_session: int = 0
    compressed_global: int = 0
    estimated_tokens: int = 0
    token_budget: int = 0

    @property
    def utilization(self) -> int:
        """Context tokens used as a whole percentage of the budget."""
        if self.token_budget <= 0:
            return 0
        return int(self.estimated_tokens * 100 / self.token_budget + 0.5)

    def to_dict(self) -> dict[str, Any]:
        return {
            "retrieved": {
                "session": self.retrieved_session,
                "global": self.retrieved_global,
                "total": self.retrieved_session + self.retrieved_global,
            },
            "compressed": {
                "session": self.compressed_session,
                "global": self.compressed_global,
                "total": self.compressed_session + self.compressed_global,
            },
            "tokens": {
                "estimated": self.estimated_tokens,
                "budget": self.token_budget,
                "utilization": f"{self.utilization}%",
            },
        }


@dataclass
class RetrievalResult:
    """Result of one hybrid retrieval. Never persisted."""

    query: str
    analysis_type: str = AnalysisType.GENERAL
    session_results: list[SearchResult] = field(default_factory=list)
    global_results: list[SearchResult] = field(default_factory=list)
    compressed_session: list[str] = field(default_factory=list)
    compressed_global: list[str] = field(default_factory=list)
    session_context: str = ""
    global_context: str = ""
    context: str = ""
    stats: RetrievalStats = field(default_factory=RetrievalStats)

    @property
    def total_chunks(self) -> int:
        return len(self.session_results) + len(self.global_results)
