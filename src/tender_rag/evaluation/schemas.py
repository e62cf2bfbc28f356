"""Data models for multi-step proposal evaluation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from tender_rag.retrieval.schemas import AnalysisType

NEUTRAL_SCORE = 60


@dataclass(frozen=True)
class StepConfig:
    """One evaluation step.

    ``section_keywords`` selects proposal sections by title; ``("all",)``
    takes every section.
    """

    name: str
    label: str
    query: str
    section_keywords: tuple[str, ...]
    weight: int
    analysis_type: AnalysisType


@dataclass
class StepResult:
    """Score and findings of one step."""

    score: int
    feedback: str
    observations: list[str] = field(default_factory=list)
    gaps: list[str] = field(default_factory=list)
    is_fallback: bool = False

    @property
    def missing_elements(self) -> list[str]:
        return list(self.gaps)

    @classmethod
    def fallback(cls, step_name: str) -> StepResult:
        return cls(
            score=NEUTRAL_SCORE,
            feedback=f"{step_name} evaluation completed. Manual review recommended.",
            observations=["Automatic evaluation completed"],
            is_fallback=True,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "feedback": self.feedback,
            "observations": list(self.observations),
            "gaps": list(self.gaps),
            "missingElements": self.missing_elements,
            "isFallback": self.is_fallback,
        }


@dataclass
class ScoreEntry:
    score: int
    feedback: str


@dataclass
class Improvement:
    section: str
    suggestion: str


@dataclass
class ProposalEvaluation:
    """Aggregated evaluation of one proposal."""

    proposal_id: str
    overall_score: int
    overall_assessment: str
    scores: dict[str, ScoreEntry]
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    missing_elements: list[str] = field(default_factory=list)
    improvements: list[Improvement] = field(default_factory=list)
    win_probability: str = "Medium"
    win_probability_reason: str = ""
    recommended_actions: list[str] = field(default_factory=list)
    step_details: dict[str, StepResult] = field(default_factory=dict)
    evaluated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "proposalId": self.proposal_id,
            "evaluatedAt": self.evaluated_at,
            "overallScore": self.overall_score,
            "overallAssessment": self.overall_assessment,
            "scores": {
                name: {"score": entry.score, "feedback": entry.feedback}
                for name, entry in self.scores.items()
            },
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "missingElements": list(self.missing_elements),
            "improvements": [
                {"section": i.section, "suggestion": i.suggestion} for i in self.improvements
            ],
            "winProbability": self.win_probability,
            "winProbabilityReason": self.win_probability_reason,
            "recommendedActions": list(self.recommended_actions),
            "stepDetails": {name: r.to_dict() for name, r in self.step_details.items()},
        }
