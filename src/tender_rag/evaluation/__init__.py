"""Evaluation: multi-step proposal scoring against tender context."""

from tender_rag.evaluation.multi_step import (
    STEPS,
    MultiStepEvaluator,
    overall_assessment,
    overall_score,
    win_probability,
)
from tender_rag.evaluation.schemas import ProposalEvaluation, StepConfig, StepResult

__all__ = [
    "STEPS",
    "MultiStepEvaluator",
    "ProposalEvaluation",
    "StepConfig",
    "StepResult",
    "overall_assessment",
    "overall_score",
    "win_probability",
]
