"""Multi-step proposal evaluation.

A proposal is scored in four independent steps (eligibility, technical,
financial, risk). Each step retrieves its own reference context and makes
its own gateway call. A step that fails for any reason is replaced by a
neutral fallback so one bad call never aborts the evaluation. The weighted
step scores give the overall score, which drives the assessment labels.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from tender_rag.documents.schemas import ProposalSubmission
from tender_rag.evaluation.schemas import (
    NEUTRAL_SCORE,
    Improvement,
    ProposalEvaluation,
    ScoreEntry,
    StepConfig,
    StepResult,
)
from tender_rag.llm.base import ProviderCallSpec
from tender_rag.llm.errors import MalformedOutputError
from tender_rag.llm.gateway import ProviderGateway
from tender_rag.llm.json_output import parse_json_response
from tender_rag.pipeline.prompts import EVALUATION_SYSTEM_TEMPLATE, build_evaluation_prompt
from tender_rag.retrieval.orchestrator import RetrievalOrchestrator
from tender_rag.retrieval.schemas import AnalysisType

logger = logging.getLogger(__name__)

STEP_TEMPERATURE = 0.2
STEP_MAX_TOKENS = 1000
RELEVANT_CONTENT_CHARS = 3000
MIN_RELEVANT_CHARS = 100
QUERY_CONTENT_CHARS = 500

# Weights are whole percentages so the overall score is exact
STEPS: tuple[StepConfig, ...] = (
    StepConfig(
        name="eligibility",
        label="Eligibility Compliance",
        query="eligibility criteria requirements qualifications certifications experience",
        section_keywords=("eligibility", "compliance", "qualifications", "company"),
        weight=30,
        analysis_type=AnalysisType.ELIGIBILITY,
    ),
    StepConfig(
        name="technical",
        label="Technical Compliance",
        query="technical specifications requirements standards quality methodology",
        section_keywords=("technical", "methodology", "approach", "specifications"),
        weight=30,
        analysis_type=AnalysisType.TECHNICAL,
    ),
    StepConfig(
        name="financial",
        label="Financial Alignment",
        query="financial terms pricing payment EMD cost budget",
        section_keywords=("financial", "pricing", "cost", "payment"),
        weight=20,
        analysis_type=AnalysisType.FINANCIAL,
    ),
    StepConfig(
        name="risk",
        label="Risk & Gap Analysis",
        query="risks penalties gaps missing requirements compliance issues",
        section_keywords=("all",),
        weight=20,
        analysis_type=AnalysisType.RISK,
    ),
)


# ---------------------------------------------------------------------------
# Scoring rules
# ---------------------------------------------------------------------------


def overall_score(step_scores: dict[str, int], steps: tuple[StepConfig, ...] = STEPS) -> int:
    """Weighted sum of step scores, rounded half up."""
    weighted = sum(step.weight * step_scores[step.name] for step in steps)
    total_weight = sum(step.weight for step in steps)
    return (2 * weighted + total_weight) // (2 * total_weight)


def overall_assessment(score: int) -> str:
    if score >= 80:
        return (
            "Strong proposal with comprehensive coverage of requirements. "
            "High likelihood of competitive evaluation."
        )
    if score >= 65:
        return (
            "Solid proposal with good alignment to requirements. "
            "Some improvements recommended for competitive advantage."
        )
    if score >= 50:
        return (
            "Proposal addresses basic requirements but has significant gaps. "
            "Substantial revisions recommended."
        )
    return (
        "Proposal has critical gaps and compliance issues. "
        "Major revisions required before submission."
    )


def win_probability(score: int) -> str:
    if score >= 85:
        return "High"
    if score >= 70:
        return "Medium-High"
    if score >= 55:
        return "Medium"
    if score >= 40:
        return "Low-Medium"
    return "Low"


def win_probability_reason(score: int, results: dict[str, StepResult]) -> str:
    eligibility = results["eligibility"].score if "eligibility" in results else NEUTRAL_SCORE
    technical = results["technical"].score if "technical" in results else NEUTRAL_SCORE
    if score >= 85 and eligibility >= 80 and technical >= 80:
        return (
            "Proposal demonstrates strong compliance and technical capability. "
            "Competitive positioning is favorable."
        )
    if score >= 70:
        return (
            "Proposal is competitive but could benefit from strengthening weaker areas "
            "to improve win chances."
        )
    return "Proposal has gaps that reduce competitiveness. Address critical issues before submission."


def presentation_score(proposal: ProposalSubmission) -> int:
    section_count = len(proposal.sections)
    total_words = sum(s.words for s in proposal.sections)
    score = 70
    if section_count >= 6:
        score += 10
    if total_words >= 1000:
        score += 10
    if total_words >= 2000:
        score += 5
    return min(100, score)


def completeness_score(proposal: ProposalSubmission) -> int:
    section_count = len(proposal.sections)
    if section_count >= 8:
        return 90
    if section_count >= 6:
        return 80
    if section_count >= 4:
        return 70
    if section_count >= 2:
        return 60
    return 50


def relevant_content(proposal: ProposalSubmission, keywords: tuple[str, ...]) -> str:
    """Proposal sections whose titles match ``keywords``, as markdown blocks.

    Falls back to adding the first three sections when the match is under
    100 characters. Capped at 3000 characters.
    """
    if not proposal.sections:
        return ""

    if "all" in keywords:
        selected = list(proposal.sections)
    else:
        selected = [
            s for s in proposal.sections
            if any(k in (s.title or "").lower() for k in keywords)
        ]
    content = "".join(f"\n## {s.title}\n{s.content}\n" for s in selected)

    if len(content) < MIN_RELEVANT_CHARS:
        content += "".join(f"\n## {s.title}\n{s.content}\n" for s in proposal.sections[:3])

    return content[:RELEVANT_CONTENT_CHARS]


def _clamp_score(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
        return NEUTRAL_SCORE
    return max(0, min(100, int(value + 0.5)))


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v]


def parse_step_response(response: str, step_name: str) -> StepResult:
    """Decode a step's JSON answer; unparseable output yields the fallback."""
    try:
        parsed = parse_json_response(response)
    except MalformedOutputError:
        logger.warning("Failed to parse %s response, using fallback", step_name)
        return StepResult.fallback(step_name)

    return StepResult(
        score=_clamp_score(parsed.get("score")),
        feedback=str(parsed.get("feedback") or f"{step_name} evaluation complete."),
        observations=_string_list(parsed.get("observations")),
        gaps=_string_list(parsed.get("gaps")),
    )


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class MultiStepEvaluator:
    """Score a proposal step by step against retrieved tender context.

    Args:
        gateway: Provider gateway for the per-step calls.
        retriever: Hybrid retriever; ``None`` evaluates without context.
        model: Model id for the calls and the context budget.
        max_workers: Steps run one after another at 1; larger values run
            them on a thread pool of at most that many workers.
    """

    def __init__(
        self,
        gateway: ProviderGateway,
        retriever: RetrievalOrchestrator | None = None,
        model: str | None = None,
        max_workers: int = 1,
        steps: tuple[StepConfig, ...] = STEPS,
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.gateway = gateway
        self.retriever = retriever
        self.model = model
        self.max_workers = max_workers
        self.steps = steps

    def evaluate(
        self,
        proposal: ProposalSubmission,
        tender_id: str | None = None,
    ) -> ProposalEvaluation:
        """Evaluate ``proposal``, optionally against the tender ``tender_id``."""
        logger.info(
            "Evaluating proposal %s (%d sections)", proposal.proposal_id, len(proposal.sections)
        )

        if self.max_workers == 1:
            outcomes = [self._safe_step(step, proposal, tender_id) for step in self.steps]
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(self.steps))) as pool:
                outcomes = list(pool.map(
                    lambda step: self._safe_step(step, proposal, tender_id), self.steps
                ))

        results = {step.name: result for step, result in zip(self.steps, outcomes, strict=True)}
        score = overall_score({name: r.score for name, r in results.items()}, self.steps)
        logger.info("Evaluation complete. Overall score: %d/100", score)

        return ProposalEvaluation(
            proposal_id=proposal.proposal_id,
            evaluated_at=datetime.now(timezone.utc).isoformat(),
            overall_score=score,
            overall_assessment=overall_assessment(score),
            scores=self._score_table(results, proposal),
            strengths=self._strengths(results),
            weaknesses=self._weaknesses(results),
            missing_elements=results["risk"].missing_elements if "risk" in results else [],
            improvements=self._improvements(results),
            win_probability=win_probability(score),
            win_probability_reason=win_probability_reason(score, results),
            recommended_actions=self._actions(results),
            step_details=results,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _safe_step(
        self,
        step: StepConfig,
        proposal: ProposalSubmission,
        tender_id: str | None,
    ) -> StepResult:
        try:
            result = self._run_step(step, proposal, tender_id)
        except Exception as exc:
            logger.warning("Step %s failed, using fallback: %s", step.name, exc)
            return StepResult.fallback(step.name)
        logger.info("Step %s score: %d/100", step.name, result.score)
        return result

    def _run_step(
        self,
        step: StepConfig,
        proposal: ProposalSubmission,
        tender_id: str | None,
    ) -> StepResult:
        content = relevant_content(proposal, step.section_keywords)
        context = self._retrieve_context(step, content, tender_id)

        response = self.gateway.call(ProviderCallSpec(
            user_prompt=build_evaluation_prompt(step.name, step.label, content, context),
            system_prompt=EVALUATION_SYSTEM_TEMPLATE.format(label=step.label),
            model_id=self.model,
            temperature=STEP_TEMPERATURE,
            max_response_tokens=STEP_MAX_TOKENS,
        ))
        return parse_step_response(response, step.name)

    def _retrieve_context(self, step: StepConfig, content: str, tender_id: str | None) -> str:
        if self.retriever is None:
            return ""
        query = f"{step.query} {content[:QUERY_CONTENT_CHARS]}".strip()
        try:
            retrieval = self.retriever.retrieve(
                query,
                session_id=tender_id,
                analysis_type=step.analysis_type,
                model=self.model,
            )
        except Exception as exc:
            logger.warning("%s: retrieval failed, continuing without context: %s", step.name, exc)
            return ""
        logger.info(
            "%s: retrieved %d chunks", step.name, retrieval.stats.to_dict()["compressed"]["total"]
        )
        return retrieval.context

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    @staticmethod
    def _score_table(
        results: dict[str, StepResult],
        proposal: ProposalSubmission,
    ) -> dict[str, ScoreEntry]:
        table = {
            "compliance" if name == "eligibility" else name: ScoreEntry(r.score, r.feedback)
            for name, r in results.items()
            if name != "risk"
        }
        table["presentation"] = ScoreEntry(
            presentation_score(proposal), "Proposal structure and formatting assessed."
        )
        table["completeness"] = ScoreEntry(
            completeness_score(proposal), f"Proposal contains {len(proposal.sections)} sections."
        )
        return table

    @staticmethod
    def _strengths(results: dict[str, StepResult]) -> list[str]:
        strengths: list[str] = []
        for result in results.values():
            if result.score >= 75:
                strengths.extend(result.observations[:2])
        return strengths[:5]

    @staticmethod
    def _weaknesses(results: dict[str, StepResult]) -> list[str]:
        weaknesses: list[str] = []
        for result in results.values():
            if result.score < 70:
                weaknesses.extend(result.gaps[:2])
        return weaknesses[:5]

    @staticmethod
    def _improvements(results: dict[str, StepResult]) -> list[Improvement]:
        improvements = [
            Improvement(section=name.capitalize(), suggestion=gap)
            for name, result in results.items()
            for gap in result.gaps[:2]
        ]
        return improvements[:8]

    @staticmethod
    def _actions(results: dict[str, StepResult]) -> list[str]:
        actions = [
            f"Review and strengthen {name} section based on feedback"
            for name, result in results.items()
            if result.score < 70
        ]
        if not actions:
            actions = ["Final review of all sections", "Verify all required documents are attached"]
        return actions[:5]
