"""Tests for multi-step proposal evaluation."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from fakes import ScriptedProvider

from tender_rag.documents.schemas import ProposalSection, ProposalSubmission
from tender_rag.evaluation.multi_step import (
    STEPS,
    MultiStepEvaluator,
    completeness_score,
    overall_assessment,
    overall_score,
    parse_step_response,
    presentation_score,
    relevant_content,
    win_probability,
)
from tender_rag.evaluation.schemas import NEUTRAL_SCORE, Improvement, StepResult
from tender_rag.llm.errors import ProviderError
from tender_rag.pipeline.ingest import IngestPipeline
from tender_rag.retrieval.orchestrator import RetrievalOrchestrator

STEP_ANSWERS = {
    "Eligibility Compliance": {
        "score": 90,
        "feedback": "Meets every eligibility condition.",
        "observations": ["ISO certified", "12 years experience", "Class-A registration"],
        "gaps": [],
    },
    "Technical Compliance": None,  # provider failure
    "Financial Alignment": {
        "score": 70,
        "feedback": "Pricing is within estimate.",
        "observations": ["Accepts milestones"],
        "gaps": ["No EMD confirmation"],
    },
    "Risk & Gap Analysis": {
        "score": 80,
        "feedback": "Few open risks.",
        "observations": [],
        "gaps": ["Missing insurance details"],
    },
}


def _step_label(prompt: str) -> str:
    first_line = prompt.splitlines()[0]
    return first_line.removeprefix("EVALUATION STEP: ")


def respond_by_step(prompt: str, system: str) -> str:
    answer = STEP_ANSWERS[_step_label(prompt)]
    if answer is None:
        raise ProviderError("groq", 502, "bad gateway")
    return json.dumps(answer)


# ---------------------------------------------------------------------------
# Scoring rules
# ---------------------------------------------------------------------------


class TestScoringRules:
    def test_weights(self):
        assert [(s.name, s.weight) for s in STEPS] == [
            ("eligibility", 30), ("technical", 30), ("financial", 20), ("risk", 20),
        ]

    def test_overall_score(self):
        scores = {"eligibility": 90, "technical": 60, "financial": 70, "risk": 80}
        assert overall_score(scores) == 75

    def test_overall_score_rounds_half_up(self):
        scores = {"eligibility": 85, "technical": 60, "financial": 70, "risk": 80}
        assert overall_score(scores) == 74  # 73.5

    def test_all_neutral(self):
        assert overall_score({s.name: NEUTRAL_SCORE for s in STEPS}) == NEUTRAL_SCORE

    @pytest.mark.parametrize("score,label", [
        (100, "High"), (85, "High"), (84, "Medium-High"), (70, "Medium-High"),
        (69, "Medium"), (55, "Medium"), (54, "Low-Medium"), (40, "Low-Medium"), (39, "Low"),
    ])
    def test_win_probability(self, score: int, label: str):
        assert win_probability(score) == label

    @pytest.mark.parametrize("score,prefix", [
        (80, "Strong proposal"),
        (79, "Solid proposal"),
        (65, "Solid proposal"),
        (64, "Proposal addresses basic requirements"),
        (50, "Proposal addresses basic requirements"),
        (49, "Proposal has critical gaps"),
    ])
    def test_overall_assessment(self, score: int, prefix: str):
        assert overall_assessment(score).startswith(prefix)

    def test_presentation_and_completeness(self, proposal: ProposalSubmission):
        assert presentation_score(proposal) == 70
        assert completeness_score(proposal) == 70

        long_proposal = ProposalSubmission(
            proposal_id="P-long",
            sections=[ProposalSection(f"S{i}", "word " * 400) for i in range(8)],
        )
        assert presentation_score(long_proposal) == 95
        assert completeness_score(long_proposal) == 90
        assert completeness_score(ProposalSubmission(proposal_id="P-empty")) == 50


# ---------------------------------------------------------------------------
# Step parsing and content selection
# ---------------------------------------------------------------------------


class TestParseStepResponse:
    def test_valid(self):
        result = parse_step_response(json.dumps(STEP_ANSWERS["Financial Alignment"]), "financial")
        assert result.score == 70
        assert result.gaps == ["No EMD confirmation"]
        assert result.missing_elements == ["No EMD confirmation"]
        assert not result.is_fallback

    @pytest.mark.parametrize("score,expected", [
        (150, 100), (-5, 0), (72.6, 73), (0, NEUTRAL_SCORE), ("high", NEUTRAL_SCORE), (None, NEUTRAL_SCORE),
    ])
    def test_score_clamped(self, score, expected: int):
        assert parse_step_response(json.dumps({"score": score}), "risk").score == expected

    def test_fenced(self):
        assert parse_step_response('```json\n{"score": 81}\n```', "technical").score == 81

    def test_malformed_gives_fallback(self):
        result = parse_step_response("I think it is fine.", "technical")
        assert result == StepResult.fallback("technical")
        assert result.feedback == "technical evaluation completed. Manual review recommended."
        assert result.is_fallback


class TestRelevantContent:
    def test_by_title(self, proposal: ProposalSubmission):
        content = relevant_content(proposal, ("eligibility", "company"))
        assert "## Company Profile" in content
        assert "## Eligibility and Qualifications" in content
        assert "## Technical Approach" not in content

    def test_all(self, proposal: ProposalSubmission):
        assert relevant_content(proposal, ("all",)).count("\n## ") == 4

    def test_short_match_padded_with_first_sections(self, proposal: ProposalSubmission):
        content = relevant_content(proposal, ("nonexistent",))
        assert content.startswith("\n## Company Profile")
        assert "## Financial Proposal" not in content

    def test_capped(self):
        proposal = ProposalSubmission(
            proposal_id="P", sections=[ProposalSection("Technical", "x" * 5000)]
        )
        assert len(relevant_content(proposal, ("technical",))) == 3000

    def test_empty(self):
        assert relevant_content(ProposalSubmission(proposal_id="P"), ("all",)) == ""


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class TestMultiStepEvaluator:
    def test_failed_step_isolated(self, proposal: ProposalSubmission, make_gateway):
        provider = ScriptedProvider("groq", respond_by_step)
        evaluation = MultiStepEvaluator(make_gateway(provider)).evaluate(proposal)

        assert len(provider.calls) == 4
        assert evaluation.step_details["technical"].is_fallback
        assert evaluation.step_details["technical"].score == NEUTRAL_SCORE
        assert evaluation.overall_score == 75
        assert evaluation.win_probability == "Medium-High"
        assert evaluation.overall_assessment.startswith("Solid proposal")

    def test_aggregation(self, proposal: ProposalSubmission, make_gateway):
        evaluation = MultiStepEvaluator(
            make_gateway(ScriptedProvider("groq", respond_by_step))
        ).evaluate(proposal)

        assert set(evaluation.scores) == {
            "compliance", "technical", "financial", "presentation", "completeness",
        }
        assert evaluation.scores["compliance"].score == 90
        assert evaluation.scores["presentation"].score == 70
        assert evaluation.strengths == ["ISO certified", "12 years experience"]
        assert evaluation.weaknesses == []
        assert evaluation.missing_elements == ["Missing insurance details"]
        assert evaluation.improvements == [
            Improvement("Financial", "No EMD confirmation"),
            Improvement("Risk", "Missing insurance details"),
        ]
        assert evaluation.recommended_actions == [
            "Review and strengthen technical section based on feedback"
        ]

    def test_step_prompts(self, proposal: ProposalSubmission, make_gateway):
        provider = ScriptedProvider("groq", respond_by_step)
        MultiStepEvaluator(make_gateway(provider)).evaluate(proposal)

        labels = [_step_label(c["prompt"]) for c in provider.calls]
        assert labels == [s.label for s in STEPS]
        assert all(c["temperature"] == 0.2 and c["max_tokens"] == 1000 for c in provider.calls)
        assert "Eligibility Compliance" in provider.calls[0]["system"]
        assert "REFERENCE CONTEXT" not in provider.calls[0]["prompt"]

    def test_parallel_matches_sequential(self, proposal: ProposalSubmission, make_gateway):
        sequential = MultiStepEvaluator(
            make_gateway(ScriptedProvider("groq", respond_by_step))
        ).evaluate(proposal)
        parallel = MultiStepEvaluator(
            make_gateway(ScriptedProvider("groq", respond_by_step)), max_workers=2
        ).evaluate(proposal)

        assert parallel.overall_score == sequential.overall_score
        assert list(parallel.step_details) == ["eligibility", "technical", "financial", "risk"]
        assert parallel.step_details["technical"].is_fallback

    def test_invalid_workers(self, offline_gateway):
        with pytest.raises(ValueError, match="max_workers"):
            MultiStepEvaluator(offline_gateway, max_workers=0)

    def test_offline(self, proposal: ProposalSubmission, offline_gateway):
        evaluation = MultiStepEvaluator(offline_gateway).evaluate(proposal)
        assert evaluation.overall_score == NEUTRAL_SCORE
        assert evaluation.win_probability == "Medium"
        assert all(r.is_fallback for r in evaluation.step_details.values())

    def test_with_tender_context(
        self, proposal, tender, embedder, store, retriever: RetrievalOrchestrator, make_gateway
    ):
        IngestPipeline(embedder, store).ingest_tender(tender)
        provider = ScriptedProvider("groq", respond_by_step)
        MultiStepEvaluator(make_gateway(provider), retriever=retriever).evaluate(
            proposal, tender_id=tender.tender_id
        )
        prompt = provider.calls[0]["prompt"]
        assert "REFERENCE CONTEXT:" in prompt
        assert "[SESSION-1]" in prompt

    def test_retrieval_failure_continues(self, proposal: ProposalSubmission, make_gateway):
        retriever = MagicMock(spec=RetrievalOrchestrator)
        retriever.retrieve.side_effect = RuntimeError("index unavailable")
        provider = ScriptedProvider("groq", respond_by_step)

        evaluation = MultiStepEvaluator(make_gateway(provider), retriever=retriever).evaluate(
            proposal, tender_id="T-1"
        )
        assert retriever.retrieve.call_count == 4
        assert evaluation.overall_score == 75
        assert "REFERENCE CONTEXT" not in provider.calls[0]["prompt"]

    def test_to_dict(self, proposal: ProposalSubmission, make_gateway):
        data = MultiStepEvaluator(
            make_gateway(ScriptedProvider("groq", respond_by_step))
        ).evaluate(proposal).to_dict()
        assert data["proposalId"] == "P-001"
        assert data["overallScore"] == 75
        assert data["scores"]["technical"]["score"] == NEUTRAL_SCORE
        assert data["stepDetails"]["technical"]["isFallback"] is True
        assert data["missingElements"] == ["Missing insurance details"]
