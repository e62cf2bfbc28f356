"""Tests for proposal section guidance."""

from __future__ import annotations

import pytest
from fakes import ScriptedProvider

from tender_rag.llm.errors import ProviderError
from tender_rag.pipeline.guidance import (
    MAX_SUGGESTIONS,
    SectionAdvisor,
    fallback_guidance,
    parse_suggestions,
)

AI_RESPONSE = """\
SUGGESTION 1:
observation: Missing turnover figure
suggestedImprovement: State average annual turnover for the last three years
reason: Evaluators check financial capacity first

SUGGESTION 2:
observation: No project references
suggestedImprovement: Cite two completed road projects with values
reason: Similar work experience is scored separately
"""

COMPLETE_ELIGIBILITY = (
    "We have 12 years of experience in similar road projects, an annual turnover of "
    "₹50 crore, and ISO 9001 certification with valid contractor registration."
)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParseSuggestions:
    def test_blocks(self):
        suggestions = parse_suggestions(AI_RESPONSE)
        assert len(suggestions) == 2
        assert suggestions[0].observation == "Missing turnover figure"
        assert suggestions[0].suggested_improvement == (
            "State average annual turnover for the last three years"
        )
        assert suggestions[0].reason == "Evaluators check financial capacity first"
        assert suggestions[1].reason == "Similar work experience is scored separately"

    def test_capped(self):
        block = "SUGGESTION {n}:\nobservation: o{n}\nsuggestedImprovement: i{n}\nreason: r{n}\n"
        response = "".join(block.format(n=n) for n in range(1, 6))
        assert [s.observation for s in parse_suggestions(response)] == ["o1", "o2", "o3"]

    def test_blocks_without_reason_skipped(self):
        assert parse_suggestions("SUGGESTION 1:\nobservation: only this\n") == []

    def test_no_improvements_needed(self):
        suggestions = parse_suggestions("The draft is solid. No improvements needed.")
        assert len(suggestions) == 1
        assert suggestions[0].observation == "Content review complete"

    def test_unstructured_text(self):
        assert parse_suggestions("Looks fine to me, but add more detail.") == []


# ---------------------------------------------------------------------------
# Rule-based fallback
# ---------------------------------------------------------------------------


class TestFallbackGuidance:
    def test_brief_eligibility_draft(self):
        guidance = fallback_guidance("eligibility", "We are good.")
        assert guidance.mode == "fallback"
        assert [s.observation for s in guidance.suggestions] == [
            "Missing specific experience duration",
            "Financial qualification criteria not mentioned",
            "Required certifications or registrations not specified",
        ]

    def test_complete_eligibility_draft(self):
        guidance = fallback_guidance("ELIGIBILITY", COMPLETE_ELIGIBILITY)
        assert [s.observation for s in guidance.suggestions] == ["Your content appears well-structured"]

    def test_tentative_evaluation_language(self):
        draft = (
            "Our approach might possibly satisfy every evaluation criteria listed, and our "
            "proven capability across comparable assignments supports that claim."
        )
        guidance = fallback_guidance("evaluation", draft)
        assert [s.observation for s in guidance.suggestions] == [
            "Content contains tentative or uncertain language"
        ]

    def test_brevity_check(self):
        draft = "Cost ₹10 lakh, milestone payments, GST extra, we accept terms."
        guidance = fallback_guidance("financial", draft)
        assert [s.observation for s in guidance.suggestions] == [
            "Financial proposal lacks sufficient detail"
        ]

    @pytest.mark.parametrize("section_type", ["general", "overview", "misc"])
    def test_uncategorized_sections(self, section_type: str):
        assert fallback_guidance(section_type, "Short.").suggestions[0].observation == (
            "Content is very brief"
        )
        assert fallback_guidance(section_type, "x" * 60).suggestions[0].observation == (
            "Review for completeness and clarity"
        )

    def test_never_more_than_three(self):
        assert len(fallback_guidance("technical", "").suggestions) == MAX_SUGGESTIONS


# ---------------------------------------------------------------------------
# Advisor
# ---------------------------------------------------------------------------


class TestSectionAdvisor:
    def test_ai_guidance(self, make_gateway):
        provider = ScriptedProvider("groq", [AI_RESPONSE])
        guidance = SectionAdvisor(make_gateway(provider)).analyze(
            "eligibility", "We are good.", requirement="Turnover above ₹10 crore"
        )
        assert guidance.mode == "ai"
        assert len(guidance.suggestions) == 2

        call = provider.calls[0]
        assert "Turnover above ₹10 crore" in call["prompt"]
        assert "User Question: General analysis" in call["prompt"]
        assert call["temperature"] == 0.2

    def test_offline(self, offline_gateway):
        guidance = SectionAdvisor(offline_gateway).analyze("eligibility", "We are good.")
        assert guidance.mode == "fallback"

    @pytest.mark.parametrize("response", [
        ProviderError("groq", 500, "boom"),
        "",
        "Looks fine to me.",
    ])
    def test_falls_back(self, make_gateway, response):
        guidance = SectionAdvisor(make_gateway(ScriptedProvider("groq", [response]))).analyze(
            "technical", ""
        )
        assert guidance.mode == "fallback"
        assert guidance.suggestions
