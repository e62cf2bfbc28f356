"""Advisory guidance on a bidder's draft proposal section.

The gateway is asked for up to three ``SUGGESTION n:`` blocks. Without a
credential, or when the answer is empty, unparseable or the call fails,
rule-based checks for the section's category produce the guidance instead.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from tender_rag.chunking.schemas import Category
from tender_rag.llm.base import ProviderCallSpec
from tender_rag.llm.errors import LLMError
from tender_rag.llm.gateway import ProviderGateway
from tender_rag.pipeline.prompts import GUIDANCE_SYSTEM_PROMPT, build_guidance_prompt

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3
GUIDANCE_TEMPERATURE = 0.2
GUIDANCE_MAX_TOKENS = 1000


@dataclass(frozen=True)
class Suggestion:
    observation: str
    suggested_improvement: str
    reason: str


@dataclass
class SectionGuidance:
    mode: str
    suggestions: list[Suggestion] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Parsing model output
# ---------------------------------------------------------------------------

_SUGGESTION_SPLIT = re.compile(r"SUGGESTION\s+\d+:", re.IGNORECASE)
_OBSERVATION = re.compile(
    r"observation:\s*(.+?)(?=suggestedImprovement:|reason:|SUGGESTION|$)",
    re.IGNORECASE | re.DOTALL,
)
_IMPROVEMENT = re.compile(
    r"suggestedImprovement:\s*(.+?)(?=reason:|SUGGESTION|$)",
    re.IGNORECASE | re.DOTALL,
)
_REASON = re.compile(r"reason:\s*(.+?)(?=SUGGESTION|$)", re.IGNORECASE | re.DOTALL)

_NO_IMPROVEMENTS = (
    "no improvements needed",
    "no improvement needed",
    "well-structured and comprehensive",
)


def _group(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def parse_suggestions(response: str) -> list[Suggestion]:
    """Parse ``SUGGESTION n:`` blocks; an empty list means nothing usable."""
    lowered = response.lower()
    if any(phrase in lowered for phrase in _NO_IMPROVEMENTS):
        return [Suggestion(
            observation="Content review complete",
            suggested_improvement="",
            reason="Your draft appears well-structured and addresses key requirements.",
        )]

    suggestions = []
    for block in _SUGGESTION_SPLIT.split(response):
        if not block.strip():
            continue
        observation = _group(_OBSERVATION, block)
        reason = _group(_REASON, block)
        if observation and reason:
            suggestions.append(Suggestion(
                observation=observation[:200],
                suggested_improvement=_group(_IMPROVEMENT, block)[:300],
                reason=reason[:200],
            ))
    return suggestions[:MAX_SUGGESTIONS]


# ---------------------------------------------------------------------------
# Rule-based checks
# ---------------------------------------------------------------------------

# Category -> (pattern the draft should contain, suggestion when it does not)
_Rule = tuple[re.Pattern[str], Suggestion]


_RULES: dict[Category, list[_Rule]] = {
    Category.ELIGIBILITY: [
        (re.compile(r"\d+\s*(?:year|yr)"), Suggestion(
            "Missing specific experience duration",
            'Explicitly state years of experience (e.g., "minimum 5 years of experience '
            'in similar projects")',
            "Tender evaluators require clear, quantifiable experience metrics for assessment",
        )),
        (re.compile(r"turnover|revenue|financial|₹|rs\.?|inr"), Suggestion(
            "Financial qualification criteria not mentioned",
            "Include average annual turnover or financial capacity with supporting "
            "documentation reference",
            "Demonstrates financial stability and capacity to execute the project",
        )),
        (re.compile(r"certificate|certification|registration|license|iso|permit"), Suggestion(
            "Required certifications or registrations not specified",
            "List all relevant certifications, licenses, and statutory registrations "
            "(e.g., GST, ISO certifications)",
            "Regulatory compliance is mandatory for government tenders",
        )),
        (re.compile(r"similar|comparable|previous|past|completed|experience"), Suggestion(
            "Similar project experience not highlighted",
            "Provide examples of similar projects completed, with project values and "
            "completion dates",
            "Demonstrates proven capability and reduces perceived execution risk",
        )),
    ],
    Category.TECHNICAL: [
        (re.compile(r"approach|methodology|method|process|procedure|strategy"), Suggestion(
            "Technical approach or methodology not clearly defined",
            "Describe your technical approach in structured steps (e.g., Phase 1: "
            "Assessment, Phase 2: Implementation)",
            "Clear methodology demonstrates planning and reduces execution uncertainty",
        )),
        (re.compile(r"standard|specification|iso|isi|compliance|conform|guideline"), Suggestion(
            "Compliance with technical standards not mentioned",
            "Explicitly reference applicable standards (ISO, ISI, BIS) and how your "
            "solution complies",
            "Standards compliance ensures quality and facilitates acceptance testing",
        )),
        (re.compile(r"tool|technology|material|equipment|resource|system"), Suggestion(
            "Tools, technologies, or materials not specified",
            "List key tools, technologies, and materials to be used with technical justification",
            "Transparent resource planning enables better evaluation of technical feasibility",
        )),
        (re.compile(r"quality|testing|test|qa|qc|inspection|verification|validation"), Suggestion(
            "Quality assurance or testing procedures not addressed",
            'Define quality control measures and testing protocols (e.g., "third-party '
            'testing at key milestones")',
            "Quality assurance processes are critical for government project acceptance",
        )),
    ],
    Category.FINANCIAL: [
        (re.compile(r"cost|price|pricing|rate|amount|₹|rs\.?|inr"), Suggestion(
            "Cost structure or pricing assumptions not detailed",
            "Provide itemized cost breakdown with clear assumptions and basis of estimates",
            "Transparent pricing enables accurate evaluation and prevents post-award disputes",
        )),
        (re.compile(r"payment|milestone|installment|schedule|advance|final"), Suggestion(
            "Payment milestones or schedule not defined",
            'Specify payment terms linked to deliverable milestones (e.g., "30% advance, '
            '40% on delivery, 30% after acceptance")',
            "Milestone-based payments align with government financial procedures",
        )),
        (re.compile(r"tax|gst|duty|emd|earnest|deposit|security"), Suggestion(
            "Tax, duties, or EMD references missing",
            "Clarify GST applicability, EMD amount, and other financial obligations as per "
            "tender terms",
            "Financial compliance with tender conditions prevents disqualification",
        )),
        (re.compile(r"comply|accept|agree|acknowledge|confirm"), Suggestion(
            "Acceptance of financial terms not explicitly confirmed",
            'Add explicit acceptance statement (e.g., "We accept all payment and financial '
            'terms as specified in the tender")',
            "Explicit confirmation demonstrates commitment and reduces negotiation risks",
        )),
    ],
    Category.EVALUATION: [
        (re.compile(r"criteria|parameter|score|weight|evaluation|assessment"), Suggestion(
            "Evaluation criteria or parameters not explicitly addressed",
            "Map your response directly to each evaluation criterion mentioned in the tender",
            "Direct alignment with evaluation criteria maximizes scoring potential",
        )),
        (re.compile(r"strength|advantage|experience|capability|proven|successful"), Suggestion(
            "Key strengths or differentiators not highlighted",
            "Emphasize relevant strengths that align with scoring parameters (e.g., past "
            "performance, certifications)",
            "Highlighting strengths helps evaluators identify your competitive advantages",
        )),
    ],
    Category.TERMS: [
        (re.compile(r"accept|agree|acknowledge|comply|confirm"), Suggestion(
            "Explicit acceptance of terms not stated",
            'Include clear acceptance statement (e.g., "We accept all terms and conditions '
            'without deviation")',
            "Explicit acceptance prevents ambiguity and potential disqualification",
        )),
        (re.compile(r"condition|clause|provision|requirement|obligation"), Suggestion(
            "Key conditions or obligations not referenced",
            "Acknowledge critical conditions like delivery timelines, warranties, and "
            "performance guarantees",
            "Demonstrating understanding of obligations builds evaluator confidence",
        )),
        (
            re.compile(
                r"dispute|penalty|liquidated damage|timeline|deadline|duration|warranty|guarantee"
            ),
            Suggestion(
                "Risk-related terms (penalties, disputes, warranties) not addressed",
                "Confirm understanding of penalty clauses, dispute resolution mechanisms, "
                "and warranty periods",
                "Acknowledging risk provisions shows preparedness and professionalism",
            ),
        ),
    ],
}

_TENTATIVE = re.compile(r"maybe|perhaps|might|possibly|could be")
_TENTATIVE_SUGGESTION = Suggestion(
    "Content contains tentative or uncertain language",
    "Use clear, factual, and confident language supported by evidence",
    "Confident, evidence-based responses inspire trust in your capability",
)

# Category -> (minimum length, suggestion when the draft is shorter)
_BREVITY: dict[Category, tuple[int, Suggestion]] = {
    Category.ELIGIBILITY: (100, Suggestion(
        "Content is too brief for eligibility criteria",
        "Expand with detailed qualification information, backed by specific evidence",
        "Comprehensive eligibility responses inspire confidence in evaluators",
    )),
    Category.TECHNICAL: (150, Suggestion(
        "Technical content lacks detail",
        "Expand with specific technical details, mapped directly to tender specifications",
        "Detailed technical responses demonstrate competence and preparation",
    )),
    Category.FINANCIAL: (100, Suggestion(
        "Financial proposal lacks sufficient detail",
        "Expand with comprehensive financial terms, aligned with tender requirements",
        "Detailed financial proposals facilitate faster evaluation and approval",
    )),
    Category.EVALUATION: (100, Suggestion(
        "Evaluation response too brief",
        "Expand by addressing each evaluation parameter systematically with supporting facts",
        "Comprehensive responses demonstrate thoroughness and attention to detail",
    )),
    Category.TERMS: (80, Suggestion(
        "Terms acceptance too brief",
        "Provide detailed confirmation of each major term or condition group",
        "Thorough acknowledgment reduces post-award conflicts",
    )),
}

_GENERIC_BRIEF = Suggestion(
    "Content is very brief",
    "Expand with specific details, examples, and supporting documentation references",
    "Comprehensive responses demonstrate preparation and seriousness",
)
_GENERIC_REVIEW = Suggestion(
    "Review for completeness and clarity",
    "Ensure all tender requirements are addressed with factual, evidence-based content",
    "Complete and clear proposals reduce evaluation friction and improve success rates",
)
_WELL_STRUCTURED = Suggestion(
    "Your content appears well-structured",
    "Review alignment with tender requirements before submission",
    "Regular review ensures completeness and accuracy",
)


def _category(section_type: str) -> Category | None:
    try:
        return Category(section_type.upper())
    except ValueError:
        return None


def fallback_guidance(section_type: str, draft: str = "") -> SectionGuidance:
    """Deterministic guidance from keyword checks on the draft."""
    content = (draft or "").lower()
    length = len(content.strip())
    category = _category(section_type)

    suggestions: list[Suggestion] = []
    if category in _RULES:
        for pattern, suggestion in _RULES[category]:
            if not pattern.search(content):
                suggestions.append(suggestion)
        if category == Category.EVALUATION and _TENTATIVE.search(content):
            suggestions.append(_TENTATIVE_SUGGESTION)
        min_length, brief = _BREVITY[category]
        if length < min_length:
            suggestions.append(brief)
    else:
        suggestions.append(_GENERIC_BRIEF if length < 50 else _GENERIC_REVIEW)

    if not suggestions:
        suggestions.append(_WELL_STRUCTURED)

    return SectionGuidance(mode="fallback", suggestions=suggestions[:MAX_SUGGESTIONS])


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


class SectionAdvisor:
    """Suggest improvements to a draft proposal section. Never raises."""

    def __init__(self, gateway: ProviderGateway, model: str | None = None):
        self.gateway = gateway
        self.model = model

    def analyze(
        self,
        section_type: str,
        draft: str,
        requirement: str = "",
        question: str = "",
    ) -> SectionGuidance:
        if not self.gateway.is_available():
            logger.info("No provider configured, using fallback guidance")
            return fallback_guidance(section_type, draft)

        try:
            response = self.gateway.call(ProviderCallSpec(
                user_prompt=build_guidance_prompt(section_type, draft or "", requirement, question),
                system_prompt=GUIDANCE_SYSTEM_PROMPT,
                model_id=self.model,
                temperature=GUIDANCE_TEMPERATURE,
                max_response_tokens=GUIDANCE_MAX_TOKENS,
            ))
        except LLMError as exc:
            logger.warning("Guidance call failed, using fallback: %s", exc)
            return fallback_guidance(section_type, draft)

        if not response or not response.strip():
            logger.warning("Empty guidance response, using fallback")
            return fallback_guidance(section_type, draft)

        suggestions = parse_suggestions(response)
        if not suggestions:
            logger.warning("Could not parse guidance response, using fallback")
            return fallback_guidance(section_type, draft)

        return SectionGuidance(mode="ai", suggestions=suggestions)
