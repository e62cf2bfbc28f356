"""Two-stage tender summary: fact extraction, then formatting only.

Stage 1 asks a provider for strict JSON facts drawn from the tender text.
Stage 2 asks a (usually different) provider to rephrase those facts for
display without adding any. The formatted output is checked for invented
amounts and dates. When Stage 2 is unavailable the facts are passed through
with deterministic formatting; when Stage 1 fails the summary is built from
the document alone.
"""

from __future__ import annotations

import logging
from typing import Any

from tender_rag.documents.schemas import TenderDocument
from tender_rag.llm.base import ProviderCallSpec
from tender_rag.llm.errors import LLMError
from tender_rag.llm.gateway import ProviderGateway
from tender_rag.llm.json_output import parse_json_response
from tender_rag.pipeline.hallucination import validate_no_hallucination
from tender_rag.pipeline.prompts import (
    EXTRACTION_SYSTEM_PROMPT,
    FORMATTING_SYSTEM_PROMPT,
    build_extraction_prompt,
    build_formatting_prompt,
)
from tender_rag.pipeline.schemas import (
    DEFAULT_OPPORTUNITY_SCORE,
    NOT_SPECIFIED,
    ExtractedFactSet,
    FinancialDetails,
    FormattedPresentation,
    FormattingResult,
    RiskItem,
    TenderSummary,
)

logger = logging.getLogger(__name__)

EXTRACTION_TEMPERATURE = 0.1
EXTRACTION_MAX_TOKENS = 4000
FORMATTING_TEMPERATURE = 0.1
FORMATTING_MAX_TOKENS = 4000

DEFAULT_EXECUTIVE_SUMMARY = "Analysis data available. Please review sections for details."
DEFAULT_ASSESSMENT = "Review complete tender document for assessment."
OTHER_CHARGES_NOTE = "Review tender document for complete financial details"

_HIGH_RISK = ("disqualif", "reject", "penalty", "terminate")
_MEDIUM_RISK = ("delay", "additional", "may")

# Section keywords used by the document-only summary
_FALLBACK_KEYWORDS: dict[str, tuple[str, ...]] = {
    "eligibilityCriteria": ("eligibility", "qualification", "criteria"),
    "technicalSpecifications": ("technical", "specification", "requirement"),
    "financialTerms": ("financial", "payment", "emd", "price"),
    "complianceRequirements": ("compliance", "penalty", "warranty"),
}
_FALLBACK_KEYWORD_LIMIT = 5


# ---------------------------------------------------------------------------
# Deterministic formatting
# ---------------------------------------------------------------------------


def _clean(items: list[Any]) -> list[str]:
    return [item for item in items if isinstance(item, str) and item.strip()]


def _financial_item(terms: list[Any], keyword: str) -> str:
    for term in _clean(terms):
        if keyword in term.lower():
            return term
    return NOT_SPECIFIED


def infer_risk_severity(risk: str) -> str:
    text = risk.lower()
    if any(k in text for k in _HIGH_RISK):
        return "HIGH"
    if any(k in text for k in _MEDIUM_RISK):
        return "MEDIUM"
    return "LOW"


def _risk_items(risks: list[Any]) -> list[RiskItem]:
    items = []
    for risk in risks:
        if isinstance(risk, str) and risk.strip():
            items.append(RiskItem(risk, infer_risk_severity(risk)))
        elif isinstance(risk, dict) and risk.get("risk"):
            text = str(risk["risk"])
            severity = str(risk.get("severity") or infer_risk_severity(text)).upper()
            items.append(RiskItem(text, severity))
    return items


def passthrough(facts: ExtractedFactSet) -> FormattedPresentation:
    """Format extracted facts without any model call."""
    return FormattedPresentation(
        executive_summary=facts.executive_summary or DEFAULT_EXECUTIVE_SUMMARY,
        critical_requirements=_clean(facts.critical_requirements),
        eligibility_criteria=_clean(facts.eligibility_criteria),
        technical_specifications=_clean(facts.technical_specifications),
        financial_details=FinancialDetails(
            emd=_financial_item(facts.financial_terms, "emd"),
            estimated_value=_financial_item(facts.financial_terms, "value"),
            payment_terms=_financial_item(facts.financial_terms, "payment"),
            other_charges=OTHER_CHARGES_NOTE,
        ),
        deadlines_timeline=_clean(facts.deadlines_and_timelines),
        risk_factors=_risk_items(facts.risk_factors),
        recommended_actions=_clean(facts.action_items),
        opportunity_score=facts.opportunity_score or DEFAULT_OPPORTUNITY_SCORE,
        opportunity_assessment=facts.opportunity_assessment or DEFAULT_ASSESSMENT,
    )


def _financial_terms(details: FinancialDetails, fallback: list[Any]) -> list[str]:
    terms = []
    for label, value in (
        ("EMD", details.emd),
        ("Estimated Value", details.estimated_value),
        ("Payment Terms", details.payment_terms),
    ):
        if value and not value.startswith("Not specified"):
            terms.append(f"{label}: {value}")
    if details.other_charges and not details.other_charges.startswith("Not specified"):
        terms.append(details.other_charges)
    return terms or _clean(fallback)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class TwoStagePipeline:
    """Extract facts with one provider, format them with another.

    Args:
        gateway: Provider gateway used for both stages.
        extraction_provider: Provider for Stage 1; ``None`` takes the first
            configured one.
        formatting_provider: Provider for Stage 2. When it has no
            credential, Stage 2 is a deterministic passthrough.
    """

    def __init__(
        self,
        gateway: ProviderGateway,
        extraction_provider: str | None = None,
        formatting_provider: str | None = "gemini",
    ):
        self.gateway = gateway
        self.extraction_provider = extraction_provider
        self.formatting_provider = formatting_provider

    def extract_facts(self, document: TenderDocument) -> ExtractedFactSet:
        """Stage 1. Raises ``LLMError`` on any provider or parse failure."""
        spec = ProviderCallSpec(
            user_prompt=build_extraction_prompt(document),
            system_prompt=EXTRACTION_SYSTEM_PROMPT,
            provider_id=self.extraction_provider,
            temperature=EXTRACTION_TEMPERATURE,
            max_response_tokens=EXTRACTION_MAX_TOKENS,
        )
        raw = self.gateway.call(spec)
        facts = ExtractedFactSet.from_dict(parse_json_response(raw))
        logger.info("Stage 1 complete for tender %s", document.tender_id)
        return facts

    def format_facts(self, facts: ExtractedFactSet) -> FormattingResult:
        """Stage 2. Never raises; failures fall back to ``passthrough``."""
        if not self.gateway.is_available(self.formatting_provider):
            logger.info("Formatting provider unavailable, using direct passthrough")
            return FormattingResult(
                success=True,
                presentation=passthrough(facts),
                formatted_by="passthrough",
            )

        try:
            provider = self.gateway.resolve(self.formatting_provider)
            raw = self.gateway.call(ProviderCallSpec(
                user_prompt=build_formatting_prompt(facts),
                system_prompt=FORMATTING_SYSTEM_PROMPT,
                provider_id=provider.name,
                temperature=FORMATTING_TEMPERATURE,
                max_response_tokens=FORMATTING_MAX_TOKENS,
            ))
            presentation = FormattedPresentation.from_dict(parse_json_response(raw))
        except LLMError as exc:
            logger.warning("Formatting failed, using passthrough: %s", exc)
            return FormattingResult(
                success=False,
                presentation=passthrough(facts),
                formatted_by="fallback",
                error=str(exc),
            )

        validation = validate_no_hallucination(facts, presentation)
        if not validation.is_valid:
            logger.warning("Potential hallucination detected: %s", validation.issues)

        return FormattingResult(
            success=True,
            presentation=presentation,
            formatted_by=provider.name,
            validation=validation,
        )

    def summarize(self, document: TenderDocument) -> TenderSummary:
        """Run both stages. Never raises ``LLMError``."""
        try:
            facts = self.extract_facts(document)
        except LLMError as exc:
            logger.warning("Stage 1 failed for tender %s, using fallback: %s", document.tender_id, exc)
            return fallback_summary(document)

        result = self.format_facts(facts)
        if not result.success:
            logger.warning("Stage 2 failed, summary uses fallback formatting")

        p = result.presentation
        bullet_points = {
            "criticalRequirements": p.critical_requirements or _clean(facts.critical_requirements),
            "eligibilityCriteria": p.eligibility_criteria or _clean(facts.eligibility_criteria),
            "technicalSpecifications": (
                p.technical_specifications or _clean(facts.technical_specifications)
            ),
            "financialTerms": _financial_terms(p.financial_details, facts.financial_terms),
            "complianceRequirements": _clean(facts.compliance_requirements),
            "deadlinesAndTimelines": p.deadlines_timeline or _clean(facts.deadlines_and_timelines),
            "documentsRequired": _clean(facts.documents_required),
            "riskFactors": [str(r) for r in p.risk_factors] or _clean(facts.risk_factors),
        }

        return TenderSummary(
            tender_id=document.tender_id,
            mode="ai",
            executive_summary=p.executive_summary or facts.executive_summary or "",
            bullet_points=bullet_points,
            opportunity_score=p.opportunity_score,
            opportunity_assessment=p.opportunity_assessment or facts.opportunity_assessment or "",
            action_items=p.recommended_actions or _clean(facts.action_items),
            formatted_by=result.formatted_by,
            validation_passed=result.validation_passed,
            hallucination_issues=list(result.validation.issues) if result.validation else [],
        )


# ---------------------------------------------------------------------------
# Document-only summary
# ---------------------------------------------------------------------------


def _sections_mentioning(document: TenderDocument, keywords: tuple[str, ...]) -> list[str]:
    results = []
    for section in document.sections:
        content = section.content.lower()
        for keyword in keywords:
            if keyword in content:
                results.append(f"{section.title}: Contains {keyword} requirements")
                break
    return results[:_FALLBACK_KEYWORD_LIMIT]


def _fallback_actions(document: TenderDocument) -> list[str]:
    actions = [
        "Review all mandatory sections thoroughly",
        "Prepare required documents and certifications",
        "Calculate EMD and financial requirements",
    ]
    mandatory = sum(1 for s in document.sections if s.is_mandatory)
    if mandatory:
        actions.append(f"Complete responses for {mandatory} mandatory sections")
    actions.append("Review compliance requirements and penalty clauses")
    actions.append("Verify eligibility criteria before starting proposal")
    return actions


def fallback_summary(document: TenderDocument) -> TenderSummary:
    """Summarize a tender from its own structure, with no model call."""
    sections = document.sections
    mandatory = sum(1 for s in sections if s.is_mandatory)
    executive_summary = (
        f'This tender titled "{document.title}" contains {len(sections)} sections '
        f"({mandatory} mandatory). "
        "Bidders should carefully review all sections and prepare their proposal accordingly."
    )

    bullet_points = {
        "criticalRequirements": [
            "Review all mandatory sections",
            "Meet eligibility criteria",
            "Submit before deadline",
        ],
        **{
            key: _sections_mentioning(document, keywords)
            for key, keywords in _FALLBACK_KEYWORDS.items()
        },
        "deadlinesAndTimelines": [],
        "documentsRequired": [],
        "riskFactors": [
            "Review penalty clauses carefully",
            "Ensure all mandatory documents are ready",
        ],
    }

    logger.info("Built fallback summary for tender %s (%d sections)", document.tender_id, len(sections))

    return TenderSummary(
        tender_id=document.tender_id,
        mode="fallback",
        executive_summary=executive_summary,
        bullet_points=bullet_points,
        opportunity_score=DEFAULT_OPPORTUNITY_SCORE,
        opportunity_assessment=DEFAULT_ASSESSMENT,
        action_items=_fallback_actions(document),
    )
