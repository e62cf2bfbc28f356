"""Data models for the ingestion, summary and Q&A pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

NOT_SPECIFIED = "Not specified in the analysis output"

DEFAULT_OPPORTUNITY_SCORE = 60


@dataclass
class IngestResult:
    """Result of ingesting one tender."""

    tender_id: str
    chunks_created: int
    chunks_embedded: int
    chunks_stored: int
    chunks_deleted: int = 0
    warnings: list[str] = field(default_factory=list)


@dataclass
class Citation:
    """A ``[SESSION-n]`` / ``[REFERENCE-n]`` reference in a generated answer."""

    label: str
    index: int
    text: str
    source_id: str
    section_title: str = ""
    score: float = 0.0


@dataclass
class TenderAnswer:
    """Output of the tender Q&A pipeline."""

    question: str
    answer: str
    citations: list[Citation] = field(default_factory=list)
    mode: str = "ai"
    retrieval_stats: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Stage 1: extracted facts
# ---------------------------------------------------------------------------

# Attribute name -> JSON key of the extraction contract
_FACT_KEYS: dict[str, str] = {
    "executive_summary": "executiveSummary",
    "critical_requirements": "criticalRequirements",
    "eligibility_criteria": "eligibilityCriteria",
    "technical_specifications": "technicalSpecifications",
    "financial_terms": "financialTerms",
    "compliance_requirements": "complianceRequirements",
    "deadlines_and_timelines": "deadlinesAndTimelines",
    "documents_required": "documentsRequired",
    "risk_factors": "riskFactors",
    "opportunity_score": "opportunityScore",
    "opportunity_assessment": "opportunityAssessment",
    "action_items": "actionItems",
}

_SCALAR_FACTS = {"executive_summary", "opportunity_score", "opportunity_assessment"}


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


@dataclass
class ExtractedFactSet:
    """Structured facts pulled out of a tender by the extraction call.

    List items are kept as the provider returned them; cleaning happens
    when the facts are formatted.
    """

    executive_summary: str | None = None
    critical_requirements: list[Any] = field(default_factory=list)
    eligibility_criteria: list[Any] = field(default_factory=list)
    technical_specifications: list[Any] = field(default_factory=list)
    financial_terms: list[Any] = field(default_factory=list)
    compliance_requirements: list[Any] = field(default_factory=list)
    deadlines_and_timelines: list[Any] = field(default_factory=list)
    documents_required: list[Any] = field(default_factory=list)
    risk_factors: list[Any] = field(default_factory=list)
    opportunity_score: int | None = None
    opportunity_assessment: str | None = None
    action_items: list[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtractedFactSet:
        kwargs: dict[str, Any] = {}
        for attr, key in _FACT_KEYS.items():
            value = data.get(key)
            kwargs[attr] = value if attr in _SCALAR_FACTS else _as_list(value)
        score = kwargs["opportunity_score"]
        kwargs["opportunity_score"] = _coerce_score(score)
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in _FACT_KEYS.items()}


def _coerce_score(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Stage 2: formatted presentation
# ---------------------------------------------------------------------------


@dataclass
class FinancialDetails:
    emd: str = NOT_SPECIFIED
    estimated_value: str = NOT_SPECIFIED
    payment_terms: str = NOT_SPECIFIED
    other_charges: str = NOT_SPECIFIED

    @classmethod
    def from_dict(cls, data: Any) -> FinancialDetails:
        if not isinstance(data, dict):
            return cls()
        return cls(
            emd=str(data.get("emd") or NOT_SPECIFIED),
            estimated_value=str(data.get("estimatedValue") or NOT_SPECIFIED),
            payment_terms=str(data.get("paymentTerms") or NOT_SPECIFIED),
            other_charges=str(data.get("otherCharges") or NOT_SPECIFIED),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "emd": self.emd,
            "estimatedValue": self.estimated_value,
            "paymentTerms": self.payment_terms,
            "otherCharges": self.other_charges,
        }


@dataclass
class RiskItem:
    risk: str
    severity: str = "LOW"

    def to_dict(self) -> dict[str, str]:
        return {"risk": self.risk, "severity": self.severity}

    def __str__(self) -> str:
        return f"[{self.severity}] {self.risk}"


@dataclass
class FormattedPresentation:
    """UI-ready rendering of an ``ExtractedFactSet``."""

    executive_summary: str = ""
    critical_requirements: list[str] = field(default_factory=list)
    eligibility_criteria: list[str] = field(default_factory=list)
    technical_specifications: list[str] = field(default_factory=list)
    financial_details: FinancialDetails = field(default_factory=FinancialDetails)
    deadlines_timeline: list[str] = field(default_factory=list)
    risk_factors: list[RiskItem] = field(default_factory=list)
    recommended_actions: list[str] = field(default_factory=list)
    opportunity_score: int = DEFAULT_OPPORTUNITY_SCORE
    opportunity_assessment: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FormattedPresentation:
        risks = []
        for item in _as_list(data.get("riskFactors")):
            if isinstance(item, dict) and item.get("risk"):
                risks.append(RiskItem(str(item["risk"]), str(item.get("severity") or "LOW").upper()))
            elif isinstance(item, str) and item.strip():
                risks.append(RiskItem(item))
        score = _coerce_score(data.get("opportunityScore"))
        return cls(
            executive_summary=str(data.get("executiveSummary") or ""),
            critical_requirements=_strings(data.get("criticalRequirements")),
            eligibility_criteria=_strings(data.get("eligibilityCriteria")),
            technical_specifications=_strings(data.get("technicalSpecifications")),
            financial_details=FinancialDetails.from_dict(data.get("financialDetails")),
            deadlines_timeline=_strings(data.get("deadlinesTimeline")),
            risk_factors=risks,
            recommended_actions=_strings(data.get("recommendedActions")),
            opportunity_score=DEFAULT_OPPORTUNITY_SCORE if score is None else score,
            opportunity_assessment=str(data.get("opportunityAssessment") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "executiveSummary": self.executive_summary,
            "criticalRequirements": list(self.critical_requirements),
            "eligibilityCriteria": list(self.eligibility_criteria),
            "technicalSpecifications": list(self.technical_specifications),
            "financialDetails": self.financial_details.to_dict(),
            "deadlinesTimeline": list(self.deadlines_timeline),
            "riskFactors": [r.to_dict() for r in self.risk_factors],
            "recommendedActions": list(self.recommended_actions),
            "opportunityScore": self.opportunity_score,
            "opportunityAssessment": self.opportunity_assessment,
        }


def _strings(value: Any) -> list[str]:
    """Keep non-empty string items only."""
    return [item for item in _as_list(value) if isinstance(item, str) and item.strip()]


@dataclass
class HallucinationReport:
    """Advisory result of comparing formatted output against extracted facts."""

    is_valid: bool
    issues: list[str] = field(default_factory=list)
    confidence: str = "high"


@dataclass
class FormattingResult:
    """Outcome of the formatting stage.

    ``formatted_by`` is the provider name, ``"passthrough"`` when no
    formatting provider is configured, or ``"fallback"`` after a failure.
    """

    success: bool
    presentation: FormattedPresentation
    formatted_by: str
    validation: HallucinationReport | None = None
    error: str | None = None

    @property
    def validation_passed(self) -> bool:
        return self.validation is None or self.validation.is_valid


@dataclass
class TenderSummary:
    """Summary of one tender, from either the AI pipeline or the fallback."""

    tender_id: str
    mode: str
    executive_summary: str
    bullet_points: dict[str, list[str]] = field(default_factory=dict)
    opportunity_score: int = DEFAULT_OPPORTUNITY_SCORE
    opportunity_assessment: str = ""
    action_items: list[str] = field(default_factory=list)
    formatted_by: str | None = None
    validation_passed: bool = True
    hallucination_issues: list[str] = field(default_factory=list)
