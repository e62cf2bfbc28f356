"""Canned retrieval queries per analysis category."""

from __future__ import annotations

from tender_rag.retrieval.schemas import AnalysisType

SNIPPET_CHARS = 200
DEFAULT_QUERY = "tender requirements"

SECTION_QUERIES: dict[str, str] = {
    AnalysisType.ELIGIBILITY: (
        "eligibility criteria requirements qualifications certifications experience financial capacity"
    ),
    AnalysisType.TECHNICAL: (
        "technical specifications standards quality requirements materials resources"
    ),
    AnalysisType.FINANCIAL: (
        "financial terms EMD payment conditions pricing penalties liquidated damages"
    ),
    AnalysisType.RISK: (
        "penalties risk factors liquidated damages termination force majeure dispute resolution"
    ),
    AnalysisType.EVALUATION: (
        "evaluation criteria scoring methodology selection process weightage"
    ),
}


def build_section_query(analysis_type: str, content: str = "") -> str:
    """Category query, followed by the first 200 characters of ``content``."""
    query = SECTION_QUERIES.get(str(analysis_type), DEFAULT_QUERY)
    snippet = (content or "")[:SNIPPET_CHARS].strip()
    return f"{query} {snippet}" if snippet else query
