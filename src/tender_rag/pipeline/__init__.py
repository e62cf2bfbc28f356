"""Ingestion, summary, Q&A and guidance pipelines."""

from tender_rag.pipeline.guidance import SectionAdvisor, SectionGuidance, Suggestion, fallback_guidance
from tender_rag.pipeline.hallucination import validate_no_hallucination
from tender_rag.pipeline.ingest import IngestPipeline
from tender_rag.pipeline.query import TenderQA
from tender_rag.pipeline.schemas import (
    NOT_SPECIFIED,
    Citation,
    ExtractedFactSet,
    FormattedPresentation,
    FormattingResult,
    HallucinationReport,
    IngestResult,
    TenderAnswer,
    TenderSummary,
)
from tender_rag.pipeline.two_stage import TwoStagePipeline, fallback_summary, passthrough

__all__ = [
    "NOT_SPECIFIED",
    "Citation",
    "ExtractedFactSet",
    "FormattedPresentation",
    "FormattingResult",
    "HallucinationReport",
    "IngestPipeline",
    "IngestResult",
    "SectionAdvisor",
    "SectionGuidance",
    "Suggestion",
    "TenderAnswer",
    "TenderQA",
    "TenderSummary",
    "TwoStagePipeline",
    "fallback_guidance",
    "fallback_summary",
    "passthrough",
    "validate_no_hallucination",
]
