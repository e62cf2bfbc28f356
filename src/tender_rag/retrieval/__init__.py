"""Hybrid session/global retrieval with budgeted context."""

from tender_rag.retrieval.orchestrator import RetrievalOrchestrator, trim_to_cap
from tender_rag.retrieval.queries import build_section_query
from tender_rag.retrieval.schemas import (
    AnalysisType,
    RetrievalConfig,
    RetrievalResult,
    RetrievalStats,
)

__all__ = [
    "AnalysisType",
    "RetrievalConfig",
    "RetrievalOrchestrator",
    "RetrievalResult",
    "RetrievalStats",
    "build_section_query",
    "trim_to_cap",
]
