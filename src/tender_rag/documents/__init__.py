"""Tender and proposal document models."""

from tender_rag.documents.schemas import (
    ProposalSection,
    ProposalSubmission,
    TenderDocument,
    TenderSection,
)

__all__ = [
    "ProposalSection",
    "ProposalSubmission",
    "TenderDocument",
    "TenderSection",
]
