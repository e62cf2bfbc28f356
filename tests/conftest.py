"""Shared fixtures for tests: synthetic tenders, scripted providers, no network calls."""

from __future__ import annotations

import textwrap
from collections.abc import Callable

import pytest
from fakes import ScriptedProvider

from tender_rag.documents.schemas import (
    ProposalSection,
    ProposalSubmission,
    TenderDocument,
    TenderSection,
)
from tender_rag.embeddings.hash_provider import HashEmbeddingProvider
from tender_rag.llm.base import LLMProvider
from tender_rag.llm.gateway import ProviderGateway
from tender_rag.retrieval.orchestrator import RetrievalOrchestrator
from tender_rag.vectorstore.faiss_store import FAISSStore

DIM = 64  # Small dimension for fast tests

# ---------------------------------------------------------------------------
# Gateways over scripted providers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_gateway() -> Callable[..., ProviderGateway]:
    """Build a gateway over scripted providers, in priority order."""

    def _make(*providers: LLMProvider) -> ProviderGateway:
        return ProviderGateway(list(providers))

    return _make


@pytest.fixture
def offline_gateway() -> ProviderGateway:
    """A gateway where no provider has a credential."""
    return ProviderGateway([
        ScriptedProvider("groq", api_key=None),
        ScriptedProvider("gemini", api_key=None),
    ])


# ---------------------------------------------------------------------------
# Synthetic tenders and proposals
# ---------------------------------------------------------------------------


@pytest.fixture
def eligibility_text() -> str:
    return textwrap.dedent("""\
        The bidder must have a minimum of 5 years of experience in road construction.
        Average annual turnover shall not be less than ₹10 crore over the last three
        financial years. ISO 9001 certification is mandatory. Bidders must submit
        completion certificates for at least two similar projects.
    """)


@pytest.fixture
def financial_text() -> str:
    return textwrap.dedent("""\
        EMD of ₹5,00,000 must be submitted along with the bid. Payment will be made
        in three milestones: 30% on mobilisation, 50% on completion of works and 20%
        after the defect liability period. A penalty of 0.5% per week applies for
        delay, subject to a maximum of 10% of the contract value.
    """)


@pytest.fixture
def tender(eligibility_text: str, financial_text: str) -> TenderDocument:
    return TenderDocument(
        tender_id="T-2024-001",
        title="Construction of District Road Network Phase II",
        description=(
            "The Public Works Department invites bids for the construction and "
            "maintenance of 42 km of district roads, including drainage and signage."
        ),
        sections=(
            TenderSection(
                title="Eligibility Criteria",
                content=eligibility_text,
                section_id="sec-elig",
                is_mandatory=True,
            ),
            TenderSection(
                title="Technical Specifications",
                content=(
                    "All works shall conform to IRC standards. The contractor must deploy "
                    "a hot mix plant of at least 60 TPH capacity within 30 days of award."
                ),
                section_id="sec-tech",
            ),
            TenderSection(
                title="Financial Terms",
                content=financial_text,
                section_id="sec-fin",
                is_mandatory=True,
            ),
            TenderSection(title="Annexure", content="See attached.", section_id="sec-annex"),
        ),
        sector="Infrastructure",
        tender_type="Open",
    )


@pytest.fixture
def reference_tender() -> TenderDocument:
    return TenderDocument(
        tender_id="T-2023-050",
        title="Resurfacing of State Highway 12",
        description=(
            "Completed tender for resurfacing 18 km of state highway, published "
            "for reference by bidders and evaluators."
        ),
        sections=(
            TenderSection(
                title="Eligibility Requirements",
                content=(
                    "Bidders must have completed two similar highway projects in the last "
                    "seven years and hold a valid class-A contractor registration."
                ),
            ),
        ),
        published=True,
    )


@pytest.fixture
def proposal() -> ProposalSubmission:
    return ProposalSubmission(
        proposal_id="P-001",
        sections=[
            ProposalSection(
                title="Company Profile",
                content="We are a class-A contractor with 12 years of experience in road works.",
            ),
            ProposalSection(
                title="Eligibility and Qualifications",
                content=(
                    "ISO 9001:2015 certified. Average turnover of ₹14 crore over three years. "
                    "Completed four similar district road projects."
                ),
            ),
            ProposalSection(
                title="Technical Approach",
                content="Phase 1 survey, Phase 2 earthwork, Phase 3 bituminous surfacing.",
            ),
            ProposalSection(
                title="Financial Proposal",
                content="Quoted price ₹38.5 crore. We accept the milestone payment schedule.",
            ),
        ],
    )


# ---------------------------------------------------------------------------
# Retrieval stack
# ---------------------------------------------------------------------------


@pytest.fixture
def embedder() -> HashEmbeddingProvider:
    return HashEmbeddingProvider(dimension=DIM)


@pytest.fixture
def store() -> FAISSStore:
    return FAISSStore(dimension=DIM)


@pytest.fixture
def retriever(embedder: HashEmbeddingProvider, store: FAISSStore) -> RetrievalOrchestrator:
    return RetrievalOrchestrator(embedder, store)
