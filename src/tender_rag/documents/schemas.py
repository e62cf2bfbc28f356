"""Data models for tender and proposal documents.

These mirror the shape handed over by the document store; persistence,
PDF extraction and authorization live outside this package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TenderSection:
    """A named sub-section of a tender document."""

    title: str
    content: str = ""
    section_id: str | None = None
    is_mandatory: bool = False


@dataclass(frozen=True)
class TenderDocument:
    """A tender with its free-text body and ordered sections."""

    tender_id: str
    title: str = ""
    description: str = ""
    sections: tuple[TenderSection, ...] = ()
    sector: str | None = None
    tender_type: str | None = None
    published: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TenderDocument:
        """Build from the YAML/JSON shape used by the CLI."""
        sections = tuple(
            TenderSection(
                title=s.get("title", ""),
                content=s.get("content") or s.get("description") or "",
                section_id=s.get("section_id") or s.get("id"),
                is_mandatory=bool(s.get("is_mandatory", False)),
            )
            for s in data.get("sections", []) or []
        )
        return cls(
            tender_id=str(data["tender_id"]),
            title=data.get("title", ""),
            description=data.get("description", ""),
            sections=sections,
            sector=data.get("sector"),
            tender_type=data.get("tender_type"),
            published=str(data.get("status", "")).upper() == "PUBLISHED"
            or bool(data.get("published", False)),
        )


@dataclass(frozen=True)
class ProposalSection:
    """One section of a bidder's proposal."""

    title: str
    content: str = ""
    word_count: int | None = None

    @property
    def words(self) -> int:
        if self.word_count is not None:
            return self.word_count
        return len(self.content.split())


@dataclass
class ProposalSubmission:
    """A bidder's proposal, as submitted for evaluation."""

    proposal_id: str
    sections: list[ProposalSection] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProposalSubmission:
        return cls(
            proposal_id=str(data.get("proposal_id", "proposal")),
            sections=[
                ProposalSection(
                    title=s.get("title", ""),
                    content=s.get("content", ""),
                    word_count=s.get("word_count"),
                )
                for s in data.get("sections", []) or []
            ],
        )
