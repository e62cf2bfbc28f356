"""Tests for tender ingestion, Q&A and citation mapping."""

from __future__ import annotations

import threading

import pytest
from fakes import ScriptedProvider

from tender_rag.chunking.schemas import ChunkMetadata
from tender_rag.documents.schemas import TenderDocument, TenderSection
from tender_rag.embeddings.hash_provider import HashEmbeddingProvider
from tender_rag.llm.errors import ProviderError
from tender_rag.pipeline.citations import extract_citations, format_citations
from tender_rag.pipeline.ingest import IngestPipeline
from tender_rag.pipeline.query import NO_INFORMATION_ANSWER, TenderQA
from tender_rag.pipeline.schemas import Citation
from tender_rag.retrieval.orchestrator import RetrievalOrchestrator
from tender_rag.retrieval.schemas import RetrievalResult
from tender_rag.vectorstore.faiss_store import FAISSStore
from tender_rag.vectorstore.schemas import MetadataFilter, SearchResult

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def pipeline(embedder: HashEmbeddingProvider, store: FAISSStore) -> IngestPipeline:
    return IngestPipeline(embedding_provider=embedder, vector_store=store)


@pytest.fixture
def indexed(pipeline: IngestPipeline, tender: TenderDocument, reference_tender: TenderDocument):
    pipeline.ingest_tender(tender)
    pipeline.ingest_tender(reference_tender)
    return pipeline


def _source_count(store: FAISSStore, embedder: HashEmbeddingProvider, source_id: str) -> int:
    return len(store.search(
        embedder.embed_query("anything"),
        top_k=1000,
        metadata_filter=MetadataFilter(source_id=source_id),
    ))


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class TestIngestPipeline:
    def test_ingest(self, pipeline: IngestPipeline, store: FAISSStore, tender: TenderDocument):
        result = pipeline.ingest_tender(tender)
        assert result.tender_id == "T-2024-001"
        assert result.chunks_created == 4
        assert result.chunks_embedded == 4
        assert result.chunks_stored == 4
        assert result.chunks_deleted == 0
        assert result.warnings == []
        assert store.count() == 4

    def test_reingest_replaces_chunks(self, pipeline: IngestPipeline, store: FAISSStore, tender: TenderDocument):
        pipeline.ingest_tender(tender)
        result = pipeline.ingest_tender(tender)
        assert result.chunks_deleted == 4
        assert store.count() == 4

    def test_reingest_drops_stale_sections(
        self, pipeline: IngestPipeline, store: FAISSStore, embedder, tender: TenderDocument
    ):
        pipeline.ingest_tender(tender)
        revised = TenderDocument(
            tender_id=tender.tender_id,
            title=tender.title,
            description=tender.description,
            sections=tender.sections[:1],
        )
        result = pipeline.ingest_tender(revised)
        assert result.chunks_stored == 2
        assert _source_count(store, embedder, tender.tender_id) == 2
        titles = {r.metadata.section_title for r in store.search(embedder.embed_query("x"), top_k=10)}
        assert "Financial Terms" not in titles

    def test_other_tenders_untouched(
        self, pipeline: IngestPipeline, store: FAISSStore, embedder, tender, reference_tender
    ):
        pipeline.ingest_tender(reference_tender)
        pipeline.ingest_tender(tender)
        pipeline.ingest_tender(tender)
        assert _source_count(store, embedder, reference_tender.tender_id) == 2

    def test_empty_tender_warns_and_clears(self, pipeline: IngestPipeline, store: FAISSStore, tender):
        pipeline.ingest_tender(tender)
        result = pipeline.ingest_tender(TenderDocument(tender_id=tender.tender_id))
        assert result.chunks_created == 0
        assert result.chunks_stored == 0
        assert result.chunks_deleted == 4
        assert result.warnings == ["Chunker produced zero chunks"]
        assert store.count() == 0

    def test_metadata_carried_into_store(self, pipeline, store: FAISSStore, embedder, tender):
        pipeline.ingest_tender(tender)
        results = store.search(embedder.embed_query("q"), top_k=10)
        meta: ChunkMetadata = next(
            r.metadata for r in results if r.metadata.section_title == "Eligibility Criteria"
        )
        assert meta.source_id == "T-2024-001"
        assert meta.is_mandatory is True
        assert meta.importance > 5

    def test_small_batches(self, embedder, store: FAISSStore, tender):
        result = IngestPipeline(embedder, store, batch_size=1).ingest_tender(tender)
        assert result.chunks_embedded == 4

    def test_sentence_mode(self, embedder, store: FAISSStore, tender):
        result = IngestPipeline(embedder, store, sentence_mode=True).ingest_tender(tender)
        assert result.chunks_stored == 4

    def test_dimension_mismatch_keeps_previous_chunks(
        self, pipeline: IngestPipeline, store: FAISSStore, tender: TenderDocument
    ):
        pipeline.ingest_tender(tender)
        wrong = IngestPipeline(HashEmbeddingProvider(dimension=16), store)
        with pytest.raises(ValueError, match="store dimension 64"):
            wrong.ingest_tender(tender)
        assert store.count() == 4

    def test_remove_tender(self, pipeline: IngestPipeline, store: FAISSStore, tender):
        pipeline.ingest_tender(tender)
        assert pipeline.remove_tender(tender.tender_id) == 4
        assert store.count() == 0
        assert pipeline.remove_tender(tender.tender_id) == 0

    def test_concurrent_ingest_same_tender(self, pipeline: IngestPipeline, store: FAISSStore, tender):
        threads = [threading.Thread(target=pipeline.ingest_tender, args=(tender,)) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.count() == 4


# ---------------------------------------------------------------------------
# Citations
# ---------------------------------------------------------------------------


def _retrieval(n_session: int, n_global: int) -> RetrievalResult:
    session = [
        SearchResult(
            id=f"s{i}",
            text=f"session chunk {i} " + "x" * 250,
            score=0.9 - i / 10,
            metadata=ChunkMetadata(source_id="T-1", section_title="Eligibility"),
        )
        for i in range(n_session)
    ]
    global_ = [
        SearchResult(
            id=f"g{i}",
            text=f"reference chunk {i}",
            score=0.5,
            metadata=ChunkMetadata(source_id="T-9"),
        )
        for i in range(n_global)
    ]
    return RetrievalResult(
        query="q",
        session_results=session,
        global_results=global_,
        compressed_session=[r.text for r in session],
        compressed_global=[r.text for r in global_],
    )


class TestCitations:
    def test_single_labels(self):
        citations = extract_citations("EMD is due [SESSION-2]; see [REFERENCE-1].", _retrieval(3, 2))
        assert [c.label for c in citations] == ["SESSION-2", "REFERENCE-1"]
        assert citations[0].source_id == "T-1"
        assert citations[0].section_title == "Eligibility"
        assert citations[1].source_id == "T-9"

    def test_grouped_labels_and_dedup(self):
        citations = extract_citations(
            "Both apply [SESSION-1, SESSION-3] and again [SESSION-1].", _retrieval(3, 0)
        )
        assert [c.label for c in citations] == ["SESSION-1", "SESSION-3"]

    def test_case_insensitive(self):
        assert [c.label for c in extract_citations("[session-1]", _retrieval(1, 0))] == ["SESSION-1"]

    def test_unknown_labels_ignored(self):
        answer = "[SESSION-5] [REFERENCE-1] [SESSION-0] [Note 1]"
        assert extract_citations(answer, _retrieval(2, 0)) == []

    def test_only_compressed_chunks_citable(self):
        retrieval = _retrieval(3, 0)
        retrieval.compressed_session = retrieval.compressed_session[:1]
        assert [c.label for c in extract_citations("[SESSION-1][SESSION-2]", retrieval)] == ["SESSION-1"]

    def test_snippet_truncated(self):
        citation = extract_citations("[SESSION-1]", _retrieval(1, 0))[0]
        assert len(citation.text) == 203
        assert citation.text.endswith("...")

    def test_format_citations(self):
        text = format_citations([
            Citation(label="SESSION-1", index=1, text="t", source_id="T-1", section_title="Eligibility"),
            Citation(label="REFERENCE-1", index=1, text="t", source_id="T-9"),
        ])
        assert "**Sources:**" in text
        assert "- [SESSION-1] | T-1 | (Eligibility)" in text
        assert "- [REFERENCE-1] | T-9" in text

    def test_format_empty(self):
        assert format_citations([]) == ""


# ---------------------------------------------------------------------------
# Q&A
# ---------------------------------------------------------------------------


class TestTenderQA:
    def test_answer_with_citations(self, indexed, retriever: RetrievalOrchestrator, make_gateway):
        provider = ScriptedProvider("groq", [
            "The EMD is ₹5,00,000 [SESSION-1]. Similar rules applied before [REFERENCE-1, SESSION-2]."
        ])
        qa = TenderQA(retriever, make_gateway(provider))
        answer = qa.ask("T-2024-001", "What is the EMD amount?")

        assert answer.mode == "ai"
        assert [c.label for c in answer.citations] == ["SESSION-1", "REFERENCE-1", "SESSION-2"]
        assert answer.citations[0].source_id == "T-2024-001"
        assert answer.citations[1].source_id == "T-2023-050"
        assert answer.retrieval_stats["retrieved"] == {"session": 4, "global": 2, "total": 6}

        call = provider.calls[0]
        assert "[SESSION-1]" in call["prompt"]
        assert "[REFERENCE-1]" in call["prompt"]
        assert "What is the EMD amount?" in call["prompt"]
        assert call["temperature"] == 0.0
        assert call["max_tokens"] == 1000

    def test_blank_question(self, retriever, make_gateway):
        qa = TenderQA(retriever, make_gateway(ScriptedProvider("groq", ["x"])))
        with pytest.raises(ValueError, match="Question is required"):
            qa.ask("T-1", "  ")

    def test_no_context_skips_provider(self, retriever, make_gateway):
        provider = ScriptedProvider("groq", ["should not be used"])
        answer = TenderQA(retriever, make_gateway(provider)).ask("T-missing", "What is the EMD?")
        assert answer.answer == NO_INFORMATION_ANSWER
        assert answer.citations == []
        assert provider.calls == []

    def test_provider_failure_falls_back(self, indexed, retriever, make_gateway):
        provider = ScriptedProvider("groq", [ProviderError("groq", 503, "unavailable")])
        answer = TenderQA(retriever, make_gateway(provider)).ask("T-2024-001", "What is the EMD?")
        assert answer.mode == "fallback"
        assert answer.answer == NO_INFORMATION_ANSWER

    def test_no_provider_configured(self, indexed, retriever, offline_gateway):
        answer = TenderQA(retriever, offline_gateway).ask("T-2024-001", "What is the EMD?")
        assert answer.mode == "fallback"

    def test_blank_answer_replaced(self, indexed, retriever, make_gateway):
        answer = TenderQA(retriever, make_gateway(ScriptedProvider("groq", ["   "]))).ask(
            "T-2024-001", "What is the EMD?"
        )
        assert answer.answer == NO_INFORMATION_ANSWER
        assert answer.mode == "ai"


class TestTenderSectionParsing:
    def test_from_dict(self):
        doc = TenderDocument.from_dict({
            "tender_id": 42,
            "title": "Bridge repair",
            "status": "published",
            "sections": [
                {"title": "Scope", "description": "Repair works", "id": "s1", "is_mandatory": True},
            ],
        })
        assert doc.tender_id == "42"
        assert doc.published is True
        assert doc.sections == (
            TenderSection(title="Scope", content="Repair works", section_id="s1", is_mandatory=True),
        )
