"""Hybrid retrieval: session scope + global reference scope.

Session scope is the one tender under analysis; global scope is every
published tender except that one. Both are capped per analysis category,
trimmed to a combined absolute cap, compressed against a share of the
model's context budget, and rendered as labelled context blocks.
"""

from __future__ import annotations

import logging
import math

from tender_rag.compression.compressor import compress_to_fit, format_context
from tender_rag.embeddings.base import EmbeddingProvider
from tender_rag.retrieval.schemas import (
    AnalysisType,
    RetrievalConfig,
    RetrievalResult,
    RetrievalStats,
)
from tender_rag.tokens.counter import TokenCounter
from tender_rag.vectorstore.base import VectorStore
from tender_rag.vectorstore.schemas import MetadataFilter, SearchResult

logger = logging.getLogger(__name__)

SESSION_LABEL = "SESSION"
GLOBAL_LABEL = "REFERENCE"


def trim_to_cap(
    session: list[SearchResult],
    global_: list[SearchResult],
    cap: int,
) -> tuple[list[SearchResult], list[SearchResult]]:
    """Drop the least relevant chunks until ``len(session) + len(global_) <= cap``.

    Global chunks go first; session chunks are only trimmed once global is
    empty. Both lists are ordered nearest first, so trimming is from the end.
    """
    excess = len(session) + len(global_) - cap
    if excess <= 0:
        return session, global_

    if len(global_) >= excess:
        return session, global_[: len(global_) - excess]

    remaining = excess - len(global_)
    return session[: max(0, len(session) - remaining)], []


class RetrievalOrchestrator:
    """Embed a query, search both scopes, and build a budgeted context block."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        token_counter: TokenCounter | None = None,
        config: RetrievalConfig | None = None,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.token_counter = token_counter or TokenCounter()
        self.config = config or RetrievalConfig()

    def retrieve(
        self,
        query: str,
        session_id: str | None = None,
        analysis_type: str = AnalysisType.GENERAL,
        model: str | None = None,
    ) -> RetrievalResult:
        """Run one hybrid retrieval.

        Args:
            query: Free-text query; must not be blank.
            session_id: Tender under analysis. Without it only global scope runs.
            analysis_type: Category that selects the chunk limits.
            model: Model whose context budget bounds the compressed context.

        Raises:
            ValueError: If ``query`` is empty.
        """
        if not query or not query.strip():
            raise ValueError("Query is required for retrieval")

        cfg = self.config
        logger.info("Retrieving %s context (session=%s)", analysis_type, session_id)

        query_embedding = self.embedding_provider.embed_query(query)

        session_results: list[SearchResult] = []
        if session_id:
            session_results = self.vector_store.search(
                query_embedding,
                top_k=cfg.session_limit(analysis_type),
                metadata_filter=MetadataFilter(source_id=session_id),
            )

        global_results = self.vector_store.search(
            query_embedding,
            top_k=cfg.global_limit(analysis_type),
            metadata_filter=MetadataFilter(published_only=True, exclude_source_id=session_id),
        )

        total = len(session_results) + len(global_results)
        if total > cfg.absolute_max:
            logger.warning("Retrieved %d chunks, trimming to %d", total, cfg.absolute_max)
            session_results, global_results = trim_to_cap(
                session_results, global_results, cfg.absolute_max
            )

        context_budget = self.token_counter.get_budget(model).context
        compressed_session = compress_to_fit(
            [r.text for r in session_results],
            math.floor(context_budget * cfg.session_share),
        )
        compressed_global = compress_to_fit(
            [r.text for r in global_results],
            math.floor(context_budget * cfg.global_share),
        )

        session_context = format_context(compressed_session, SESSION_LABEL)
        global_context = format_context(compressed_global, GLOBAL_LABEL)
        context = "\n\n".join(block for block in (session_context, global_context) if block)

        stats = RetrievalStats(
            retrieved_session=len(session_results),
            retrieved_global=len(global_results),
            compressed_session=len(compressed_session),
            compressed_global=len(compressed_global),
            estimated_tokens=self.token_counter.estimate(context),
            token_budget=context_budget,
        )
        logger.info("Retrieval stats: %s", stats.to_dict())

        return RetrievalResult(
            query=query,
            analysis_type=str(analysis_type),
            session_results=session_results,
            global_results=global_results,
            compressed_session=compressed_session,
            compressed_global=compressed_global,
            session_context=session_context,
            global_context=global_context,
            context=context,
            stats=stats,
        )
