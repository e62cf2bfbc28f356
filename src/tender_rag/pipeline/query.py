"""Tender Q&A: question -> hybrid retrieval -> LLM -> cited answer."""

from __future__ import annotations

import logging

from tender_rag.llm.base import ProviderCallSpec
from tender_rag.llm.errors import LLMError
from tender_rag.llm.gateway import ProviderGateway
from tender_rag.pipeline.citations import extract_citations
from tender_rag.pipeline.prompts import QA_SYSTEM_PROMPT, build_qa_prompt
from tender_rag.pipeline.schemas import TenderAnswer
from tender_rag.retrieval.orchestrator import RetrievalOrchestrator
from tender_rag.retrieval.schemas import AnalysisType

logger = logging.getLogger(__name__)

NO_INFORMATION_ANSWER = (
    "I don't have enough information from the tender content to answer that question."
)
QA_MAX_TOKENS = 1000


class TenderQA:
    """Answer questions about one tender from its indexed chunks.

    Args:
        retriever: Hybrid retrieval over the tender and published references.
        gateway: Provider gateway for the answer.
        model: Model id; also bounds the retrieved context budget.
    """

    def __init__(
        self,
        retriever: RetrievalOrchestrator,
        gateway: ProviderGateway,
        model: str | None = None,
    ):
        self.retriever = retriever
        self.gateway = gateway
        self.model = model

    def ask(self, tender_id: str, question: str) -> TenderAnswer:
        """Answer ``question`` about ``tender_id``.

        Raises:
            ValueError: If ``question`` is blank.
        """
        if not question or not question.strip():
            raise ValueError("Question is required")

        logger.info("Question on tender %s: %s", tender_id, question[:100])
        retrieval = self.retriever.retrieve(
            question,
            session_id=tender_id,
            analysis_type=AnalysisType.GENERAL,
            model=self.model,
        )
        stats = retrieval.stats.to_dict()

        if not retrieval.context or stats["compressed"]["total"] == 0:
            return TenderAnswer(question, NO_INFORMATION_ANSWER, retrieval_stats=stats)

        try:
            answer = self.gateway.call(ProviderCallSpec(
                user_prompt=build_qa_prompt(question, retrieval.context),
                system_prompt=QA_SYSTEM_PROMPT,
                model_id=self.model,
                temperature=0.0,
                max_response_tokens=QA_MAX_TOKENS,
            ))
        except LLMError as exc:
            logger.warning("Q&A call failed, returning fallback answer: %s", exc)
            return TenderAnswer(
                question, NO_INFORMATION_ANSWER, mode="fallback", retrieval_stats=stats
            )

        answer = answer.strip() or NO_INFORMATION_ANSWER
        return TenderAnswer(
            question=question,
            answer=answer,
            citations=extract_citations(answer, retrieval),
            retrieval_stats=stats,
        )
