"""CLI entry point: Typer app for tender-rag commands.

Usage:
    tender-rag ingest tender.yaml
    tender-rag ask T-2024-001 "What is the EMD amount?"
    tender-rag summarize tender.yaml
    tender-rag evaluate proposal.yaml --tender-id T-2024-001
    tender-rag guide technical draft.txt
    tender-rag status
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="tender-rag",
    help="Tender RAG: ingest, ask, summarize, evaluate.",
    no_args_is_help=True,
)

console = Console()

_TENDER_PATH = typer.Argument(..., help="Path to a tender YAML/JSON file")
_PROPOSAL_PATH = typer.Argument(..., help="Path to a proposal YAML/JSON file")
_SECTION_TYPE = typer.Argument(help="Section category, e.g. technical")
_DRAFT_PATH = typer.Argument(help="Path to the draft section text")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if not isinstance(data, dict):
        raise typer.BadParameter(f"{path} does not contain a mapping")
    return data


def _retriever(settings):
    from tender_rag.embeddings.factory import build_embedding_provider
    from tender_rag.retrieval.orchestrator import RetrievalOrchestrator
    from tender_rag.retrieval.schemas import RetrievalConfig
    from tender_rag.tokens.counter import TokenCounter
    from tender_rag.vectorstore.factory import build_vector_store

    return RetrievalOrchestrator(
        embedding_provider=build_embedding_provider(settings),
        vector_store=build_vector_store(settings),
        token_counter=TokenCounter(
            settings.tokens.model_limits, settings.tokens.fallback_max_tokens
        ),
        config=RetrievalConfig.from_settings(settings.retrieval),
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def ingest(
    path: Annotated[Path, _TENDER_PATH],
    sentence_mode: bool = typer.Option(
        False, "--sentence-mode", help="Chunk on sentence boundaries",
    ),
) -> None:
    """Ingest a tender into the vector store, replacing its previous chunks."""
    from tender_rag.config import load_settings
    from tender_rag.documents.schemas import TenderDocument
    from tender_rag.embeddings.factory import build_embedding_provider
    from tender_rag.pipeline.ingest import IngestPipeline
    from tender_rag.vectorstore.factory import build_vector_store

    settings = load_settings()
    document = TenderDocument.from_dict(_read_yaml(path))
    store = build_vector_store(settings)

    pipeline = IngestPipeline(
        embedding_provider=build_embedding_provider(settings),
        vector_store=store,
        chunk_size=settings.chunking.chunk_size,
        overlap=settings.chunking.overlap,
        sentence_mode=sentence_mode or settings.chunking.sentence_mode,
        min_chunk_size=settings.chunking.min_chunk_size,
    )
    result = pipeline.ingest_tender(document)
    if settings.vectorstore.backend == "faiss":
        store.save(settings.vectorstore.path)

    console.print(f"\n[bold green]Ingested:[/] {document.tender_id}")
    console.print(f"  Chunks: {result.chunks_created}")
    console.print(f"  Embedded: {result.chunks_embedded}")
    console.print(f"  Stored: {result.chunks_stored}")
    console.print(f"  Replaced: {result.chunks_deleted}")

    for w in result.warnings:
        console.print(f"  [yellow]Warning:[/] {w}")


@app.command()
def ask(
    tender_id: str = typer.Argument(..., help="Tender to ask about"),
    question: str = typer.Argument(..., help="Question to ask"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model id"),
) -> None:
    """Ask a question about an ingested tender."""
    from tender_rag.config import load_settings
    from tender_rag.llm.factory import build_gateway
    from tender_rag.pipeline.citations import format_citations
    from tender_rag.pipeline.query import TenderQA

    settings = load_settings()
    qa = TenderQA(_retriever(settings), build_gateway(settings), model=model)
    answer = qa.ask(tender_id, question)

    console.print(f"\n[bold]Q:[/] {answer.question}")
    console.print(f"\n[bold green]A:[/] {answer.answer}")

    if answer.citations:
        console.print(format_citations(answer.citations))

    retrieved = answer.retrieval_stats.get("compressed", {}).get("total", 0)
    console.print(f"\n[dim]Mode: {answer.mode} | Context chunks: {retrieved}[/]")


@app.command()
def summarize(
    path: Annotated[Path, _TENDER_PATH],
) -> None:
    """Summarize a tender with the two-stage extraction/formatting pipeline."""
    from tender_rag.config import load_settings
    from tender_rag.documents.schemas import TenderDocument
    from tender_rag.llm.factory import build_gateway
    from tender_rag.pipeline.two_stage import TwoStagePipeline

    settings = load_settings()
    document = TenderDocument.from_dict(_read_yaml(path))
    pipeline = TwoStagePipeline(
        build_gateway(settings),
        extraction_provider=settings.llm.extraction_provider,
        formatting_provider=settings.llm.formatting_provider,
    )
    summary = pipeline.summarize(document)

    console.print(f"\n[bold green]{document.title or document.tender_id}[/] [dim]({summary.mode})[/]\n")
    console.print(summary.executive_summary)

    for heading, items in summary.bullet_points.items():
        if not items:
            continue
        console.print(f"\n[bold cyan]{heading}[/]")
        for item in items:
            console.print(f"  • {item}")

    if summary.action_items:
        console.print("\n[bold cyan]actionItems[/]")
        for i, item in enumerate(summary.action_items, 1):
            console.print(f"  {i}. {item}")

    console.print(f"\n[bold]Opportunity score:[/] {summary.opportunity_score}")
    for issue in summary.hallucination_issues:
        console.print(f"[yellow]Check:[/] {issue}")


@app.command()
def evaluate(
    path: Annotated[Path, _PROPOSAL_PATH],
    tender_id: str | None = typer.Option(
        None, "--tender-id", "-t", help="Tender the proposal responds to",
    ),
    model: str | None = typer.Option(None, "--model", "-m", help="Model id"),
) -> None:
    """Score a proposal in four steps against the tender context."""
    from tender_rag.config import load_settings
    from tender_rag.documents.schemas import ProposalSubmission
    from tender_rag.evaluation.multi_step import MultiStepEvaluator
    from tender_rag.llm.factory import build_gateway

    settings = load_settings()
    proposal = ProposalSubmission.from_dict(_read_yaml(path))
    evaluator = MultiStepEvaluator(
        build_gateway(settings),
        retriever=_retriever(settings),
        model=model,
        max_workers=settings.evaluation.max_workers,
    )
    result = evaluator.evaluate(proposal, tender_id=tender_id)

    table = Table(title=f"Evaluation: {proposal.proposal_id}")
    table.add_column("Dimension", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Feedback")
    for name, entry in result.scores.items():
        table.add_row(name, str(entry.score), entry.feedback)
    console.print(table)

    console.print(f"\n[bold]Overall:[/] {result.overall_score}/100. {result.overall_assessment}")
    console.print(f"[bold]Win probability:[/] {result.win_probability}")
    for action in result.recommended_actions:
        console.print(f"  • {action}")


@app.command()
def guide(
    section_type: Annotated[str, _SECTION_TYPE],
    draft_path: Annotated[Path, _DRAFT_PATH],
    requirement: str = typer.Option("", "--requirement", "-r", help="Tender requirement text"),
    question: str = typer.Option("", "--question", "-q", help="Specific question"),
) -> None:
    """Suggest improvements to a draft proposal section."""
    from tender_rag.config import load_settings
    from tender_rag.llm.factory import build_gateway
    from tender_rag.pipeline.guidance import SectionAdvisor

    draft = draft_path.read_text(encoding="utf-8")
    advisor = SectionAdvisor(build_gateway(load_settings()))
    guidance = advisor.analyze(section_type, draft, requirement, question)

    console.print(f"\n[bold green]Guidance[/] [dim]({guidance.mode})[/]")
    for i, s in enumerate(guidance.suggestions, 1):
        console.print(f"\n[bold]{i}. {s.observation}[/]")
        if s.suggested_improvement:
            console.print(f"   {s.suggested_improvement}")
        console.print(f"   [dim]{s.reason}[/]")


@app.command()
def status() -> None:
    """Show available components, configured providers and index size."""
    from tender_rag.chunking.factory import available_chunkers
    from tender_rag.config import ProviderCredentials, load_settings
    from tender_rag.embeddings.factory import available_providers as emb_providers
    from tender_rag.llm.factory import available_providers as llm_providers
    from tender_rag.llm.factory import build_gateway
    from tender_rag.vectorstore.factory import available_stores, build_vector_store

    settings = load_settings()
    gateway = build_gateway(settings, ProviderCredentials.from_env())

    console.print("\n[bold green]tender-rag[/] v0.1.0\n")

    table = Table(title="Available Components")
    table.add_column("Layer", style="cyan")
    table.add_column("Available")

    table.add_row("Chunkers", ", ".join(available_chunkers()))
    table.add_row("Embedding Providers", ", ".join(emb_providers()))
    table.add_row("Vector Stores", ", ".join(available_stores()))
    table.add_row("LLM Providers", ", ".join(llm_providers()))
    table.add_row("Configured LLMs", ", ".join(gateway.configured_providers()) or "none")
    table.add_row(
        f"Indexed chunks ({settings.vectorstore.backend})",
        str(build_vector_store(settings).count()),
    )

    console.print(table)


if __name__ == "__main__":
    app()
