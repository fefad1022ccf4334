"""
CLI Main - Typer command-line interface.
========================================

Commands:
- info: Show configuration
- health: Check the vector store and embedding provider
- init-index / delete-index / stats: Manage the question index
- search: Find similar questions
- check-duplicate: Check a question text against the index
- load: Index a question dataset file
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from mathsearch.shared.exceptions import MathSearchError
from mathsearch.shared.logging import get_logger, setup_logging_from_settings
from mathsearch.shared.schemas import SearchFilter, SearchResult
from mathsearch.shared.utils import truncate_text

logger = get_logger(__name__)

app = typer.Typer(
    name="mathsearch",
    help="""🔎 MathSearch - Semantic search for math questions

Embeds math questions, stores them in a vector index and finds similar or
duplicate questions with grade, topic and operation filters.

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

QUICK START:

  mathsearch health                          # Check OpenSearch and Ollama
  mathsearch init-index                      # Create the question index
  mathsearch load data/datasets/grade3.json  # Index a dataset
  mathsearch search "What is 5 + 3?" -g 3    # Find similar questions

Use 'mathsearch <command> --help' for detailed command options.
""",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable debug logging.",
    ),
):
    """Configure logging before any command runs."""
    setup_logging_from_settings(verbose=verbose)


def _fail(message: str, error: Exception) -> None:
    """Print an error (with its cause) and exit with status 1."""
    console.print(f"[red]{message}: {escape(str(error))}[/red]")
    if error.__cause__ is not None:
        console.print(f"[dim]Caused by: {escape(str(error.__cause__))}[/dim]")
    raise typer.Exit(1)


def _results_table(results: list[SearchResult], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Question")
    table.add_column("Answer", justify="right")
    table.add_column("Grade")
    table.add_column("Operation")
    table.add_column("Score", justify="right", style="green")

    for result in results:
        table.add_row(
            result.id,
            escape(truncate_text(result.question_text, 60)),
            str(result.answer),
            result.metadata.grade,
            result.metadata.operation,
            f"{result.similarity_score:.4f}",
        )
    return table


# ─────────────────────────────────────────────────────────────────────────────
# Info Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def info():
    """
    ℹ️ Show configuration.

    Displays the embedding provider, vector store backend, index parameters
    and search defaults currently in effect.
    """
    from mathsearch.shared.config import get_settings
    from mathsearch import __version__

    settings = get_settings()
    index = settings.index

    console.print(Panel(
        f"[bold]MathSearch[/bold]\n"
        f"Version: {__version__}\n"
        f"Config: config/settings.yaml",
        title="ℹ️ Info",
    ))

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    provider = settings.get_effective_embedding_provider()
    table.add_row("Embedding provider", provider)
    if provider == "ollama":
        table.add_row("Ollama URL", settings.get_effective_ollama_url())
        table.add_row("Ollama model", settings.embeddings.ollama.model_name)
    else:
        table.add_row("Gemini model", settings.embeddings.gemini.model_name)
    table.add_row("Dimensions", str(settings.embeddings.dimensions))
    table.add_row("Cache size", str(settings.embeddings.cache_size))

    backend = settings.get_effective_vector_store_backend()
    table.add_row("Vector store", backend)
    if backend == "opensearch":
        table.add_row("OpenSearch host", settings.get_effective_opensearch_host())
    else:
        table.add_row("Chroma directory", str(settings.resolve_path(settings.vector_store.chroma.persist_dir)))

    table.add_row("Index", index.name)
    table.add_row("HNSW", f"{index.engine}/{index.space_type} m={index.m} ef_construction={index.ef_construction}")
    table.add_row("ef_search", str(index.ef_search))
    table.add_row("Duplicate threshold", str(settings.get_effective_duplicate_threshold()))

    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Health Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def health():
    """
    🩺 Check the vector store and embedding provider.

    Exits with status 1 if either one is unavailable.
    """
    from mathsearch.factory import create_engine

    try:
        engine = create_engine()
    except (MathSearchError, ValueError) as e:
        _fail("Failed to initialize", e)

    status = engine.store.check_health()
    provider = engine.generator.provider
    provider_ok = provider.is_available()

    table = Table(title="Health")
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_column("Details")

    table.add_row(
        "Vector store",
        "[green]healthy[/green]" if status.is_healthy else "[red]unhealthy[/red]",
        status.error or f"cluster={status.cluster_status} nodes={status.node_count}",
    )
    table.add_row(
        "Embeddings",
        "[green]available[/green]" if provider_ok else "[red]unavailable[/red]",
        f"{provider.provider_name}/{provider.model_name}",
    )
    console.print(table)

    if not (status.is_healthy and provider_ok):
        raise typer.Exit(1)


# ─────────────────────────────────────────────────────────────────────────────
# Index Lifecycle Commands
# ─────────────────────────────────────────────────────────────────────────────


@app.command("init-index")
def init_index(
    recreate: bool = typer.Option(
        False,
        "--recreate", "-r",
        help="Delete the index first and create it from scratch.",
    ),
):
    """
    📊 Create the question index if it does not exist.

    Examples:
        mathsearch init-index       # Create if missing
        mathsearch init-index -r    # Drop and recreate
    """
    from mathsearch.factory import create_engine

    try:
        manager = create_engine().index_manager
        if recreate:
            manager.recreate_index()
        else:
            manager.create_index_if_not_exists()
    except (MathSearchError, ValueError) as e:
        _fail("Index initialization failed", e)

    console.print(f"[green]✓ Index '{manager.index_name}' is ready[/green]")


@app.command("delete-index")
def delete_index(
    yes: bool = typer.Option(
        False,
        "--yes", "-y",
        help="Skip the confirmation prompt.",
    ),
):
    """🗑️ Delete the question index and all indexed questions."""
    from mathsearch.factory import create_engine

    try:
        manager = create_engine().index_manager
    except (MathSearchError, ValueError) as e:
        _fail("Failed to initialize", e)

    if not yes:
        typer.confirm(f"Delete index '{manager.index_name}'?", abort=True)

    try:
        manager.delete_index()
    except MathSearchError as e:
        _fail("Index deletion failed", e)

    console.print(f"[green]✓ Index '{manager.index_name}' deleted[/green]")


@app.command()
def stats():
    """📈 Show document count and size of the question index."""
    from mathsearch.factory import create_engine

    try:
        manager = create_engine().index_manager
        index_stats = manager.get_index_stats()
    except (MathSearchError, ValueError) as e:
        _fail("Failed to get index stats", e)

    console.print(Panel(
        f"Documents: {index_stats.document_count}\n"
        f"Size: {index_stats.index_size}",
        title=f"📈 {manager.index_name}",
    ))


# ─────────────────────────────────────────────────────────────────────────────
# Search Commands
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def search(
    text: str = typer.Argument(..., help="Question text to search for."),
    grade: Optional[int] = typer.Option(None, "--grade", "-g", help="Only this grade."),
    topic: Optional[str] = typer.Option(None, "--topic", "-t", help="Only this topic."),
    operation: Optional[str] = typer.Option(None, "--operation", "-o", help="Only this operation."),
    exclude: Optional[list[str]] = typer.Option(
        None,
        "--exclude", "-x",
        help="Question id to leave out (repeatable).",
    ),
    limit: int = typer.Option(10, "--limit", "-k", min=1, help="Number of results."),
):
    """
    🔎 Find questions similar to TEXT.

    Examples:
        mathsearch search "What is 5 + 3?"
        mathsearch search "What is 5 + 3?" -g 3 -o addition -k 5
        mathsearch search "What is 5 + 3?" -x q-001 -x q-002
    """
    from mathsearch.factory import create_engine

    filters = SearchFilter(
        grade=grade,
        topic=topic,
        operation=operation,
        exclude_ids=exclude or [],
        limit=limit,
    )

    try:
        results = create_engine().search.find_similar(text, filters)
    except (MathSearchError, ValueError) as e:
        _fail("Search failed", e)

    if not results:
        console.print("[yellow]No similar questions found.[/yellow]")
        return

    console.print(_results_table(results, f"Similar to: {truncate_text(text, 60)}"))


@app.command("check-duplicate")
def check_duplicate(
    text: str = typer.Argument(..., help="Question text to check."),
    threshold: Optional[float] = typer.Option(
        None,
        "--threshold",
        min=0.0,
        max=1.0,
        help="Minimum similarity to count as a duplicate. Default: from config.",
    ),
    grade: Optional[int] = typer.Option(None, "--grade", "-g", help="Only this grade."),
    topic: Optional[str] = typer.Option(None, "--topic", "-t", help="Only this topic."),
    operation: Optional[str] = typer.Option(None, "--operation", "-o", help="Only this operation."),
):
    """
    🧬 Check whether TEXT duplicates an indexed question.

    Exits with status 2 when a duplicate is found.
    """
    from mathsearch.factory import create_engine

    filters = SearchFilter(grade=grade, topic=topic, operation=operation)

    try:
        duplicate = create_engine().duplicates.check_duplicate(text, filters, threshold)
    except (MathSearchError, ValueError) as e:
        _fail("Duplicate check failed", e)

    if duplicate is None:
        console.print("[green]✓ No duplicate found[/green]")
        return

    existing = duplicate.existing_question
    console.print(Panel(
        f"[bold]{escape(existing.question_text)}[/bold]\n"
        f"ID: {existing.id}\n"
        f"Answer: {existing.answer}\n"
        f"Similarity: {duplicate.similarity_score:.4f}",
        title="⚠️ Duplicate found",
        border_style="yellow",
    ))
    raise typer.Exit(2)


# ─────────────────────────────────────────────────────────────────────────────
# Load Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def load(
    dataset_file: Path = typer.Argument(..., help="Question dataset JSON file."),
    limit: Optional[int] = typer.Option(
        None,
        "--limit", "-l",
        min=1,
        help="Index at most this many questions.",
    ),
    batch: int = typer.Option(
        50,
        "--batch", "-b",
        min=1,
        help="Questions per bulk request.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Parse the dataset and show what would be indexed.",
    ),
):
    """
    📥 Index questions from a dataset file.

    Examples:
        mathsearch load data/datasets/grade3.json
        mathsearch load data/datasets/grade3.json --limit 100 --batch 25
        mathsearch load data/datasets/grade3.json --dry-run
    """
    from pydantic import ValidationError

    from mathsearch.indexing.dataset_loader import load_dataset, to_math_questions

    if not dataset_file.exists():
        console.print(f"[red]Dataset file not found: {dataset_file}[/red]")
        raise typer.Exit(1)

    try:
        dataset = load_dataset(dataset_file)
    except (ValidationError, ValueError) as e:
        _fail("Invalid dataset", e)

    questions = to_math_questions(dataset, limit=limit)

    console.print(Panel(
        f"[bold]Load Configuration[/bold]\n"
        f"Dataset: {dataset_file}\n"
        f"Questions: {len(questions)} of {dataset.question_count}\n"
        f"Batch size: {batch}\n"
        f"Dry run: {dry_run}",
        title="📥 Load",
    ))

    if dry_run:
        table = Table(title="Questions (dry run)")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Question")
        table.add_column("Answer", justify="right")
        table.add_column("Operation")
        table.add_column("Difficulty")
        for question in questions[:20]:
            table.add_row(
                question.id or "",
                escape(truncate_text(question.question, 60)),
                str(question.answer),
                question.operation,
                question.difficulty,
            )
        console.print(table)
        if len(questions) > 20:
            console.print(f"[dim]... and {len(questions) - 20} more[/dim]")
        return

    if not questions:
        console.print("[yellow]No questions to index.[/yellow]")
        return

    from mathsearch.factory import create_engine
    from mathsearch.indexing.dataset_loader import load_into_index

    indexed = 0
    try:
        indexer = create_engine().indexer
        indexer.ensure_index_exists()

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            console=console,
        ) as progress:
            task = progress.add_task("Indexing questions...", total=len(questions))

            def callback(current, total):
                nonlocal indexed
                indexed = current
                progress.update(task, completed=current)

            load_into_index(indexer, questions, batch_size=batch, progress_callback=callback)
    except (MathSearchError, ValueError) as e:
        console.print(f"[yellow]Indexed {indexed} questions before the failure[/yellow]")
        _fail("Indexing failed", e)

    console.print(f"[green]✓ Indexed {indexed} questions[/green]")


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def cli():
    """CLI entry point."""
    app()


if __name__ == "__main__":
    cli()
