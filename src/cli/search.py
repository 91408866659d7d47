"""CLI command for semantic code search."""

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from config.settings import get_settings
from src.cli.services import build_search_engine, configure_logging
from src.retrieval.search import DEFAULT_LIMIT

console = Console()
app = typer.Typer()


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="What to look for in the codebase")],
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum number of results"),
    ] = DEFAULT_LIMIT,
    threshold: Annotated[
        float | None,
        typer.Option("--threshold", "-t", help="Minimum cosine similarity (exclusive)"),
    ] = None,
    learn: Annotated[
        bool,
        typer.Option("--learn", help="Rerank using feedback from past answers"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Search the indexed codebase."""
    configure_logging(verbose)
    settings = get_settings()

    if not query.strip():
        console.print("[bold red]Query must not be empty.[/bold red]")
        raise typer.Exit(1)

    if threshold is None:
        threshold = settings.repochat_search_threshold

    engine = build_search_engine(settings)
    with engine.store:
        results = engine.search(query, limit=limit, threshold=threshold, learn=learn)
    if not results:
        console.print("[yellow]No matching code found.[/yellow]")
        return

    table = Table(title=f"Results for: {query}")
    table.add_column("#", justify="right")
    table.add_column("File")
    table.add_column("Lines")
    table.add_column("Similarity", justify="right")
    if learn:
        table.add_column("Score", justify="right")
    table.add_column("Preview")

    for i, r in enumerate(results, 1):
        preview = r.chunk.content.strip().splitlines()[0][:80] if r.chunk.content.strip() else ""
        row = [str(i), r.chunk.file_path, r.chunk.line_range, f"{r.similarity:.3f}"]
        if learn:
            row.append(f"{r.ranking_score:.3f}")
        row.append(preview)
        table.add_row(*row)

    console.print(table)
