"""CLI command for repository ingestion."""

import logging
from typing import Annotated

import requests
import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from config.settings import get_settings
from src.cli.services import configure_logging, open_store
from src.embedding.config import get_embedding_provider
from src.embedding.provider import EmbeddingConfigurationError
from src.ingestion.file_source import GitHubFileSource, LocalFileSource
from src.ingestion.pipeline import run_ingestion_pipeline
from src.ingestion.repo_metadata import build_repository_metadata_document

console = Console()
app = typer.Typer()

logger = logging.getLogger(__name__)


def _parse_github_ref(ref: str) -> tuple[str, str]:
    owner, sep, repo = ref.partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise typer.BadParameter(f"expected OWNER/REPO, got {ref!r}", param_hint="--github")
    return owner, repo


@app.command()
def ingest(
    path: Annotated[
        str | None,
        typer.Argument(help="Local repository checkout to ingest"),
    ] = None,
    github: Annotated[
        str | None,
        typer.Option("--github", "-g", help="GitHub repository as OWNER/REPO"),
    ] = None,
    branch: Annotated[
        str,
        typer.Option("--branch", "-b", help="Branch to ingest from GitHub"),
    ] = "develop",
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Re-embed files even if unchanged"),
    ] = False,
    with_metadata: Annotated[
        bool,
        typer.Option("--with-metadata", help="Also index a repository metadata document (GitHub only)"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Chunk, embed and store a repository's source files."""
    configure_logging(verbose)

    if (path is None) == (github is None):
        console.print("[bold red]Give either a local PATH or --github OWNER/REPO.[/bold red]")
        raise typer.Exit(1)

    settings = get_settings()

    if github:
        owner, repo = _parse_github_ref(github)
        source = GitHubFileSource(
            owner,
            repo,
            branch=branch,
            token=settings.github_token,
            batch_size=settings.repochat_fetch_batch_size,
            batch_delay=settings.repochat_fetch_delay,
        )
    else:
        try:
            source = LocalFileSource(path, batch_size=settings.repochat_fetch_batch_size)
        except ValueError as e:
            console.print(f"[bold red]{e}[/bold red]")
            raise typer.Exit(1)

    extra_files = []
    if with_metadata:
        if not github:
            console.print("[yellow]--with-metadata needs --github; skipping metadata.[/yellow]")
        else:
            try:
                extra_files.append(
                    build_repository_metadata_document(owner, repo, token=settings.github_token)
                )
            except requests.RequestException as e:
                console.print(f"[bold red]Failed to fetch repository metadata:[/bold red] {e}")
                raise typer.Exit(1)

    try:
        embedding_provider = get_embedding_provider(settings)
        store = open_store(settings, embedding_provider)
    except EmbeddingConfigurationError as e:
        console.print(f"[bold red]Embedding configuration error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print("[bold]repochat Ingestion[/bold]")
    console.print(f"Source: {source.ref}")
    console.print(f"Chunk size: {settings.repochat_chunk_size} chars, overlap: {settings.repochat_chunk_overlap} chars")
    console.print()

    with store:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Ingesting repository...", total=None)
            try:
                result = run_ingestion_pipeline(
                    source,
                    store,
                    embedding_provider,
                    force_regenerate=force,
                    chunk_size=settings.repochat_chunk_size,
                    chunk_overlap=settings.repochat_chunk_overlap,
                    embed_batch_size=settings.repochat_embed_batch_size,
                    extra_files=extra_files,
                )
            except EmbeddingConfigurationError as e:
                console.print(f"[bold red]Embedding configuration error:[/bold red] {e}")
                raise typer.Exit(1)
            progress.update(task, completed=True)

        console.print()
        console.print("[bold green]Ingestion complete![/bold green]")
        console.print(f"  Files found: {result['files_total']}")
        console.print(f"  Files ingested: {result['files_ingested']}")
        console.print(f"  Files skipped (unchanged): {result['files_skipped']}")
        console.print(f"  Chunks stored: {result['chunks_stored']}")
        console.print(f"  Errors: {result['errors']}")
        console.print(f"  Total in store: {store.count} chunks")
