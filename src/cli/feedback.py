"""CLI command for voting on assistant answers."""

from typing import Annotated

import typer
from rich.console import Console

from config.settings import get_settings
from src.cli.services import build_search_engine, configure_logging, open_history
from src.feedback.loop import FAILURE_MESSAGE, FeedbackLoop
from src.models.enums import Vote

console = Console()
app = typer.Typer()


@app.command()
def feedback(
    channel: Annotated[str, typer.Argument(help="Channel the answer was given in")],
    message_id: Annotated[str, typer.Argument(help="Id of the assistant's answer")],
    up: Annotated[
        bool,
        typer.Option("--up/--down", help="Upvote or downvote the answer"),
    ] = True,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Record a vote on an answer so future retrieval learns from it."""
    configure_logging(verbose)
    settings = get_settings()

    engine = build_search_engine(settings)
    with engine.store:
        history = open_history(settings)
        try:
            loop = FeedbackLoop(history, engine)
            message = loop.record_feedback(channel, message_id, Vote.UP if up else Vote.DOWN)
        finally:
            history.close()

    if message is None:
        console.print(f"[yellow]No tracked answer {message_id} in channel {channel}.[/yellow]")
        raise typer.Exit(1)
    if message == FAILURE_MESSAGE:
        console.print(f"[bold red]{message}[/bold red]")
        raise typer.Exit(1)
    console.print(f"[bold green]{message}[/bold green]")
