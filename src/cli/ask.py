"""CLI command for asking questions about the repository."""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from config.settings import get_settings
from src.agent.chat import ChatAssistant
from src.cli.services import build_search_engine, configure_logging, open_history
from src.llm.config import get_llm

console = Console()
app = typer.Typer()

logger = logging.getLogger(__name__)


@app.command()
def ask(
    question: Annotated[
        str,
        typer.Argument(help="Your question about the codebase"),
    ],
    channel: Annotated[
        str,
        typer.Option("--channel", "-c", help="Conversation channel to answer in"),
    ] = "cli",
    user: Annotated[
        str,
        typer.Option("--user", "-u", help="Name of the person asking"),
    ] = "user",
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Ask a question about the indexed repository."""
    configure_logging(verbose)
    settings = get_settings()

    if not settings.anthropic_api_key and settings.repochat_llm_provider == "anthropic":
        console.print(
            "[bold red]ANTHROPIC_API_KEY not set.[/bold red]\n"
            "Export your API key: export ANTHROPIC_API_KEY='sk-ant-...'"
        )
        raise typer.Exit(1)

    engine = build_search_engine(settings)
    with engine.store:
        if engine.store.count == 0:
            console.print(
                "[bold red]No code in the vector store.[/bold red]\n"
                "Run 'repochat ingest PATH' or 'repochat ingest --github OWNER/REPO' first."
            )
            raise typer.Exit(1)

        history = open_history(settings)
        try:
            assistant = ChatAssistant(engine, history, get_llm(settings), settings.repochat_project_name)
            with console.status("[bold green]Thinking..."):
                reply = assistant.answer(channel, question, user)
        finally:
            history.close()

    header = Text()
    header.append(settings.repochat_project_name, style="bold")
    header.append(f"  message {reply.message_id}", style="dim")

    console.print()
    console.print(Panel(reply.content, title=header, border_style="green", padding=(1, 2)))
    console.print(
        f"[dim]Rate this answer: repochat feedback {channel} {reply.message_id} --up | --down[/dim]"
    )
