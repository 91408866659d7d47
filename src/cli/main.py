"""repochat CLI entry point."""

import typer

from src.cli.ask import ask
from src.cli.feedback import feedback
from src.cli.ingest import ingest
from src.cli.search import search

app = typer.Typer(
    name="repochat",
    help="Repository chat assistant - Ask questions about a codebase and teach it with feedback.",
)

app.command(name="ingest")(ingest)
app.command(name="search")(search)
app.command(name="ask")(ask)
app.command(name="feedback")(feedback)


if __name__ == "__main__":
    app()
