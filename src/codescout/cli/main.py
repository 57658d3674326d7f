"""codescout CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from codescout.cli.ask import ask_cmd
from codescout.cli.index import index_cmd
from codescout.cli.status import status_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("codescout")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"codescout {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="codescout",
    help=(
        "codescout — semantic index and Q&A over a source tree.\n\n"
        "  codescout index   Build or refresh the embedding index.\n"
        "  codescout ask     Answer a question from the indexed code."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """codescout — semantic index and Q&A over a source tree."""


app.command("index")(index_cmd)
app.command("ask")(ask_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed codescout version."""
    typer.echo(f"codescout {_installed_version()}")


if __name__ == "__main__":
    app()
