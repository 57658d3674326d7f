"""codescout ask — answer a question about the project from the index."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from codescout.cli.common import check_api_keys, open_store, resolve_config
from codescout.cli.errors import err_no_db, warn_oversized
from codescout.cli.index import run_index
from codescout.rag.service import RagService

console = Console()


def ask_cmd(
    question: Annotated[str, typer.Argument(help="Natural-language question.")],
    root: Annotated[
        Path | None,
        typer.Option("--root", "-r", help="Project root (default: nearest project marker)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index file (default: per-project file under ~/.local/share)."),
    ] = None,
    feedback: Annotated[
        str,
        typer.Option("--feedback", "-f", help="Feedback on a previous answer to improve on."),
    ] = "",
    no_index: Annotated[
        bool,
        typer.Option("--no-index", help="Answer from the existing index without refreshing it."),
    ] = False,
) -> None:
    """Refresh the index for QUESTION, then answer it."""
    cfg = resolve_config(console, root, db)
    check_api_keys(console, cfg.embedding.model, cfg.generation.model)

    if no_index and not cfg.db_path.exists():
        console.print(err_no_db(str(cfg.db_path)))
        raise typer.Exit(1)

    with open_store(console, cfg) as store:
        if not no_index:
            report = run_index(cfg, store, question)
            if report.skipped:
                console.print(warn_oversized(report.skipped, cfg.scanner.max_file_bytes))

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task("Thinking…", total=None)
            answer = RagService(cfg, store).query(question, feedback=feedback)

    console.print(answer, markup=False, highlight=False)
