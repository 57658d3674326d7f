"""codescout index — build or refresh the embedding index.

Without --query every eligible file is considered and paths that vanished
from disk are pruned. With --query only files whose paths match the
question's keywords are scanned (capped at retrieval.max_files).
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from codescout.cli.common import check_api_keys, open_store, resolve_config
from codescout.cli.errors import warn_oversized
from codescout.config import CodescoutConfig
from codescout.db.store import EmbeddingStore
from codescout.rag.service import IndexReport, RagService

console = Console()


def index_cmd(
    root: Annotated[
        Path | None,
        typer.Option("--root", "-r", help="Project root (default: nearest project marker)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index file (default: per-project file under ~/.local/share)."),
    ] = None,
    query: Annotated[
        str | None,
        typer.Option("--query", "-q", help="Only index files relevant to this question."),
    ] = None,
) -> None:
    """Index the project tree, re-embedding only files whose content changed."""
    cfg = resolve_config(console, root, db)
    check_api_keys(console, cfg.embedding.model)

    console.print(f"[bold]→ {cfg.root}[/]")
    with open_store(console, cfg) as store:
        report = run_index(cfg, store, query)
    print_report(cfg, report)


def run_index(cfg: CodescoutConfig, store: EmbeddingStore, query: str | None) -> IndexReport:
    """Run one indexing pass behind a transient spinner."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as prog:
        task = prog.add_task("Indexing…", total=None)

        def _on_progress(stage: str, detail: str) -> None:
            prog.update(task, description=f"{stage.capitalize()}: {detail}")

        service = RagService(cfg, store, on_progress=_on_progress)
        if query:
            return service.build_index_for_query(query)
        return service.build_index()


def print_report(cfg: CodescoutConfig, report: IndexReport) -> None:
    console.print(
        f"  [green]✓[/] {report.scanned} files scanned · "
        f"{len(report.reindexed)} re-indexed · {report.unchanged} unchanged · "
        f"{report.chunks_embedded} chunks embedded"
    )
    if report.removed:
        console.print(f"  [dim]↷ {len(report.removed)} stale path(s) removed[/]")
    if report.skipped:
        console.print(warn_oversized(report.skipped, cfg.scanner.max_file_bytes))
