"""codescout status — where the index lives and what it holds."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from codescout.cli.common import open_store, resolve_config
from codescout.rag.service import OVERVIEW_PATH

console = Console()


def status_cmd(
    root: Annotated[
        Path | None,
        typer.Option("--root", "-r", help="Project root (default: nearest project marker)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index file (default: per-project file under ~/.local/share)."),
    ] = None,
) -> None:
    """Show the index location and its file/embedding counts."""
    cfg = resolve_config(console, root, db)

    lines = [
        f"Root:       {escape(str(cfg.root))}",
        f"Index:      {escape(str(cfg.db_path))}",
        f"Embedding:  {escape(cfg.embedding.model)}",
        f"Generation: {escape(cfg.generation.model)}",
    ]

    if not cfg.db_path.exists():
        lines.append("\n[yellow]No index yet.[/]\n  Run:  codescout index")
        console.print(Panel("\n".join(lines), title="[bold]codescout[/]", expand=False))
        return

    with open_store(console, cfg) as store:
        paths = [p for p in store.list_file_paths() if p != OVERVIEW_PATH]
        total = store.count_embeddings()

    size_mb = cfg.db_path.stat().st_size / (1024 * 1024)
    lines.append(
        f"\nFiles: [bold]{len(paths):,}[/]  |  "
        f"Embeddings: [bold]{total:,}[/]  |  "
        f"Size: {size_mb:.1f} MB"
    )
    console.print(Panel("\n".join(lines), title="[bold]codescout[/]", expand=False))
