"""codescout rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from codescout.cli.errors import err_no_db
    console.print(err_no_db(str(db)))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_db(db_path: str) -> str:
    """No store exists yet at *db_path*."""
    return (
        f"[red]Error:[/] No index found at '{escape(db_path)}'.\n"
        "  Run:  codescout index"
    )


def err_config(exc: Exception) -> str:
    """Configuration could not be loaded."""
    return (
        f"[red]Error:[/] Invalid configuration: {escape(str(exc))}\n"
        "  Fix codescout.yaml or ~/.codescout/config.yaml and retry."
    )


def err_store(exc: Exception) -> str:
    """The embedding store failed (schema, transaction, corrupt vector)."""
    return (
        f"[red]Error:[/] Embedding store failure: {escape(str(exc))}\n"
        "  Check the --db path is writable. If the file is corrupt, delete it and run:  codescout index"
    )


def err_backend_timeout(exc: Exception) -> str:
    """A backend call timed out; the operation can be retried."""
    return (
        f"[red]Error:[/] {escape(str(exc))}\n"
        "  The backend may be overloaded. Retry, or raise backend.timeout in codescout.yaml."
    )


def err_backend(exc: Exception, api_base: str | None) -> str:
    """Any other backend failure, passed through verbatim."""
    where = f" at {escape(api_base)}" if api_base else ""
    return (
        f"[red]Error:[/] Backend request failed{where}: {escape(str(exc))}\n"
        "  Check the backend is running and the configured models are available."
    )


def err_filesystem(root: str, exc: Exception) -> str:
    """A file or directory under the project root could not be read."""
    return (
        f"[red]Error:[/] Cannot read from project tree '{escape(root)}': {escape(str(exc))}\n"
        "  Check the path exists and is readable, or pass another directory with --root."
    )


def err_dimension_mismatch(exc: Exception) -> str:
    """Stored vectors were produced by a different embedding model."""
    return (
        f"[red]Error:[/] {escape(str(exc))}\n"
        "  Delete the index file (see: codescout status) and run:  codescout index"
    )


def warn_oversized(paths: list[str], limit_bytes: int) -> str:
    """Files skipped because they exceed the size cap."""
    listing = "\n".join(f"    {escape(p)}" for p in paths)
    return (
        f"[yellow]⚠[/] {len(paths)} file(s) larger than {limit_bytes / (1024 * 1024):.1f} MB "
        "were not indexed:\n"
        f"{listing}\n"
        "  Raise scanner.max_file_bytes in codescout.yaml to include them."
    )
