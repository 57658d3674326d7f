"""Shared helpers for codescout CLI commands: config, store, error mapping."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path

import typer
from rich.console import Console

from codescout.cli.errors import (
    err_backend,
    err_backend_timeout,
    err_config,
    err_dimension_mismatch,
    err_filesystem,
    err_no_api_key,
    err_store,
)
from codescout.config import CodescoutConfig, ConfigError, find_project_root, load_config
from codescout.db.store import EmbeddingStore, StoreError
from codescout.rag.llm_client import BackendTimeoutError, provider_of, validate_api_key
from codescout.rag.search import DimensionMismatchError


def resolve_config(console: Console, root: Path | None, db: Path | None) -> CodescoutConfig:
    """Load config for *root* (default: nearest project root) and apply CLI flags."""
    project_root = root if root is not None else find_project_root()
    try:
        cfg = load_config(project_root)
    except ConfigError as exc:
        console.print(err_config(exc))
        raise typer.Exit(1)
    if db is not None:
        cfg = replace(cfg, db_path=db)
    return cfg


def check_api_keys(console: Console, *models: str) -> None:
    for model in models:
        try:
            validate_api_key(model)
        except EnvironmentError:
            console.print(err_no_api_key(provider_of(model)))
            raise typer.Exit(1)


@contextmanager
def open_store(console: Console, cfg: CodescoutConfig) -> Iterator[EmbeddingStore]:
    """Open the configured store and turn engine failures into exit code 1."""
    try:
        store = EmbeddingStore.open(cfg.db_path)
    except StoreError as exc:
        console.print(err_store(exc))
        raise typer.Exit(1)
    try:
        with guarded(console, cfg):
            yield store
    finally:
        store.close()


@contextmanager
def guarded(console: Console, cfg: CodescoutConfig) -> Iterator[None]:
    try:
        yield
    except typer.Exit:
        raise
    except StoreError as exc:
        console.print(err_store(exc))
        raise typer.Exit(1)
    except BackendTimeoutError as exc:
        console.print(err_backend_timeout(exc))
        raise typer.Exit(1)
    except OSError as exc:
        console.print(err_filesystem(str(cfg.root), exc))
        raise typer.Exit(1)
    except DimensionMismatchError as exc:
        console.print(err_dimension_mismatch(exc))
        raise typer.Exit(1)
    except Exception as exc:
        console.print(err_backend(exc, cfg.backend.api_base))
        raise typer.Exit(1)
