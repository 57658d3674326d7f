"""Database schema initialization."""

from __future__ import annotations

import sqlite3

CURRENT_VERSION = 1


def initialize(conn: sqlite3.Connection) -> None:
    """Initialize the store schema (idempotent, safe on every open)."""
    from codescout.db.migrations import backfill_path_column, run_migrations

    run_migrations(conn)
    backfill_path_column(conn)
