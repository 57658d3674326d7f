"""codescout storage layer."""

from codescout.db.connection import Database
from codescout.db.migrations import MIGRATIONS, backfill_path_column, run_migrations
from codescout.db.schema import initialize
from codescout.db.store import EmbeddingStore, StoreError

__all__ = [
    "Database",
    "EmbeddingStore",
    "StoreError",
    "initialize",
    "run_migrations",
    "backfill_path_column",
    "MIGRATIONS",
]
