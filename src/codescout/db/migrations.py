"""Forward-only migration runner for the codescout store schema.

Stores written before the ``path`` column existed on ``embeddings`` are
repaired by ``backfill_path_column()``, which runs after the migrations on
every open.
"""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

# No path index here: on a legacy table the column may
# not exist yet. backfill_path_column() creates it.
_V1_SQL = """
CREATE TABLE IF NOT EXISTS embeddings (
    id      TEXT PRIMARY KEY,
    vector  BLOB NOT NULL,
    text    TEXT NOT NULL,
    path    TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS file_meta (
    path    TEXT PRIMARY KEY,
    hash    TEXT NOT NULL
);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()


def backfill_path_column(conn: sqlite3.Connection) -> bool:
    """Add ``embeddings.path`` if missing, then ensure its index exists.

    Returns True if the column had to be added.
    """
    columns = {row[1] for row in conn.execute("PRAGMA table_info(embeddings)")}
    added = False
    if "path" not in columns:
        conn.execute("ALTER TABLE embeddings ADD COLUMN path TEXT NOT NULL DEFAULT ''")
        added = True
    conn.execute("CREATE INDEX IF NOT EXISTS idx_embeddings_path ON embeddings(path)")
    conn.commit()
    return added
