"""Tests for schema setup, migrations, and the path column backfill."""

from __future__ import annotations

import sqlite3

from codescout.db.connection import Database
from codescout.db.migrations import MIGRATIONS, backfill_path_column, run_migrations
from codescout.db.schema import CURRENT_VERSION, initialize


def _fresh_conn(tmp_path) -> sqlite3.Connection:
    return Database(tmp_path / "test.db").connect()


def _columns(conn, table: str) -> dict[str, sqlite3.Row]:
    return {row["name"]: row for row in conn.execute(f"PRAGMA table_info({table})")}


def _index_exists(conn, name: str) -> bool:
    return conn.execute(
        "SELECT name FROM sqlite_master WHERE type='index' AND name=?", (name,)
    ).fetchone() is not None


def test_run_migrations_creates_tables(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    names = {
        r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    }
    assert {"schema_version", "embeddings", "file_meta"} <= names
    conn.close()


def test_run_migrations_records_version(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    version = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0]
    assert version == MIGRATIONS[-1][0] == CURRENT_VERSION
    conn.close()


def test_initialize_idempotent(tmp_path):
    conn = _fresh_conn(tmp_path)
    initialize(conn)
    initialize(conn)
    count = conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
    assert count == len(MIGRATIONS)
    assert _index_exists(conn, "idx_embeddings_path")
    conn.close()


def test_embeddings_columns(tmp_db):
    cols = _columns(tmp_db, "embeddings")
    assert set(cols) == {"id", "vector", "text", "path"}
    assert cols["id"]["pk"] == 1


def test_backfill_adds_path_to_legacy_table(tmp_path):
    conn = _fresh_conn(tmp_path)
    conn.executescript(
        """
        CREATE TABLE embeddings (id TEXT PRIMARY KEY, vector BLOB NOT NULL, text TEXT NOT NULL);
        CREATE TABLE file_meta (path TEXT PRIMARY KEY, hash TEXT NOT NULL);
        INSERT INTO embeddings (id, vector, text) VALUES ('old', x'00000000', 'legacy row');
        """
    )
    conn.commit()

    initialize(conn)

    assert "path" in _columns(conn, "embeddings")
    assert _index_exists(conn, "idx_embeddings_path")
    row = conn.execute("SELECT path, text FROM embeddings WHERE id = 'old'").fetchone()
    assert row["path"] == ""
    assert row["text"] == "legacy row"
    conn.close()


def test_backfill_safe_on_migrated_store(tmp_db):
    assert backfill_path_column(tmp_db) is False
    assert backfill_path_column(tmp_db) is False
