"""Embedding store: chunk vectors plus per-path content hashes.

One logical connection, one lock. Every read and write takes the lock, so
concurrent callers block rather than interleave, and a path's
delete-then-reinsert is never observed half done.
"""

from __future__ import annotations

import sqlite3
import struct
import threading
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path

import sqlite_vec

from codescout.db.connection import Database
from codescout.db.models import Embedding, FileMeta
from codescout.db.schema import initialize


class StoreError(RuntimeError):
    """Raised for schema, transaction, or vector decoding failures."""


class EmbeddingStore:
    """Data access layer for the ``embeddings`` and ``file_meta`` tables.

    Wraps an open sqlite3.Connection. Use ``EmbeddingStore.open()`` to create
    the file, run schema setup, and get a store that owns its connection.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see codescout.db.schema.initialize).
        """
        self._conn = conn
        self._lock = threading.RLock()

    @classmethod
    def open(cls, db_path: Path | str) -> EmbeddingStore:
        """Open (or create) the store at *db_path* and run schema setup."""
        try:
            conn = Database(db_path).connect()
            initialize(conn)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open embedding store at '{db_path}': {exc}") from exc
        return cls(conn)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> EmbeddingStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @contextmanager
    def _locked(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as exc:
                raise StoreError(str(exc)) from exc

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    def insert_embeddings(
        self,
        embeddings: Sequence[Embedding],
        file_hashes: Mapping[str, str] | None = None,
    ) -> None:
        """Upsert *embeddings* by id in a single all-or-nothing transaction.

        Args:
            embeddings: Rows to write; an existing row with the same id is
                overwritten.
            file_hashes: Optional ``{path: hash}`` entries committed in the
                same transaction, so a path's hash never lands without its
                embeddings.
        """
        rows = [(e.id, _encode_vector(e.vector), e.text, e.path) for e in embeddings]
        with self._locked() as conn, conn:
            conn.executemany(
                """
                INSERT INTO embeddings (id, vector, text, path)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    vector = excluded.vector,
                    text = excluded.text,
                    path = excluded.path
                """,
                rows,
            )
            if file_hashes:
                conn.executemany(
                    _UPSERT_FILE_HASH, list(file_hashes.items())
                )

    def get_all_embeddings(self) -> list[Embedding]:
        """Return every stored embedding (the query-time corpus).

        Raises:
            StoreError: If any stored vector blob cannot be decoded.
        """
        with self._locked() as conn:
            rows = conn.execute(
                "SELECT id, vector, text, path FROM embeddings ORDER BY id"
            ).fetchall()
        return [
            Embedding(
                id=row["id"],
                vector=_decode_vector(row["vector"], row["id"]),
                text=row["text"],
                path=row["path"],
            )
            for row in rows
        ]

    def count_embeddings(self, path: str | None = None) -> int:
        """Return the number of stored embeddings, optionally for one *path*."""
        with self._locked() as conn:
            if path is None:
                return conn.execute("SELECT COUNT(*) FROM embeddings").fetchone()[0]
            return conn.execute(
                "SELECT COUNT(*) FROM embeddings WHERE path = ?", (path,)
            ).fetchone()[0]

    def delete_embeddings_for_path(self, path: str) -> int:
        """Delete all embeddings whose owning path is *path*. Returns rows deleted."""
        with self._locked() as conn, conn:
            cur = conn.execute("DELETE FROM embeddings WHERE path = ?", (path,))
            return cur.rowcount

    # ------------------------------------------------------------------
    # File hashes
    # ------------------------------------------------------------------

    def get_file_hash(self, path: str) -> str | None:
        """Return the stored content hash for *path*, or None if never indexed."""
        with self._locked() as conn:
            row = conn.execute(
                "SELECT hash FROM file_meta WHERE path = ?", (path,)
            ).fetchone()
        return row["hash"] if row else None

    def upsert_file_hash(self, path: str, content_hash: str) -> None:
        with self._locked() as conn, conn:
            conn.execute(_UPSERT_FILE_HASH, (path, content_hash))

    def list_file_meta(self) -> list[FileMeta]:
        """Return every stored (path, hash) record, sorted by path."""
        with self._locked() as conn:
            rows = conn.execute("SELECT path, hash FROM file_meta ORDER BY path").fetchall()
        return [FileMeta(path=r["path"], hash=r["hash"]) for r in rows]

    def list_file_paths(self) -> list[str]:
        return [m.path for m in self.list_file_meta()]

    def remove_path(self, path: str) -> int:
        """Delete *path*'s embeddings and its hash together. Returns embeddings deleted."""
        with self._locked() as conn, conn:
            cur = conn.execute("DELETE FROM embeddings WHERE path = ?", (path,))
            conn.execute("DELETE FROM file_meta WHERE path = ?", (path,))
            return cur.rowcount


_UPSERT_FILE_HASH = """
INSERT INTO file_meta (path, hash) VALUES (?, ?)
ON CONFLICT(path) DO UPDATE SET hash = excluded.hash
"""


# ------------------------------------------------------------------
# Vector blob helpers
# ------------------------------------------------------------------

def _encode_vector(vector: Sequence[float]) -> bytes:
    return sqlite_vec.serialize_float32(list(vector))


def _decode_vector(blob: bytes, embedding_id: str) -> list[float]:
    if not isinstance(blob, (bytes, bytearray, memoryview)) or len(blob) % 4:
        raise StoreError(f"Corrupt vector blob for embedding '{embedding_id}'")
    try:
        return list(struct.unpack(f"{len(blob) // 4}f", blob))
    except struct.error as exc:
        raise StoreError(f"Corrupt vector blob for embedding '{embedding_id}': {exc}") from exc
