"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from codescout.db.connection import Database
from codescout.db.schema import initialize
from codescout.db.store import EmbeddingStore


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / "index.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def store(tmp_path):
    """Open EmbeddingStore in tmp_path, closed after test."""
    s = EmbeddingStore.open(tmp_path / "index.db")
    yield s
    s.close()
