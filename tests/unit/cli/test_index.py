"""Tests for `codescout index`."""

from __future__ import annotations

from unittest.mock import patch

import yaml
from typer.testing import CliRunner

from codescout.cli.main import app
from codescout.rag.llm_client import BackendTimeoutError

runner = CliRunner()


def _index(project, db_path, *extra: str):
    return runner.invoke(app, ["index", "--root", str(project), "--db", str(db_path), *extra])


def test_index_first_run(project, db_path, backend):
    (project / "main.py").write_text("print('hello')\n", encoding="utf-8")

    result = _index(project, db_path)

    assert result.exit_code == 0, result.output
    assert "1 files scanned" in result.output
    assert "1 re-indexed" in result.output
    assert "2 chunks embedded" in result.output
    assert db_path.exists()


def test_index_second_run_unchanged(project, db_path, backend):
    (project / "main.py").write_text("print('hello')\n", encoding="utf-8")
    _index(project, db_path)
    embed, _ = backend
    embed.reset_mock()

    result = _index(project, db_path)

    assert result.exit_code == 0, result.output
    assert "0 re-indexed" in result.output
    assert "1 unchanged" in result.output
    embed.assert_not_called()


def test_index_with_query_narrows_files(project, db_path, backend):
    (project / "parser.py").write_text("def parse(): ...\n", encoding="utf-8")
    (project / "store.py").write_text("class Store: ...\n", encoding="utf-8")

    result = _index(project, db_path, "--query", "how does the parser work")

    assert result.exit_code == 0, result.output
    assert "1 files scanned" in result.output


def test_index_reports_removed_paths(project, db_path, backend):
    (project / "a.py").write_text("a = 1\n", encoding="utf-8")
    (project / "b.py").write_text("b = 2\n", encoding="utf-8")
    _index(project, db_path)
    (project / "b.py").unlink()

    result = _index(project, db_path)

    assert result.exit_code == 0, result.output
    assert "1 stale path(s) removed" in result.output


def test_index_warns_about_oversized_files(project, db_path, backend):
    (project / "codescout.yaml").write_text(
        yaml.safe_dump({"scanner": {"workers": 1, "max_file_bytes": 4}}), encoding="utf-8"
    )
    (project / "big.py").write_text("x = 'far too long'\n", encoding="utf-8")

    result = _index(project, db_path)

    assert result.exit_code == 0, result.output
    assert "1 file(s) larger than" in result.output
    assert "were not indexed" in result.output


def test_index_backend_failure_exits_1(project, db_path):
    (project / "main.py").write_text("x = 1\n", encoding="utf-8")
    with patch(
        "codescout.rag.llm_client.embed", side_effect=RuntimeError("model not found")
    ):
        result = _index(project, db_path)

    assert result.exit_code == 1
    assert "Backend request failed" in result.output
    assert "model not found" in result.output


def test_index_backend_timeout_exits_1(project, db_path):
    (project / "main.py").write_text("x = 1\n", encoding="utf-8")
    with patch(
        "codescout.rag.llm_client.embed",
        side_effect=BackendTimeoutError("Embedding timed out after 60s"),
    ):
        result = _index(project, db_path)

    assert result.exit_code == 1
    assert "timed out" in result.output


def test_index_missing_root_exits_1(tmp_path, db_path, backend):
    result = _index(tmp_path / "missing", db_path)
    assert result.exit_code == 1
    assert "Cannot read from project tree" in result.output


def test_index_missing_api_key_exits_1(project, db_path, monkeypatch):
    monkeypatch.setenv("CODESCOUT_EMBEDDING_MODEL", "openai/text-embedding-3-small")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    result = _index(project, db_path)

    assert result.exit_code == 1
    assert "OPENAI_API_KEY" in result.output


def test_index_invalid_config_exits_1(project, db_path):
    (project / "codescout.yaml").write_text("retrieval:\n  top_k: lots\n", encoding="utf-8")

    result = _index(project, db_path)

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
