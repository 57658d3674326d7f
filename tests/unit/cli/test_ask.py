"""Tests for `codescout ask`."""

from __future__ import annotations

from unittest.mock import patch

from typer.testing import CliRunner

from codescout.cli.main import app
from codescout.db.store import EmbeddingStore
from codescout.rag.service import NO_CONTEXT_MESSAGE

runner = CliRunner()


def _ask(project, db_path, question: str, *extra: str):
    return runner.invoke(
        app, ["ask", question, "--root", str(project), "--db", str(db_path), *extra]
    )


def test_ask_indexes_then_answers(project, db_path, backend):
    (project / "main.py").write_text("def main(): ...\n", encoding="utf-8")
    _, complete = backend

    result = _ask(project, db_path, "Where does the main entry live?")

    assert result.exit_code == 0, result.output
    assert "ANSWER: see main.py" in result.output
    complete.assert_called_once()
    prompt = complete.call_args.args[1]
    assert "Where does the main entry live?" in prompt
    assert "def main()" in prompt


def test_ask_passes_feedback(project, db_path, backend):
    (project / "main.py").write_text("def main(): ...\n", encoding="utf-8")
    _, complete = backend

    result = _ask(project, db_path, "Where is main?", "--feedback", "mention the file")

    assert result.exit_code == 0, result.output
    assert "User feedback for improvement: mention the file" in complete.call_args.args[1]


def test_ask_no_index_without_db_exits_1(project, db_path, backend):
    result = _ask(project, db_path, "anything", "--no-index")
    assert result.exit_code == 1
    assert "No index found" in result.output


def test_ask_no_index_empty_store_prints_no_context(project, db_path, backend):
    EmbeddingStore.open(db_path).close()
    embed, complete = backend

    result = _ask(project, db_path, "How does parsing work?", "--no-index")

    assert result.exit_code == 0, result.output
    assert NO_CONTEXT_MESSAGE in result.output
    embed.assert_not_called()
    complete.assert_not_called()


def test_ask_dimension_mismatch_exits_1(project, db_path, backend):
    (project / "main.py").write_text("x = 1\n", encoding="utf-8")
    runner.invoke(app, ["index", "--root", str(project), "--db", str(db_path)])

    with patch("codescout.rag.llm_client.embed", return_value=[1.0, 2.0, 3.0]):
        result = _ask(project, db_path, "How is x set?")

    assert result.exit_code == 1
    assert "mismatch" in result.output


def test_ask_missing_generation_key_exits_1(project, db_path, monkeypatch):
    monkeypatch.setenv("CODESCOUT_GENERATION_MODEL", "anthropic/claude-sonnet")
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    result = _ask(project, db_path, "anything")

    assert result.exit_code == 1
    assert "ANTHROPIC_API_KEY" in result.output
