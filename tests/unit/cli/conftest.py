"""Fixtures for CLI tests: isolated config and a fake LLM backend."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import yaml

_ENV_VARS = (
    "CODESCOUT_DB_PATH",
    "CODESCOUT_API_BASE",
    "CODESCOUT_EMBEDDING_MODEL",
    "CODESCOUT_GENERATION_MODEL",
    "CODESCOUT_INCLUDE_PATTERNS",
    "CODESCOUT_EXCLUDE_PATTERNS",
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the global config at a missing file and clear CODESCOUT_* vars."""
    monkeypatch.setattr(
        "codescout.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global" / "config.yaml"
    )
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "proj"
    root.mkdir()
    (root / "codescout.yaml").write_text(
        yaml.safe_dump({"scanner": {"workers": 1}}), encoding="utf-8"
    )
    return root


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "index.db"


def fake_embed(model, text, **kwargs):
    return [float(len(text) % 7) + 1.0, float(text.count("e")) + 1.0]


def fake_complete(model, prompt, **kwargs):
    return "ANSWER: see main.py"


@pytest.fixture
def backend():
    """Patch the LiteLLM wrappers; yields (embed_mock, complete_mock)."""
    with patch("codescout.rag.llm_client.embed", side_effect=fake_embed) as emb, patch(
        "codescout.rag.llm_client.complete", side_effect=fake_complete
    ) as comp:
        yield emb, comp
