"""codescout configuration loader.

Priority (high → low):
  1. CLI flags           (applied by the caller with dataclasses.replace)
  2. Environment variables  (CODESCOUT_*)
  3. Per-project codescout.yaml  (in the project root)
  4. Global ~/.codescout/config.yaml  (no API keys)
  5. Hardcoded defaults

The result is an immutable CodescoutConfig handed to the orchestrator; deep
components never read the environment themselves.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import hashlib
import os
import re
import warnings
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from codescout.ingest.scanner import DEFAULT_MAX_FILE_BYTES
from codescout.ingest.walker import DEFAULT_EXTENSIONS, DEFAULT_IGNORED_DIRS

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".codescout"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "codescout.yaml"
_STORE_DIR: Path = Path.home() / ".local" / "share" / "codescout"

# Fields that suggest a credential; forbidden in global config.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["project", "store", "backend", "embedding", "generation", "retrieval", "scanner", "patterns"]
)

_PROJECT_MARKERS: tuple[str, ...] = (
    "pyproject.toml",
    "setup.py",
    "requirements.txt",
    "Pipfile",
    "package.json",
    "Cargo.toml",
    "go.mod",
    "Gemfile",
    "composer.json",
    "CMakeLists.txt",
    "Makefile",
    ".git",
)

DEFAULT_INCLUDE_PATTERNS: tuple[str, ...] = (
    "*.py", "*.rs", "*.js", "*.ts", "*.java", "*.go", "*.md", "*.toml", "*.json",
)
DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "target/**", "node_modules/**", "*.lock", ".git/**", "__pycache__/**", "*.pyc",
    "dist/**", "build/**", ".next/**", ".cache/**", ".venv/**", "venv/**",
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BackendCfg:
    """Where the embedding/completion backend lives (codescout.yaml: backend:)."""

    api_base: str | None = "http://localhost:11434"
    timeout: float = 60.0
    num_retries: int = 2


@dataclass(frozen=True)
class EmbeddingCfg:
    """Embedding model and fan-out (codescout.yaml: embedding:)."""

    model: str = "ollama/nomic-embed-text"
    batch_size: int = 32
    concurrency: int = 8


@dataclass(frozen=True)
class GenerationCfg:
    """Completion model (codescout.yaml: generation:)."""

    model: str = "ollama/qwen2.5-coder:7b"
    max_tokens: int = 2048


@dataclass(frozen=True)
class RetrievalCfg:
    """Retrieval and candidate selection (codescout.yaml: retrieval:)."""

    top_k: int = 50
    max_files: int = 200


@dataclass(frozen=True)
class ScannerCfg:
    """File discovery and chunking limits (codescout.yaml: scanner:)."""

    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    workers: int | None = None
    extensions: tuple[str, ...] = tuple(sorted(DEFAULT_EXTENSIONS))
    ignored_dirs: tuple[str, ...] = tuple(sorted(DEFAULT_IGNORED_DIRS))


@dataclass(frozen=True)
class PatternsCfg:
    """Include/exclude rules applied to candidate files (codescout.yaml: patterns:)."""

    include: tuple[str, ...] = DEFAULT_INCLUDE_PATTERNS
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS


@dataclass(frozen=True)
class CodescoutConfig:
    """Root configuration object, built by load_config() from merged layers.

    Attributes:
        root: Project root to index.
        db_path: Store file; created with its parents on first open.
    """

    root: Path = Path(".")
    db_path: Path = field(default_factory=lambda: default_db_path(Path(".")))
    backend: BackendCfg = field(default_factory=BackendCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    scanner: ScannerCfg = field(default_factory=ScannerCfg)
    patterns: PatternsCfg = field(default_factory=PatternsCfg)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def default_db_path(root: Path) -> Path:
    """One store per project: ``~/.local/share/codescout/<digest>_embeddings.db``."""
    digest = hashlib.sha256(str(root.resolve()).encode()).hexdigest()[:16]
    return _STORE_DIR / f"{digest}_embeddings.db"


def find_project_root(start: Path | None = None) -> Path:
    """Walk upward from *start* to the first directory holding a project marker.

    Returns *start* (default: CWD) when no marker is found.
    """
    origin = (start or Path.cwd()).resolve()
    for candidate in (origin, *origin.parents):
        if any((candidate / marker).exists() for marker in _PROJECT_MARKERS):
            return candidate
    return origin


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")
    return data


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _str_tuple(value: Any, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        return _split_csv(value)
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    raise ConfigError(f"Expected a list of strings, got {type(value).__name__}: {value!r}")


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _cfg_from_dict(data: dict[str, Any], root: Path) -> CodescoutConfig:
    """Build a CodescoutConfig from a merged raw YAML dict."""
    try:
        p = data.get("project") or {}
        project_root = (root / p["root"]).resolve() if p.get("root") else root

        s = data.get("store") or {}
        db_path = Path(s["path"]).expanduser() if s.get("path") else default_db_path(project_root)

        defaults = CodescoutConfig(root=project_root, db_path=db_path)

        b = data.get("backend") or {}
        backend = BackendCfg(
            api_base=b.get("api_base", defaults.backend.api_base),
            timeout=float(b.get("timeout", defaults.backend.timeout)),
            num_retries=int(b.get("num_retries", defaults.backend.num_retries)),
        )

        e = data.get("embedding") or {}
        embedding = EmbeddingCfg(
            model=str(e.get("model", defaults.embedding.model)),
            batch_size=int(e.get("batch_size", defaults.embedding.batch_size)),
            concurrency=int(e.get("concurrency", defaults.embedding.concurrency)),
        )

        g = data.get("generation") or {}
        generation = GenerationCfg(
            model=str(g.get("model", defaults.generation.model)),
            max_tokens=int(g.get("max_tokens", defaults.generation.max_tokens)),
        )

        r = data.get("retrieval") or {}
        retrieval = RetrievalCfg(
            top_k=int(r.get("top_k", defaults.retrieval.top_k)),
            max_files=int(r.get("max_files", defaults.retrieval.max_files)),
        )

        sc = data.get("scanner") or {}
        workers = sc.get("workers", defaults.scanner.workers)
        scanner = ScannerCfg(
            max_file_bytes=int(sc.get("max_file_bytes", defaults.scanner.max_file_bytes)),
            workers=int(workers) if workers is not None else None,
            extensions=_str_tuple(sc.get("extensions"), defaults.scanner.extensions),
            ignored_dirs=_str_tuple(sc.get("ignored_dirs"), defaults.scanner.ignored_dirs),
        )

        pt = data.get("patterns") or {}
        patterns = PatternsCfg(
            include=_str_tuple(pt.get("include"), defaults.patterns.include),
            exclude=_str_tuple(pt.get("exclude"), defaults.patterns.exclude),
        )
    except (TypeError, ValueError, AttributeError) as exc:
        if isinstance(exc, ConfigError):
            raise
        raise ConfigError(f"Invalid configuration value: {exc}") from exc

    return replace(
        defaults,
        backend=backend,
        embedding=embedding,
        generation=generation,
        retrieval=retrieval,
        scanner=scanner,
        patterns=patterns,
    )


def _apply_env_overrides(cfg: CodescoutConfig) -> CodescoutConfig:
    """Apply CODESCOUT_* environment variable overrides."""
    if db_path := os.environ.get("CODESCOUT_DB_PATH"):
        cfg = replace(cfg, db_path=Path(db_path).expanduser())
    if api_base := os.environ.get("CODESCOUT_API_BASE"):
        cfg = replace(cfg, backend=replace(cfg.backend, api_base=api_base))
    if model := os.environ.get("CODESCOUT_EMBEDDING_MODEL"):
        cfg = replace(cfg, embedding=replace(cfg.embedding, model=model))
    if model := os.environ.get("CODESCOUT_GENERATION_MODEL"):
        cfg = replace(cfg, generation=replace(cfg.generation, model=model))
    if include := os.environ.get("CODESCOUT_INCLUDE_PATTERNS"):
        cfg = replace(cfg, patterns=replace(cfg.patterns, include=_split_csv(include)))
    if exclude := os.environ.get("CODESCOUT_EXCLUDE_PATTERNS"):
        cfg = replace(cfg, patterns=replace(cfg.patterns, exclude=_split_csv(exclude)))
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> CodescoutConfig:
    """Load and return a merged, immutable CodescoutConfig.

    Applies layers in order: global → per-project → env vars.

    Args:
        project_dir: Project root; also where *codescout.yaml* is looked up.
            Defaults to CWD. Always resolved, so stored paths do not depend
            on how the root was spelled.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields or a value
            has the wrong type.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    root = (project_dir if project_dir is not None else Path.cwd()).resolve()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = root / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    return _apply_env_overrides(_cfg_from_dict(merged, root))
