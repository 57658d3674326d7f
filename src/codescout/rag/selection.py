"""Candidate file selection: keywords, include/exclude patterns, capping.

Pattern forms (matched against the root-relative POSIX path):
  *.ext      extension match
  dir/**     subtree match, at any depth
  anything   plain substring match
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

STOP_WORDS: frozenset[str] = frozenset(
    """
    the a an and or but in on at to for of with by is are was were be been
    being have has had do does did will would could should may might must can
    shall this that these those i you he she it we they me him her us them my
    your his its our their what which who when where why how all any both each
    few more most other some such no nor not only own same so than too very
    just now here there then once also explain available list show get find
    search query select
    """.split()
)

MIN_KEYWORD_LEN = 3


def extract_keywords(question: str) -> list[str]:
    """Tokenize *question* into lowercase search keywords.

    Whitespace split, non-alphanumeric edges stripped, tokens shorter than
    three characters and stop words dropped. Order kept, duplicates removed.
    """
    keywords: list[str] = []
    for token in question.split():
        word = _strip_edges(token).lower()
        if len(word) < MIN_KEYWORD_LEN or word in STOP_WORDS or word in keywords:
            continue
        keywords.append(word)
    return keywords


def _strip_edges(token: str) -> str:
    start, end = 0, len(token)
    while start < end and not token[start].isalnum():
        start += 1
    while end > start and not token[end - 1].isalnum():
        end -= 1
    return token[start:end]


def is_project_question(question: str) -> bool:
    """Heuristic: does *question* ask about the project as a whole?"""
    lowered = question.lower()
    return "project" in lowered or "what is" in lowered


@dataclass(frozen=True)
class QueryHeuristics:
    """Pluggable fuzzy predicates used by the orchestrator."""

    extract_keywords: Callable[[str], list[str]] = extract_keywords
    is_project_question: Callable[[str], bool] = is_project_question


# ------------------------------------------------------------------
# Include / exclude patterns
# ------------------------------------------------------------------


def matches_pattern(rel_path: str, pattern: str) -> bool:
    """Return True if root-relative *rel_path* matches *pattern*."""
    if "**" in pattern:
        prefix = pattern.split("**", 1)[0].rstrip("/")
        if not prefix:
            return True
        return rel_path == prefix or rel_path.startswith(f"{prefix}/") or f"/{prefix}/" in f"/{rel_path}"
    if pattern.startswith("*."):
        return rel_path.endswith(pattern[1:])
    return pattern in rel_path


@dataclass(frozen=True)
class PatternFilter:
    """Ordered include/exclude rules; exclusion wins over inclusion.

    An empty include list admits everything not excluded.
    """

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()

    def admits(self, rel_path: str) -> bool:
        if any(matches_pattern(rel_path, p) for p in self.exclude):
            return False
        if not self.include:
            return True
        return any(matches_pattern(rel_path, p) for p in self.include)


# ------------------------------------------------------------------
# Candidate selection
# ------------------------------------------------------------------


@dataclass
class FileSelector:
    """Narrow the walker's file list to the candidates worth scanning.

    Steps: pattern filter, optional keyword narrowing (falls back to the
    pattern-filtered set when no path matches), then a cap of ``max_files``
    that keeps the paths matching the most keywords. Full index passes
    call with ``limit=False``.
    """

    root: Path
    patterns: PatternFilter = field(default_factory=PatternFilter)
    max_files: int = 200

    def relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def select(
        self,
        files: Iterable[Path],
        keywords: Sequence[str] = (),
        limit: bool = True,
    ) -> list[Path]:
        candidates = [p for p in files if self.patterns.admits(self.relative(p))]
        lowered = [k.lower() for k in keywords]

        if lowered:
            narrowed = [p for p in candidates if _keyword_hits(self.relative(p), lowered)]
            if narrowed:
                candidates = narrowed

        if limit and len(candidates) > self.max_files:
            # sorted() is stable: equal scores keep walker order.
            candidates = sorted(
                candidates,
                key=lambda p: _keyword_hits(self.relative(p), lowered),
                reverse=True,
            )[: self.max_files]
        return candidates


def _keyword_hits(rel_path: str, keywords: Sequence[str]) -> int:
    lowered = rel_path.lower()
    return sum(1 for k in keywords if k in lowered)
