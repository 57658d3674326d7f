"""Domain models for the codescout index."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Chunk:
    path: str
    text: str
    start_offset: int  # character offset into the decoded file text; provenance only


@dataclass
class ScannedFile:
    """Result of scanning one file.

    An empty ``content_hash`` with no chunks means the file was skipped on
    purpose (over the size cap), not that it failed to read.
    """

    path: str
    content_hash: str
    chunks: list[Chunk] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return not self.content_hash


@dataclass(frozen=True)
class EmbeddingInput:
    id: str
    path: str
    text: str


@dataclass
class Embedding:
    id: str
    vector: list[float]
    text: str
    path: str = ""


@dataclass(frozen=True)
class FileMeta:
    path: str
    hash: str
