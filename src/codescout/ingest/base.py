"""Base chunker interface with the fixed-window fallback."""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod

from codescout.db.models import Chunk


class BaseChunker(ABC):
    """Abstract base for chunkers.

    Subclasses implement ``chunk()`` and may use ``_split_fixed_window()``
    for the sliding-window fallback. Sizes are in characters of decoded text,
    so window edges always fall on code point boundaries.
    """

    def __init__(self, window_chars: int = 1000, overlap_chars: int = 200) -> None:
        if window_chars < 1:
            raise ValueError("window_chars must be >= 1")
        if not 0 <= overlap_chars < window_chars:
            raise ValueError("overlap_chars must be in [0, window_chars)")
        self.window_chars = window_chars
        self.overlap_chars = overlap_chars

    @abstractmethod
    def chunk(self, text: str, path: str) -> list[Chunk]:
        """Split *text* (the decoded content of *path*) into Chunks.

        No two returned chunks have identical text.
        """

    @staticmethod
    def content_hash(text: str) -> str:
        return hashlib.md5(text.encode("utf-8")).hexdigest()

    def _split_fixed_window(self, text: str, path: str) -> list[Chunk]:
        """Slide a window of ``window_chars`` over *text*, stepping back
        ``overlap_chars`` between windows. Duplicate and blank windows are
        dropped.
        """
        chunks: list[Chunk] = []
        seen: set[str] = set()
        length = len(text)
        start = 0

        while start < length:
            end = min(start + self.window_chars, length)
            segment = text[start:end]
            if segment.strip():
                digest = self.content_hash(segment)
                if digest not in seen:
                    seen.add(digest)
                    chunks.append(Chunk(path=path, text=segment, start_offset=start))
            if end >= length:
                break
            start = end - self.overlap_chars

        return chunks
