"""Paragraph chunker: blank-line aligned chunks with per-file dedup."""

from __future__ import annotations

from codescout.db.models import Chunk
from codescout.ingest.base import BaseChunker

PARAGRAPH_SEP = "\n\n"


class ParagraphChunker(BaseChunker):
    """Accumulate blank-line separated paragraphs into chunks.

    Strategy:
    - Split on ``\\n\\n`` and append paragraphs to a running buffer.
    - Flush before appending a paragraph that would push the buffer past
      ``max_chars``, and flush after appending once the buffer reaches
      ``min_chars``. Flushes always land on a paragraph boundary.
    - Drop a chunk whose content hash was already emitted for this file.
    - If nothing was produced, fall back to ``_split_fixed_window()``.

    ``start_offset`` is the exact character offset of the chunk's first
    paragraph in *text*; the chunk text equals the source slice at that offset.
    """

    def __init__(
        self,
        min_chars: int = 500,
        max_chars: int = 2000,
        window_chars: int = 1000,
        overlap_chars: int = 200,
    ) -> None:
        super().__init__(window_chars=window_chars, overlap_chars=overlap_chars)
        if not 0 < min_chars <= max_chars:
            raise ValueError("require 0 < min_chars <= max_chars")
        self.min_chars = min_chars
        self.max_chars = max_chars

    def chunk(self, text: str, path: str) -> list[Chunk]:
        chunks: list[Chunk] = []
        seen: set[str] = set()
        buffer = ""
        buffer_start = 0
        pos = 0

        def flush() -> None:
            if not buffer.strip():
                return
            digest = self.content_hash(buffer)
            if digest in seen:
                return
            seen.add(digest)
            chunks.append(Chunk(path=path, text=buffer, start_offset=buffer_start))

        for paragraph in text.split(PARAGRAPH_SEP):
            paragraph_start = pos
            pos += len(paragraph) + len(PARAGRAPH_SEP)

            if buffer and len(buffer) + len(paragraph) > self.max_chars:
                flush()
                buffer = ""

            if buffer:
                buffer += PARAGRAPH_SEP + paragraph
            else:
                buffer = paragraph
                buffer_start = paragraph_start

            if len(buffer) >= self.min_chars:
                flush()
                buffer = ""

        if buffer:
            flush()

        if not chunks:
            return self._split_fixed_window(text, path)
        return chunks
