"""Tests for BaseChunker and ParagraphChunker."""

from __future__ import annotations

import pytest

from codescout.db.models import Chunk
from codescout.ingest.base import BaseChunker
from codescout.ingest.paragraph import ParagraphChunker


class _WindowChunker(BaseChunker):
    def chunk(self, text: str, path: str) -> list[Chunk]:
        return self._split_fixed_window(text, path)


def _assert_offsets_exact(text: str, chunks: list[Chunk]) -> None:
    for c in chunks:
        assert text[c.start_offset : c.start_offset + len(c.text)] == c.text


# ------------------------------------------------------------------
# BaseChunker
# ------------------------------------------------------------------


def test_base_is_abstract():
    with pytest.raises(TypeError):
        BaseChunker()  # type: ignore[abstract]


@pytest.mark.parametrize("window,overlap", [(0, 0), (10, 10), (10, -1)])
def test_invalid_window_settings(window, overlap):
    with pytest.raises(ValueError):
        _WindowChunker(window_chars=window, overlap_chars=overlap)


def test_content_hash_is_md5_hex():
    assert BaseChunker.content_hash("") == "d41d8cd98f00b204e9800998ecf8427e"


def test_fixed_window_steps_with_overlap():
    text = "abcdefghij" * 3  # 30 chars
    chunks = _WindowChunker(window_chars=10, overlap_chars=2).chunk(text, "f.txt")
    assert [c.start_offset for c in chunks] == [0, 8, 16, 24]
    assert chunks[-1].text == text[24:]
    _assert_offsets_exact(text, chunks)


def test_fixed_window_drops_duplicate_and_blank_windows():
    text = "aaaa" + " " * 4 + "aaaa"
    chunks = _WindowChunker(window_chars=4, overlap_chars=0).chunk(text, "f.txt")
    assert [c.text for c in chunks] == ["aaaa"]


def test_fixed_window_empty_text():
    assert _WindowChunker().chunk("", "f.txt") == []


# ------------------------------------------------------------------
# ParagraphChunker
# ------------------------------------------------------------------


def test_invalid_min_max():
    with pytest.raises(ValueError):
        ParagraphChunker(min_chars=10, max_chars=5)
    with pytest.raises(ValueError):
        ParagraphChunker(min_chars=0)


def test_short_text_single_chunk():
    chunks = ParagraphChunker().chunk("hello", "a.md")
    assert chunks == [Chunk(path="a.md", text="hello", start_offset=0)]


def test_flushes_after_reaching_min():
    paras = ["a" * 6, "b" * 6, "c" * 6]
    text = "\n\n".join(paras)
    chunks = ParagraphChunker(min_chars=5, max_chars=100).chunk(text, "f")
    assert [c.text for c in chunks] == paras
    assert [c.start_offset for c in chunks] == [0, 8, 16]


def test_accumulates_until_min():
    text = "aa\n\nbb\n\ncc\n\ndd"
    chunks = ParagraphChunker(min_chars=6, max_chars=100).chunk(text, "f")
    assert [c.text for c in chunks] == ["aa\n\nbb", "cc\n\ndd"]
    _assert_offsets_exact(text, chunks)


def test_flushes_before_exceeding_max():
    text = "a" * 8 + "\n\n" + "b" * 8
    chunks = ParagraphChunker(min_chars=12, max_chars=12).chunk(text, "f")
    assert [c.text for c in chunks] == ["a" * 8, "b" * 8]
    assert chunks[1].start_offset == 10


def test_duplicate_paragraphs_deduped():
    text = "same\n\nsame\n\nother"
    chunks = ParagraphChunker(min_chars=3, max_chars=100).chunk(text, "f")
    assert [c.text for c in chunks] == ["same", "other"]
    assert chunks[1].start_offset == text.index("other")


def test_blank_paragraphs_skipped():
    text = "\n\n\n\nreal\n\n   \n\n"
    chunks = ParagraphChunker(min_chars=1, max_chars=100).chunk(text, "f")
    assert [c.text for c in chunks] == ["real"]
    _assert_offsets_exact(text, chunks)


def test_whitespace_only_falls_back_to_empty_window():
    assert ParagraphChunker().chunk("   \n\n  \n", "f") == []


def test_empty_text_yields_no_chunks():
    assert ParagraphChunker().chunk("", "f") == []


def test_oversized_single_paragraph_kept_whole():
    text = "x" * 50
    chunks = ParagraphChunker(min_chars=5, max_chars=10).chunk(text, "f")
    assert [c.text for c in chunks] == [text]


def test_chunking_is_deterministic():
    text = "\n\n".join(f"paragraph {i} " * 20 for i in range(30))
    chunker = ParagraphChunker()
    first = chunker.chunk(text, "f")
    assert first == chunker.chunk(text, "f")
    assert len({c.text for c in first}) == len(first)
    _assert_offsets_exact(text, first)


def test_chunks_carry_path():
    chunks = ParagraphChunker().chunk("content", "src/main.py")
    assert all(c.path == "src/main.py" for c in chunks)
