"""File scanner: parallel read, hash, and chunk of candidate files."""

from __future__ import annotations

import hashlib
import mmap
import os
from collections.abc import Sequence
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from pathlib import Path

from codescout.db.models import ScannedFile
from codescout.ingest.base import BaseChunker
from codescout.ingest.paragraph import ParagraphChunker
from codescout.ingest.walker import DirectoryWalker

DEFAULT_MAX_FILE_BYTES = 2 * 1024 * 1024


class FileScanner:
    """Read, hash and chunk files, one independent task per file.

    Files are fanned out over a process pool sized to the CPU count (or
    ``workers``). Files larger than ``max_file_bytes`` come back as a
    skipped ``ScannedFile`` (empty hash, no chunks). A file that cannot be
    read fails the whole ``scan_paths`` call with its ``OSError``.
    """

    def __init__(
        self,
        walker: DirectoryWalker,
        chunker: BaseChunker | None = None,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        workers: int | None = None,
    ) -> None:
        self.walker = walker
        self.chunker = chunker or ParagraphChunker()
        self.max_file_bytes = max_file_bytes
        self.workers = workers or os.cpu_count() or 1

    def collect_files(self) -> list[Path]:
        return self.walker.collect_files()

    def scan_files(self) -> list[ScannedFile]:
        return self.scan_paths(self.collect_files())

    def scan_paths(self, paths: Sequence[Path | str]) -> list[ScannedFile]:
        """Return one ScannedFile per input path.

        Callers should pair results by ``ScannedFile.path`` rather than rely
        on position.
        """
        scan = partial(
            scan_file, chunker=self.chunker, max_file_bytes=self.max_file_bytes
        )
        names = [str(p) for p in paths]
        workers = min(self.workers, len(names))
        if workers <= 1:
            return [scan(name) for name in names]

        chunksize = max(1, len(names) // (workers * 4))
        with ProcessPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(scan, names, chunksize=chunksize))


def scan_file(path: str, chunker: BaseChunker, max_file_bytes: int) -> ScannedFile:
    """Scan a single file. Module level so it can be sent to worker processes."""
    file_path = Path(path)
    size = file_path.stat().st_size
    if size > max_file_bytes:
        return ScannedFile(path=path, content_hash="")

    with file_path.open("rb") as fh:
        if size == 0:
            return _scanned(path, b"", chunker)
        try:
            view = mmap.mmap(fh.fileno(), 0, access=mmap.ACCESS_READ)
        except ValueError:
            # Not mappable (e.g. special files); read it instead.
            return _scanned(path, fh.read(), chunker)
        with view:
            return _scanned(path, view, chunker)


def _scanned(path: str, data: bytes | mmap.mmap, chunker: BaseChunker) -> ScannedFile:
    content_hash = hashlib.sha256(data).hexdigest()
    # Malformed sequences become U+FFFD instead of aborting the scan.
    text = str(data, "utf-8", errors="replace")
    return ScannedFile(path=path, content_hash=content_hash, chunks=chunker.chunk(text, path))
