"""codescout ingest pipeline — walker, chunkers, scanner, embedding pipeline."""

from codescout.ingest.base import BaseChunker
from codescout.ingest.embedder import EmbeddingPipeline
from codescout.ingest.paragraph import ParagraphChunker
from codescout.ingest.scanner import FileScanner
from codescout.ingest.walker import DirectoryWalker

__all__ = [
    "BaseChunker",
    "DirectoryWalker",
    "EmbeddingPipeline",
    "FileScanner",
    "ParagraphChunker",
]
