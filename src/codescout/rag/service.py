"""Index orchestrator: incremental indexing and retrieval-augmented answers.

Indexing pass:
  1. Select candidate files (patterns, optional keyword narrowing, cap).
  2. Refresh the directory-overview pseudo-file if its hash changed.
  3. Scan candidates in parallel, then diff each file's hash against the
     store: unchanged files are skipped, changed files lose their old
     embeddings and hash together and queue every new chunk.
  4. Embed the queue and commit embeddings together with the new hashes.

A changed file's new hash is only written with its embeddings, so a pass
that fails while embedding leaves those files with no hash at all and the
next pass re-embeds them, whatever their content is by then.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

from codescout.config import CodescoutConfig
from codescout.db.models import EmbeddingInput, ScannedFile
from codescout.db.store import EmbeddingStore
from codescout.ingest.embedder import EmbedFn, EmbeddingPipeline
from codescout.ingest.scanner import FileScanner
from codescout.ingest.walker import DirectoryWalker
from codescout.rag import llm_client
from codescout.rag.search import find_relevant_chunks
from codescout.rag.selection import FileSelector, PatternFilter, QueryHeuristics

OVERVIEW_PATH = "__dir_overview__"
NO_CONTEXT_MESSAGE = "No relevant code context found for this query."

_INDEX_OVERVIEW_LIMITS = (4, 400)    # (max_depth, max_entries)
_QUERY_OVERVIEW_LIMITS = (8, 2000)

_PROMPT = """\
You are an expert software engineer. Answer the question below using only the \
provided code context and directory structure.

Question: {question}{feedback}

Context:
{context}

Be accurate and base your answer only on the provided context. When the \
context contains a DIRECTORY TREE section, copy the structure from it exactly \
instead of inventing or modifying it."""

CompleteFn = Callable[[str], str]
ProgressFn = Callable[[str, str], None]


@dataclass
class IndexReport:
    """Outcome of one indexing pass.

    Attributes:
        scanned: Files scanned (including skipped ones).
        unchanged: Files whose hash matched the store; nothing was written.
        reindexed: Paths whose embeddings were replaced.
        skipped: Paths over the size cap; not indexed.
        removed: Paths dropped from the store (pruned or now oversized).
        chunks_embedded: Embedding calls made, overview included.
        overview_refreshed: Whether the directory overview was re-embedded.
    """

    scanned: int = 0
    unchanged: int = 0
    reindexed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    chunks_embedded: int = 0
    overview_refreshed: bool = False


class RagService:
    """Coordinate walker, scanner, pipeline, store and search.

    Args:
        config: Immutable project configuration.
        store: Open embedding store; the service never closes it.
        embed_fn: Embedding capability (defaults to the configured LiteLLM model).
        complete_fn: Completion capability (defaults to the configured LiteLLM model).
        heuristics: Keyword extraction and project-question detection.
        on_progress: Optional ``(stage, detail)`` callback.
    """

    def __init__(
        self,
        config: CodescoutConfig,
        store: EmbeddingStore,
        *,
        embed_fn: EmbedFn | None = None,
        complete_fn: CompleteFn | None = None,
        heuristics: QueryHeuristics | None = None,
        on_progress: ProgressFn | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.heuristics = heuristics or QueryHeuristics()
        self._on_progress = on_progress

        backend = config.backend
        self._embed = embed_fn or partial(
            llm_client.embed,
            config.embedding.model,
            api_base=backend.api_base,
            timeout=backend.timeout,
            num_retries=backend.num_retries,
        )
        self._complete = complete_fn or partial(
            llm_client.complete,
            config.generation.model,
            api_base=backend.api_base,
            max_tokens=config.generation.max_tokens,
            timeout=backend.timeout,
            num_retries=backend.num_retries,
        )

        self.walker = DirectoryWalker(
            config.root,
            ignored_dirs=config.scanner.ignored_dirs,
            extensions=config.scanner.extensions,
        )
        self.scanner = FileScanner(
            self.walker,
            max_file_bytes=config.scanner.max_file_bytes,
            workers=config.scanner.workers,
        )
        self.selector = FileSelector(
            root=config.root,
            patterns=PatternFilter(
                include=config.patterns.include, exclude=config.patterns.exclude
            ),
            max_files=config.retrieval.max_files,
        )
        self.pipeline = EmbeddingPipeline(
            self._embed,
            batch_size=config.embedding.batch_size,
            concurrency=config.embedding.concurrency,
            on_batch=lambda done, total: self._progress("embed", f"{done}/{total}"),
        )

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    def build_index(self) -> IndexReport:
        """Index every eligible file and prune paths no longer on disk."""
        files = self.selector.select(self.walker.collect_files(), limit=False)
        return self._index_files(files, prune=True)

    def build_index_for_keywords(self, keywords: Sequence[str]) -> IndexReport:
        """Index only files whose paths look relevant to *keywords* (no pruning)."""
        files = self.selector.select(self.walker.collect_files(), keywords)
        return self._index_files(files, prune=False)

    def build_index_for_query(self, question: str) -> IndexReport:
        return self.build_index_for_keywords(self.heuristics.extract_keywords(question))

    def _index_files(self, files: Sequence[Path], prune: bool) -> IndexReport:
        report = IndexReport()
        inputs: list[EmbeddingInput] = []
        hashes: dict[str, str] = {}

        self._refresh_overview(inputs, hashes, report)

        self._progress("scan", f"{len(files)} files")
        scans = self.scanner.scan_paths(files)
        for scan in scans:
            report.scanned += 1
            self._diff_file(scan, inputs, hashes, report)

        if inputs or hashes:
            self._progress("embed", f"0/{len(inputs)}")
            embeddings = self.pipeline.generate_embeddings(inputs) if inputs else []
            self._progress("store", f"{len(embeddings)} embeddings")
            self.store.insert_embeddings(embeddings, file_hashes=hashes)
            report.chunks_embedded = len(embeddings)

        if prune:
            self._prune({scan.path for scan in scans}, report)

        self._progress("done", f"{report.chunks_embedded} chunks embedded")
        return report

    def _refresh_overview(
        self,
        inputs: list[EmbeddingInput],
        hashes: dict[str, str],
        report: IndexReport,
    ) -> None:
        overview = self.walker.directory_overview(*_INDEX_OVERVIEW_LIMITS)
        if not overview:
            return
        digest = hashlib.sha256(overview.encode("utf-8")).hexdigest()
        if self.store.get_file_hash(OVERVIEW_PATH) == digest:
            return
        self.store.remove_path(OVERVIEW_PATH)
        inputs.append(
            EmbeddingInput(
                id=f"{OVERVIEW_PATH}:{digest}",
                path=OVERVIEW_PATH,
                text=f"DIRECTORY TREE:\n{overview}",
            )
        )
        hashes[OVERVIEW_PATH] = digest
        report.overview_refreshed = True

    def _diff_file(
        self,
        scan: ScannedFile,
        inputs: list[EmbeddingInput],
        hashes: dict[str, str],
        report: IndexReport,
    ) -> None:
        previous = self.store.get_file_hash(scan.path)

        if scan.skipped:
            report.skipped.append(scan.path)
            if previous is not None:
                self.store.remove_path(scan.path)
                report.removed.append(scan.path)
            return

        if previous == scan.content_hash:
            report.unchanged += 1
            return

        self._progress("diff", scan.path)
        if previous is not None:
            self.store.remove_path(scan.path)
        for chunk in scan.chunks:
            inputs.append(
                EmbeddingInput(
                    id=f"{chunk.path}:{chunk.start_offset}",
                    path=chunk.path,
                    text=f"FILE: {chunk.path}\nOFFSET: {chunk.start_offset}\n{chunk.text}",
                )
            )
        hashes[scan.path] = scan.content_hash
        report.reindexed.append(scan.path)

    def _prune(self, present: set[str], report: IndexReport) -> None:
        for path in self.store.list_file_paths():
            if path == OVERVIEW_PATH or path in present:
                continue
            self.store.remove_path(path)
            report.removed.append(path)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def retrieve_context(self, question: str) -> list[str]:
        """Return context blocks for *question*, most important first."""
        corpus = self.store.get_all_embeddings()
        blocks: list[str] = []
        if corpus:
            query_vector = self._embed(question)
            blocks = find_relevant_chunks(query_vector, corpus, self.config.retrieval.top_k)

        if self.heuristics.is_project_question(question):
            readme = self.config.root / "README.md"
            if readme.is_file():
                blocks.insert(0, f"FILE: README.md\n{readme.read_text(encoding='utf-8', errors='replace')}")
            overview = self.walker.directory_overview(*_QUERY_OVERVIEW_LIMITS)
            if overview:
                blocks.insert(0, f"DIRECTORY TREE:\n{overview}")
        return blocks

    def query(self, question: str, feedback: str = "") -> str:
        """Answer *question* from the index; the backend reply is returned verbatim.

        Returns ``NO_CONTEXT_MESSAGE`` without calling the completion backend
        when there is no context to send.
        """
        context = "\n\n".join(self.retrieve_context(question))
        if not context:
            return NO_CONTEXT_MESSAGE
        feedback_part = f"\n\nUser feedback for improvement: {feedback}" if feedback else ""
        prompt = _PROMPT.format(question=question, feedback=feedback_part, context=context)
        return self._complete(prompt)

    def _progress(self, stage: str, detail: str) -> None:
        if self._on_progress:
            self._on_progress(stage, detail)
