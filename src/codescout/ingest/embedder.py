"""Embedding pipeline: batched, bounded-concurrency calls to the embed backend."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from codescout.db.models import Embedding, EmbeddingInput

EmbedFn = Callable[[str], Sequence[float]]


class EmbeddingPipeline:
    """Turn EmbeddingInputs into Embeddings through *embed_fn*.

    Inputs are cut into batches of ``batch_size``. Within a batch at most
    ``concurrency`` calls are in flight; the next batch starts only after
    every call of the current one has finished. The first failed call
    cancels the not-yet-started calls of its batch and is re-raised; there
    is no partial result.

    Args:
        embed_fn: The embedding capability, ``text -> vector``.
        batch_size: Inputs per batch.
        concurrency: Maximum simultaneous calls within a batch.
        on_batch: Optional ``(done, total)`` progress callback, called after
            each completed batch.
    """

    def __init__(
        self,
        embed_fn: EmbedFn,
        batch_size: int = 32,
        concurrency: int = 8,
        on_batch: Callable[[int, int], None] | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._embed_fn = embed_fn
        self.batch_size = batch_size
        self.concurrency = concurrency
        self._on_batch = on_batch

    def generate_embeddings(self, inputs: Sequence[EmbeddingInput]) -> list[Embedding]:
        """Embed every input, preserving id/path/text and input order."""
        embeddings: list[Embedding] = []
        total = len(inputs)
        for start in range(0, total, self.batch_size):
            batch = inputs[start : start + self.batch_size]
            embeddings.extend(self._embed_batch(batch))
            if self._on_batch:
                self._on_batch(len(embeddings), total)
        return embeddings

    def _embed_batch(self, batch: Sequence[EmbeddingInput]) -> list[Embedding]:
        with ThreadPoolExecutor(max_workers=min(self.concurrency, len(batch))) as pool:
            futures = [pool.submit(self._embed_one, item) for item in batch]
            try:
                return [f.result() for f in futures]
            except BaseException:
                for f in futures:
                    f.cancel()
                raise

    def _embed_one(self, item: EmbeddingInput) -> Embedding:
        vector = self._embed_fn(item.text)
        return Embedding(id=item.id, vector=list(vector), text=item.text, path=item.path)
