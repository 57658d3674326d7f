"""Brute-force cosine similarity search over the stored corpus."""

from __future__ import annotations

import heapq
import math
from collections.abc import Sequence

from codescout.db.models import Embedding


class DimensionMismatchError(ValueError):
    """Query and stored vectors differ in length; the index needs a rebuild."""


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return cos(a, b); 0.0 when either vector has zero norm.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Vector dimension mismatch: {len(a)} != {len(b)}. "
            "The embedding model probably changed; rebuild the index."
        )
    norm_a = math.sqrt(math.fsum(x * x for x in a))
    norm_b = math.sqrt(math.fsum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return math.fsum(x * y for x, y in zip(a, b)) / (norm_a * norm_b)


def rank(
    query_vector: Sequence[float],
    corpus: Sequence[Embedding],
    k: int,
) -> list[tuple[float, Embedding]]:
    """Return the top *k* ``(similarity, embedding)`` pairs, best first.

    Same result as a stable descending sort of the whole corpus truncated to
    *k*: equal scores keep corpus order.
    """
    if k <= 0 or not corpus:
        return []
    scored = [(cosine_similarity(query_vector, e.vector), e) for e in corpus]
    return heapq.nlargest(k, scored, key=lambda pair: pair[0])


def find_relevant_chunks(
    query_vector: Sequence[float],
    corpus: Sequence[Embedding],
    k: int,
) -> list[str]:
    """Return the texts of the *k* embeddings most similar to *query_vector*."""
    return [e.text for _, e in rank(query_vector, corpus, k)]
