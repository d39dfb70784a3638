"""Cosine similarity and result ordering."""

import math
from collections.abc import Iterable, Sequence

from vault_search.vectorstore.models import SearchResult


def vector_norm(vector: Sequence[float]) -> float:
    return math.sqrt(math.fsum(x * x for x in vector))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    A zero-norm vector has similarity 0 with everything.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(f"vector lengths differ: {len(a)} != {len(b)}")

    norm_a = vector_norm(a)
    norm_b = vector_norm(b)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    dot = math.fsum(x * y for x, y in zip(a, b))
    return max(-1.0, min(1.0, dot / (norm_a * norm_b)))


def rank_results(results: Iterable[SearchResult]) -> list[SearchResult]:
    """Order by descending similarity, ties by ascending id."""
    return sorted(results, key=lambda r: (-r.similarity, r.document.id))
