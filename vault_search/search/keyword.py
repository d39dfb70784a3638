"""BM25 keyword scoring for hybrid search."""

import re
from collections.abc import Sequence

from rank_bm25 import BM25Okapi

from vault_search.documents.models import Document

_TERM = re.compile(r"[a-z0-9_]{2,}")

STOP_WORDS = frozenset(
    {
        "an", "and", "are", "as", "at", "be", "by", "do", "for", "from", "how",
        "in", "is", "it", "of", "on", "or", "that", "the", "this", "to", "was",
        "what", "when", "where", "which", "who", "why", "with",
    }
)  # fmt: skip


def tokenize(text: str) -> list[str]:
    """Lowercase terms of ``text`` without stop words, repeats kept."""
    return [t for t in _TERM.findall(text.lower()) if t not in STOP_WORDS]


def query_terms(query: str) -> list[str]:
    """Distinct lowercase terms of a query, stop words removed, in order."""
    return list(dict.fromkeys(tokenize(query)))


class KeywordIndex:
    """BM25 over a set of documents, rebuilt per query.

    Titles are tokenized twice so a title hit outweighs the same term in the
    body. Terms present in half the documents or more get no IDF weight.
    """

    def __init__(self, documents: Sequence[Document]) -> None:
        self._ids = [d.id for d in documents]
        corpus = [tokenize(d.title) * 2 + tokenize(d.body) for d in documents]
        self._bm25 = BM25Okapi(corpus) if any(corpus) else None

    def scores(self, terms: Sequence[str]) -> dict[str, float]:
        """Positive BM25 scores by document id, scaled so the best is 1.0."""
        if self._bm25 is None or not terms:
            return {}
        raw = [float(s) for s in self._bm25.get_scores(list(terms))]
        best = max(raw, default=0.0)
        if best <= 0:
            return {}
        return {
            doc_id: score / best
            for doc_id, score in zip(self._ids, raw)
            if score > 0
        }
