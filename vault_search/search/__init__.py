"""Search module."""

from vault_search.search.engine import QueryEngine
from vault_search.search.keyword import KeywordIndex, query_terms, tokenize

__all__ = [
    "KeywordIndex",
    "QueryEngine",
    "query_terms",
    "tokenize",
]
