"""Vector store module."""

from vault_search.vectorstore.factory import create_vector_store
from vault_search.vectorstore.memory import InMemoryVectorStore
from vault_search.vectorstore.models import (
    IndexedRecord,
    IndexInfo,
    SearchFilter,
    SearchResult,
)
from vault_search.vectorstore.qdrant import QdrantVectorStore
from vault_search.vectorstore.service import KeyedLock, VectorStore
from vault_search.vectorstore.similarity import cosine_similarity, rank_results

__all__ = [
    "InMemoryVectorStore",
    "IndexInfo",
    "IndexedRecord",
    "KeyedLock",
    "QdrantVectorStore",
    "SearchFilter",
    "SearchResult",
    "VectorStore",
    "cosine_similarity",
    "create_vector_store",
    "rank_results",
]
