"""Indexing module."""

from vault_search.indexing.models import BatchFailure, IndexReport
from vault_search.indexing.pipeline import IndexingPipeline
from vault_search.indexing.retry import RetryPolicy, retry_async

__all__ = [
    "BatchFailure",
    "IndexReport",
    "IndexingPipeline",
    "RetryPolicy",
    "retry_async",
]
