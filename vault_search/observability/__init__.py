"""Observability module for metrics and monitoring."""

from vault_search.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_batch_retry,
    track_embedding_request,
    track_indexing_run,
    track_search_request,
    track_vectorstore_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "track_batch_retry",
    "track_embedding_request",
    "track_indexing_run",
    "track_search_request",
    "track_vectorstore_operation",
]
