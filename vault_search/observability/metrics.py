"""Prometheus metrics for vault-search.

Provides metrics instrumentation for:
- HTTP request latency and counts
- Embedding request latency and batch sizes
- Vector store operation latency
- Search latency, result counts and top similarity
- Indexing outcomes and retries
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from vault_search.logging_config import get_logger

logger = get_logger(__name__)

# HTTP Request Metrics
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

HTTP_REQUEST_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

# Embedding Metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["provider", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["provider", "status"],
)

EMBEDDING_BATCH_SIZE = Histogram(
    "embedding_batch_size",
    "Texts per embedding call",
    ["provider"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500],
)

# Vector Store Metrics
VECTORSTORE_OPERATION_DURATION = Histogram(
    "vectorstore_operation_duration_seconds",
    "Vector store operation duration",
    ["operation", "status"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

# Search Metrics
SEARCH_DURATION = Histogram(
    "search_duration_seconds",
    "Search duration in seconds",
    ["status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)

SEARCH_TOTAL = Counter(
    "search_requests_total",
    "Total search requests",
    ["status"],
)

SEARCH_RESULTS_RETURNED = Histogram(
    "search_results_returned",
    "Number of results returned per search",
    buckets=[0, 1, 2, 3, 5, 10, 20, 50],
)

SEARCH_TOP_SIMILARITY = Histogram(
    "search_top_similarity",
    "Top similarity per search",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)

# Indexing Metrics
INDEXING_DOCUMENTS_TOTAL = Counter(
    "indexing_documents_total",
    "Documents processed by the indexing pipeline",
    ["outcome"],  # indexed, skipped, deleted, failed
)

INDEXING_BATCH_RETRIES_TOTAL = Counter(
    "indexing_batch_retries_total",
    "Retries of embedding batches after transient errors",
)

INDEXING_RUN_DURATION = Histogram(
    "indexing_run_duration_seconds",
    "Indexing run duration in seconds",
    buckets=[1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1800.0],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP request metrics."""

    def __init__(self, app: ASGIApp) -> None:
        """Initialize the middleware."""
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and collect metrics."""
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time

        # Normalize endpoint for cardinality control
        endpoint = self._normalize_endpoint(request.url.path)

        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).observe(duration)

        HTTP_REQUEST_TOTAL.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality."""
        if path.startswith("/health"):
            return "/health"
        # Document ids are paths; collapse them
        if path.startswith("/api/v1/"):
            parts = path.split("/")
            if len(parts) >= 4:
                return f"/api/v1/{parts[3]}"
        return path


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST


def track_embedding_request(
    provider: str,
    duration: float,
    batch_size: int,
    success: bool = True,
) -> None:
    """Track embedding request metrics.

    Args:
        provider: Provider kind (local, openai, gemini).
        duration: Request duration in seconds.
        batch_size: Number of texts in the call.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(provider=provider, status=status).observe(
        duration
    )
    EMBEDDING_REQUEST_TOTAL.labels(provider=provider, status=status).inc()
    EMBEDDING_BATCH_SIZE.labels(provider=provider).observe(batch_size)


def track_vectorstore_operation(
    operation: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track one vector store call."""
    status = "success" if success else "error"
    VECTORSTORE_OPERATION_DURATION.labels(operation=operation, status=status).observe(
        duration
    )


def track_search_request(
    duration: float,
    results_returned: int,
    top_similarity: float | None,
    status: str = "success",
) -> None:
    """Track search request metrics.

    Args:
        duration: Search duration in seconds.
        results_returned: Number of results returned.
        top_similarity: Highest similarity, None when nothing matched.
        status: success, empty or error.
    """
    SEARCH_DURATION.labels(status=status).observe(duration)
    SEARCH_TOTAL.labels(status=status).inc()
    if status != "error":
        SEARCH_RESULTS_RETURNED.observe(results_returned)
    if top_similarity is not None and top_similarity > 0:
        SEARCH_TOP_SIMILARITY.observe(top_similarity)


def track_indexing_run(
    duration: float,
    indexed: int,
    skipped: int,
    deleted: int,
    failed: int,
) -> None:
    """Record the outcome of one indexing run."""
    INDEXING_RUN_DURATION.observe(duration)
    INDEXING_DOCUMENTS_TOTAL.labels(outcome="indexed").inc(indexed)
    INDEXING_DOCUMENTS_TOTAL.labels(outcome="skipped").inc(skipped)
    INDEXING_DOCUMENTS_TOTAL.labels(outcome="deleted").inc(deleted)
    INDEXING_DOCUMENTS_TOTAL.labels(outcome="failed").inc(failed)


def track_batch_retry() -> None:
    """Count one retried embedding batch attempt."""
    INDEXING_BATCH_RETRIES_TOTAL.inc()
