"""Tests for observability module."""

from httpx import AsyncClient

from vault_search.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_batch_retry,
    track_embedding_request,
    track_indexing_run,
    track_search_request,
    track_vectorstore_operation,
)


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    async def test_metrics_endpoint_returns_prometheus_format(
        self,
        client: AsyncClient,
    ) -> None:
        """Metrics endpoint returns Prometheus text format."""
        await client.get("/health/live")
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert b"http_requests_total" in response.content


class TestMetricsFunctions:
    """Tests for metrics tracking functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """get_metrics returns bytes."""
        assert isinstance(get_metrics(), bytes)

    def test_track_embedding_request(self) -> None:
        """Embedding calls record latency and batch size per provider."""
        track_embedding_request(provider="local", duration=0.1, batch_size=10)
        track_embedding_request(
            provider="openai", duration=0.5, batch_size=1, success=False
        )

        metrics = get_metrics().decode()
        assert "embedding_request_duration_seconds" in metrics
        assert 'embedding_requests_total{provider="openai",status="error"}' in metrics
        assert "embedding_batch_size" in metrics

    def test_track_vectorstore_operation(self) -> None:
        """Vector store calls are timed per operation."""
        track_vectorstore_operation("upsert", 0.002)

        metrics = get_metrics().decode()
        assert 'operation="upsert"' in metrics

    def test_track_search_request(self) -> None:
        """Searches record status, result count and top similarity."""
        track_search_request(duration=0.05, results_returned=3, top_similarity=0.8)
        track_search_request(duration=0.01, results_returned=0, top_similarity=None, status="empty")

        metrics = get_metrics().decode()
        assert 'search_requests_total{status="empty"}' in metrics
        assert "search_results_returned" in metrics
        assert "search_top_similarity" in metrics

    def test_track_indexing_run(self) -> None:
        """Indexing outcomes are counted separately."""
        track_indexing_run(duration=2.0, indexed=5, skipped=2, deleted=1, failed=0)
        track_batch_retry()

        metrics = get_metrics().decode()
        assert 'indexing_documents_total{outcome="skipped"}' in metrics
        assert "indexing_batch_retries_total" in metrics
        assert "indexing_run_duration_seconds" in metrics


class TestMetricsMiddleware:
    """Tests for endpoint normalization."""

    def test_normalizes_health_paths(self) -> None:
        """All health endpoints share one label."""
        middleware = MetricsMiddleware(app=lambda scope, receive, send: None)  # type: ignore[arg-type]
        assert middleware._normalize_endpoint("/health/ready") == "/health"

    def test_collapses_document_ids(self) -> None:
        """Document ids do not become label values."""
        middleware = MetricsMiddleware(app=lambda scope, receive, send: None)  # type: ignore[arg-type]
        assert (
            middleware._normalize_endpoint("/api/v1/documents/devops/docker")
            == "/api/v1/documents"
        )
        assert middleware._normalize_endpoint("/api/v1/search") == "/api/v1/search"
