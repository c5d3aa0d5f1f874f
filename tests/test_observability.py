"""Tests for observability module."""

from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient

from knowledge_search.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
    track_embedding_request,
    track_search_request,
    track_sync_job,
    track_vectorstore_operation,
)


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    @pytest.mark.asyncio
    async def test_metrics_endpoint_returns_prometheus_format(
        self, client: AsyncClient
    ) -> None:
        """Metrics endpoint returns Prometheus format."""
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert b"# HELP" in response.content


class TestMetricsFunctions:
    """Tests for metrics tracking functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """get_metrics returns bytes."""
        assert isinstance(get_metrics(), bytes)
        assert get_metrics_content_type().startswith("text/plain")

    def test_track_embedding_request(self) -> None:
        """track_embedding_request records request."""
        track_embedding_request(
            model="text-embedding-3-small",
            duration=0.1,
            batch_size=10,
            success=True,
        )

        metrics = get_metrics().decode()
        assert "embedding_request_duration_seconds" in metrics
        assert "embedding_batch_size" in metrics

    def test_track_vectorstore_operation(self) -> None:
        """track_vectorstore_operation records the call."""
        track_vectorstore_operation("upsert", duration=0.02, success=False)

        metrics = get_metrics().decode()
        assert 'operation="upsert"' in metrics
        assert "vectorstore_operation_duration_seconds" in metrics

    def test_track_search_request(self) -> None:
        """track_search_request records latency and result counts."""
        track_search_request("hybrid", duration=0.05, results_returned=7)

        metrics = get_metrics().decode()
        assert "search_request_duration_seconds" in metrics
        assert 'search_results_returned_count{source="hybrid"}' in metrics

    def test_track_sync_job(self) -> None:
        """track_sync_job counts succeeded and failed documents."""
        track_sync_job("embed_pending", duration=1.2, succeeded=8, failed=2)

        metrics = get_metrics().decode()
        assert 'sync_documents_total{job="embed_pending",outcome="succeeded"}' in metrics
        assert 'sync_documents_total{job="embed_pending",outcome="failed"}' in metrics


class TestMetricsMiddleware:
    """Tests for MetricsMiddleware."""

    @pytest.mark.asyncio
    async def test_middleware_records_request_metrics(self, client: AsyncClient) -> None:
        """Middleware records HTTP request metrics."""
        await client.get("/health")

        metrics = get_metrics().decode()
        assert "http_request_duration_seconds" in metrics
        assert "http_requests_total" in metrics

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/health", "/health"),
            ("/health/ready", "/health"),
            ("/admin/reindex/W123", "/admin/reindex/{document_id}"),
            ("/search/work-notes", "/search/work-notes"),
        ],
    )
    def test_normalizes_endpoints(self, path: str, expected: str) -> None:
        """Paths are collapsed to bounded label values."""
        middleware = MetricsMiddleware(MagicMock())

        assert middleware._normalize_endpoint(path) == expected

    @pytest.mark.asyncio
    async def test_document_ids_not_used_as_labels(self, client: AsyncClient) -> None:
        """Per-document admin paths share one label."""
        await client.post("/admin/reindex/W-unique-label-check")

        metrics = get_metrics().decode()
        assert "W-unique-label-check" not in metrics
        assert 'endpoint="/admin/reindex/{document_id}"' in metrics
