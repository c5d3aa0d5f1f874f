"""Prometheus metrics for the search and sync engine.

Provides metrics instrumentation for:
- HTTP request latency and counts
- Embedding provider latency and batch sizes
- Vector index operations
- Lexical / semantic / hybrid search requests
- Sync job outcomes per document
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

from knowledge_search.logging_config import get_logger

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
    ["model", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["model", "status"],
)

EMBEDDING_BATCH_SIZE = Histogram(
    "embedding_batch_size",
    "Embedding batch size",
    ["model"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500],
)

# Vector Index Metrics
VECTORSTORE_OPERATION_DURATION = Histogram(
    "vectorstore_operation_duration_seconds",
    "Vector store operation duration",
    ["operation", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

# Search Metrics
SEARCH_REQUEST_DURATION = Histogram(
    "search_request_duration_seconds",
    "Search request duration in seconds",
    ["source", "status"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

SEARCH_RESULTS_RETURNED = Histogram(
    "search_results_returned",
    "Number of results returned per search",
    ["source"],
    buckets=[0, 1, 2, 5, 10, 20, 50, 100],
)

# Sync Metrics
SYNC_DOCUMENTS_TOTAL = Counter(
    "sync_documents_total",
    "Documents processed by sync jobs",
    ["job", "outcome"],  # "outcome" label values: succeeded, failed
)

SYNC_JOB_DURATION = Histogram(
    "sync_job_duration_seconds",
    "Sync job duration in seconds",
    ["job"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 300.0],
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
        # Document ids must not become label values
        if path.startswith("/admin/reindex/"):
            return "/admin/reindex/{document_id}"
        return path


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST


def track_embedding_request(
    model: str,
    duration: float,
    batch_size: int,
    success: bool = True,
) -> None:
    """Track embedding request metrics.

    Args:
        model: Embedding model name.
        duration: Request duration in seconds.
        batch_size: Number of texts in the batch.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=status).inc()
    EMBEDDING_BATCH_SIZE.labels(model=model).observe(batch_size)


def track_vectorstore_operation(
    operation: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track a vector index call.

    Args:
        operation: One of upsert, delete, query.
        duration: Call duration in seconds.
        success: Whether the call succeeded.
    """
    status = "success" if success else "error"
    VECTORSTORE_OPERATION_DURATION.labels(operation=operation, status=status).observe(
        duration
    )


def track_search_request(
    source: str,
    duration: float,
    results_returned: int,
    success: bool = True,
) -> None:
    """Track search request metrics.

    Args:
        source: lexical, semantic or hybrid.
        duration: Request duration in seconds.
        results_returned: Number of results returned.
        success: Whether the search succeeded.
    """
    status = "success" if success else "error"
    SEARCH_REQUEST_DURATION.labels(source=source, status=status).observe(duration)
    if success:
        SEARCH_RESULTS_RETURNED.labels(source=source).observe(results_returned)


def track_sync_job(
    job: str,
    duration: float,
    succeeded: int,
    failed: int,
) -> None:
    """Track the outcome of one sync job run.

    Args:
        job: embed_pending, reindex_all or reembed.
        duration: Run duration in seconds.
        succeeded: Documents embedded successfully.
        failed: Documents that failed.
    """
    SYNC_JOB_DURATION.labels(job=job).observe(duration)
    if succeeded:
        SYNC_DOCUMENTS_TOTAL.labels(job=job, outcome="succeeded").inc(succeeded)
    if failed:
        SYNC_DOCUMENTS_TOTAL.labels(job=job, outcome="failed").inc(failed)
