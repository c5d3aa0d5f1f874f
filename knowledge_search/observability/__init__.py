"""Observability module for metrics and monitoring."""

from knowledge_search.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_embedding_request,
    track_search_request,
    track_sync_job,
    track_vectorstore_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "track_embedding_request",
    "track_search_request",
    "track_sync_job",
    "track_vectorstore_operation",
]
