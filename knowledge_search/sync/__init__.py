"""Embedding synchronization jobs."""

from knowledge_search.sync.models import BatchJobResult, EmbeddingStats, SyncFailure
from knowledge_search.sync.orchestrator import SyncOrchestrator
from knowledge_search.sync.scheduler import ScheduledTrigger, embed_pending_trigger

__all__ = [
    "BatchJobResult",
    "EmbeddingStats",
    "ScheduledTrigger",
    "SyncFailure",
    "SyncOrchestrator",
    "embed_pending_trigger",
]
