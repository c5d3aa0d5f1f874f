"""API routes for search and embedding administration."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from knowledge_search.api.dependencies import (
    get_container,
    get_orchestrator,
    get_search_service,
)
from knowledge_search.container import ServiceContainer
from knowledge_search.exceptions import NotFoundError, SyncError
from knowledge_search.logging_config import get_logger
from knowledge_search.search.hybrid import HybridSearchService
from knowledge_search.search.models import SearchFilters, SearchResult
from knowledge_search.sync.models import BatchJobResult, EmbeddingStats
from knowledge_search.sync.orchestrator import SyncOrchestrator

logger = get_logger(__name__)


admin_router = APIRouter(prefix="/admin", tags=["Admin"])
search_router = APIRouter(prefix="/search", tags=["Search"])

Orchestrator = Annotated[SyncOrchestrator, Depends(get_orchestrator)]
BatchSize = Annotated[
    int | None,
    Query(description="Documents per batch (default from settings)"),
]


class SearchRequest(BaseModel):
    """Request body for work note search."""

    query: str = Field(description="Search text")
    category: str | None = Field(default=None, description="Exact category")
    date_from: date | None = Field(default=None, description="Created on or after")
    date_to: date | None = Field(default=None, description="Created on or before")
    person_id: str | None = Field(default=None, description="Associated person")
    dept_name: str | None = Field(default=None, description="Department name")
    limit: int | None = Field(default=None, description="Maximum results")

    def filters(self) -> SearchFilters:
        return SearchFilters(
            category=self.category,
            date_from=self.date_from,
            date_to=self.date_to,
            person_id=self.person_id,
            dept_name=self.dept_name,
        )


class SearchResponse(BaseModel):
    """Fused search results."""

    results: list[SearchResult] = Field(description="Ranked results")
    count: int = Field(description="Number of results")
    query: str = Field(description="Query as submitted")
    search_type: str = Field(default="HYBRID", description="Search method")


class ReembedResponse(BaseModel):
    """Result of a single-document re-embed."""

    document_id: str
    reembedded: bool


@admin_router.get("/embedding-stats", response_model=EmbeddingStats)
async def embedding_stats(orchestrator: Orchestrator) -> EmbeddingStats:
    """Current embedding coverage."""
    return await orchestrator.get_stats()


@admin_router.post("/embed-pending", response_model=BatchJobResult)
async def embed_pending(
    orchestrator: Orchestrator,
    batch_size: BatchSize = None,
) -> BatchJobResult:
    """Embed one batch of pending documents."""
    return await orchestrator.embed_pending(batch_size)


@admin_router.post("/reindex-all", response_model=BatchJobResult)
async def reindex_all(
    orchestrator: Orchestrator,
    batch_size: BatchSize = None,
) -> BatchJobResult:
    """Reset every document to pending and embed them all."""
    logger.warning("Full reindex requested")
    return await orchestrator.reindex_all(batch_size)


@admin_router.post("/reindex/{document_id}", response_model=ReembedResponse)
async def reindex_document(
    document_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ReembedResponse:
    """Re-embed one document.

    Returns 404 if the document does not exist.
    """
    if await container.source.get_by_id(document_id) is None:
        raise NotFoundError("Document", document_id)

    if not await container.orchestrator.reembed_only(document_id):
        raise SyncError(
            f"Failed to re-embed document {document_id}",
            details={"document_id": document_id},
        )
    return ReembedResponse(document_id=document_id, reembedded=True)


@search_router.post("/work-notes", response_model=SearchResponse)
async def search_work_notes(
    request: SearchRequest,
    service: Annotated[HybridSearchService, Depends(get_search_service)],
) -> SearchResponse:
    """Hybrid keyword and semantic search over work notes."""
    results = await service.search(request.query, request.filters(), request.limit)
    return SearchResponse(results=results, count=len(results), query=request.query)

