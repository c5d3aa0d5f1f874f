"""Tests for search and admin API routes."""

from datetime import date
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from knowledge_search.api.routes import SearchRequest
from knowledge_search.exceptions import (
    LexicalSearchError,
    ProviderError,
    RateLimitError,
    ValidationError,
)
from knowledge_search.search.models import SearchResult, SearchSource
from knowledge_search.sync.models import BatchJobResult, EmbeddingStats, SyncFailure


class TestSearchRequest:
    """Tests for SearchRequest model."""

    def test_filters(self) -> None:
        """Flat request fields become SearchFilters."""
        req = SearchRequest(
            query="budget",
            category="finance",
            date_from=date(2024, 1, 1),
            person_id="P1",
        )

        filters = req.filters()

        assert filters.category == "finance"
        assert filters.date_from == date(2024, 1, 1)
        assert filters.person_id == "P1"
        assert filters.dept_name is None

    def test_defaults(self) -> None:
        """Only the query is required."""
        req = SearchRequest(query="budget")
        assert req.limit is None
        assert req.filters().category is None


class TestSearchEndpoint:
    """Tests for POST /search/work-notes."""

    @pytest.mark.asyncio
    async def test_returns_results(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """Results are returned with count and search type."""
        mock_container.search.search.return_value = [
            SearchResult(document_id="W1", score=0.8, source=SearchSource.HYBRID),
            SearchResult(document_id="W2", score=0.4, source=SearchSource.LEXICAL),
        ]

        response = await client.post(
            "/search/work-notes",
            json={"query": "budget", "category": "finance", "limit": 5},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert data["query"] == "budget"
        assert data["search_type"] == "HYBRID"
        assert data["results"][0] == {"document_id": "W1", "score": 0.8, "source": "HYBRID"}

        query, filters, limit = mock_container.search.search.call_args.args
        assert query == "budget"
        assert filters.category == "finance"
        assert limit == 5

    @pytest.mark.asyncio
    async def test_validation_error_returns_400(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """Domain validation failures map to 400."""
        mock_container.search.search.side_effect = ValidationError(
            "limit must be between 1 and 100"
        )

        response = await client.post("/search/work-notes", json={"query": "q", "limit": 0})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "KBS-1002"

    @pytest.mark.asyncio
    async def test_search_failure_returns_500(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """A failed search leg is a server error, never an empty list."""
        mock_container.search.search.side_effect = LexicalSearchError()

        response = await client.post("/search/work-notes", json={"query": "q"})

        assert response.status_code == 500
        assert response.json()["error"]["message"] == "lexical search failed"

    @pytest.mark.asyncio
    async def test_missing_query_is_rejected(self, client: AsyncClient) -> None:
        """Request body validation rejects a missing query."""
        response = await client.post("/search/work-notes", json={})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_returns_503_without_services(
        self, app: FastAPI, client: AsyncClient
    ) -> None:
        """Search returns 503 before services are built."""
        app.state.container = None

        response = await client.post("/search/work-notes", json={"query": "q"})

        assert response.status_code == 503
        assert "not initialized" in response.json()["error"]["message"]


class TestAdminEndpoints:
    """Tests for /admin routes."""

    @pytest.mark.asyncio
    async def test_embedding_stats(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """Stats are returned as-is."""
        mock_container.orchestrator.get_stats.return_value = EmbeddingStats(
            total=10, embedded=7, pending=3
        )

        response = await client.get("/admin/embedding-stats")

        assert response.status_code == 200
        assert response.json() == {"total": 10, "embedded": 7, "pending": 3}

    @pytest.mark.asyncio
    async def test_embed_pending_passes_batch_size(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """The batch_size query parameter reaches the orchestrator."""
        mock_container.orchestrator.embed_pending.return_value = BatchJobResult(
            processed=3,
            succeeded=2,
            failed=1,
            errors=[SyncFailure(document_id="W3", message="document text is empty")],
        )

        response = await client.post("/admin/embed-pending", params={"batch_size": 3})

        assert response.status_code == 200
        data = response.json()
        assert data["processed"] == 3
        assert data["errors"] == [{"document_id": "W3", "message": "document text is empty"}]
        mock_container.orchestrator.embed_pending.assert_awaited_once_with(3)

    @pytest.mark.asyncio
    async def test_embed_pending_default_batch_size(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """Without batch_size the configured default is used."""
        mock_container.orchestrator.embed_pending.return_value = BatchJobResult()

        await client.post("/admin/embed-pending")

        mock_container.orchestrator.embed_pending.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_invalid_batch_size_returns_400(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """Out-of-range batch sizes map to 400."""
        mock_container.orchestrator.reindex_all.side_effect = ValidationError(
            "batch_size must be between 1 and 100"
        )

        response = await client.post("/admin/reindex-all", params={"batch_size": 0})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_rate_limit_returns_429(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """Provider rate limiting maps to 429."""
        mock_container.orchestrator.embed_pending.side_effect = RateLimitError()

        response = await client.post("/admin/embed-pending")

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "KBS-3002"

    @pytest.mark.asyncio
    async def test_provider_error_returns_502(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """Other provider failures map to 502."""
        mock_container.orchestrator.embed_pending.side_effect = ProviderError(500, "boom")

        response = await client.post("/admin/embed-pending")

        assert response.status_code == 502

    @pytest.mark.asyncio
    async def test_reindex_document(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """An existing document is re-embedded."""
        mock_container.source.get_by_id.return_value = MagicMock()
        mock_container.orchestrator.reembed_only.return_value = True

        response = await client.post("/admin/reindex/W7")

        assert response.status_code == 200
        assert response.json() == {"document_id": "W7", "reembedded": True}
        mock_container.orchestrator.reembed_only.assert_awaited_once_with("W7")

    @pytest.mark.asyncio
    async def test_reindex_missing_document_returns_404(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """Unknown documents return 404 without embedding."""
        mock_container.source.get_by_id.return_value = None

        response = await client.post("/admin/reindex/missing")

        assert response.status_code == 404
        assert response.json()["error"]["details"] == {"resource": "Document", "id": "missing"}
        mock_container.orchestrator.reembed_only.assert_not_called()

    @pytest.mark.asyncio
    async def test_reindex_failure_returns_500(
        self, client: AsyncClient, mock_container: MagicMock
    ) -> None:
        """A failed re-embed is reported as a server error."""
        mock_container.source.get_by_id.return_value = MagicMock()
        mock_container.orchestrator.reembed_only.return_value = False

        response = await client.post("/admin/reindex/W7")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "KBS-6000"
