"""Semantic search using embeddings and the vector index."""

import time

from knowledge_search.embeddings.service import EmbeddingClient
from knowledge_search.exceptions import SemanticSearchError, ValidationError
from knowledge_search.logging_config import get_logger
from knowledge_search.observability.metrics import track_search_request
from knowledge_search.search.filters import StoreFilter, has_filters
from knowledge_search.search.models import (
    SearchFilters,
    SearchResult,
    SearchSource,
    clamp_score,
)
from knowledge_search.vectorstore.service import VectorIndex

logger = get_logger(__name__)

# Filtered matches are re-checked in the store, so fetch extra candidates.
FILTER_OVERFETCH = 3


class SemanticSearcher:
    """Embeds the query and finds similar document vectors.

    The category is pushed down to the index as a pre-filter on encoded
    metadata. Every filter is then checked against the document store, which
    is the source of truth for category, dates, persons and departments.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        vector_index: VectorIndex,
        store_filter: StoreFilter,
        max_top_k: int = 100,
    ) -> None:
        self._embedding_client = embedding_client
        self._vector_index = vector_index
        self._store_filter = store_filter
        self._max_top_k = max_top_k

    def _index_filter(self, filters: SearchFilters | None) -> dict[str, str] | None:
        if filters is None or filters.category is None:
            return None
        return {"category": self._vector_index.encode_filter_value(filters.category)}

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        limit: int = 10,
    ) -> list[SearchResult]:
        """Search documents by meaning.

        Raises:
            ValidationError: If the index rejects the parameters.
            SemanticSearchError: If embedding, the index query or the store
                filter check fails.
        """
        if not query.strip():
            return []

        filtered = has_filters(filters)
        top_k = min(limit * FILTER_OVERFETCH if filtered else limit, self._max_top_k)

        start_time = time.perf_counter()
        try:
            vector = await self._embedding_client.embed(query)
            matches = await self._vector_index.query(
                vector,
                top_k=top_k,
                filter=self._index_filter(filters),
                return_metadata=True,
            )
            if filtered:
                allowed = await self._store_filter.matching_ids(
                    [match.id for match in matches], filters
                )
                matches = [match for match in matches if match.id in allowed]
        except ValidationError:
            raise
        except Exception as e:
            track_search_request("semantic", time.perf_counter() - start_time, 0, False)
            logger.error(f"Semantic search failed: {e}")
            raise SemanticSearchError(
                details={"query": query[:100], "error": str(e)},
            ) from e

        results = [
            SearchResult(
                document_id=match.id,
                score=clamp_score(match.score),
                source=SearchSource.SEMANTIC,
            )
            for match in matches
        ][:limit]

        track_search_request("semantic", time.perf_counter() - start_time, len(results))
        return results
