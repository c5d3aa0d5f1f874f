"""Hybrid search combining keyword and semantic retrieval."""

import asyncio
import time

from knowledge_search.logging_config import get_logger
from knowledge_search.observability.metrics import track_search_request
from knowledge_search.search.lexical import LexicalSearcher
from knowledge_search.search.models import SearchFilters, SearchResult
from knowledge_search.search.ranker import HybridRanker
from knowledge_search.search.semantic import SemanticSearcher

logger = get_logger(__name__)


class HybridSearchService:
    """Runs lexical and semantic search concurrently and fuses the results."""

    def __init__(
        self,
        lexical: LexicalSearcher,
        semantic: SemanticSearcher,
        ranker: HybridRanker | None = None,
    ) -> None:
        self._lexical = lexical
        self._semantic = semantic
        self._ranker = ranker or HybridRanker()

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        limit: int | None = None,
    ) -> list[SearchResult]:
        """Search both indexes and return at most ``limit`` fused results.

        Raises:
            ValidationError: If the input is malformed.
            LexicalSearchError: If the keyword search fails.
            SemanticSearchError: If the semantic search fails.
        """
        cleaned, effective_limit = self._lexical.validate(query, filters, limit)

        start_time = time.perf_counter()
        lexical, semantic = await asyncio.gather(
            self._lexical.search(cleaned, filters, effective_limit),
            self._semantic.search(cleaned, filters, effective_limit),
            return_exceptions=True,
        )
        if isinstance(lexical, BaseException):
            track_search_request("hybrid", time.perf_counter() - start_time, 0, False)
            raise lexical
        if isinstance(semantic, BaseException):
            track_search_request("hybrid", time.perf_counter() - start_time, 0, False)
            raise semantic

        results = self._ranker.fuse(lexical, semantic)[:effective_limit]

        track_search_request("hybrid", time.perf_counter() - start_time, len(results))
        logger.info(
            "Hybrid search completed",
            extra={
                "lexical_count": len(lexical),
                "semantic_count": len(semantic),
                "returned": len(results),
            },
        )
        return results
