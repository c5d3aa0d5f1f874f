"""Full-text search over the SQLite FTS5 index."""

import time
from typing import Any

from knowledge_search.config import SearchSettings, get_settings
from knowledge_search.documents.database import Database
from knowledge_search.exceptions import LexicalSearchError, ValidationError
from knowledge_search.logging_config import get_logger
from knowledge_search.observability.metrics import track_search_request
from knowledge_search.search.filters import filter_conditions
from knowledge_search.search.models import (
    SearchFilters,
    SearchResult,
    SearchSource,
    clamp_score,
)

logger = get_logger(__name__)

# FTS5 rank is negative; -10 or below maps to 0.0 and 0 maps to 1.0.
RANK_SCALE = 10.0


def normalize_rank(raw_rank: float) -> float:
    """Map an FTS5 rank (more negative = more relevant) to a 0-1 score.

    Linear: ``clamp(0, 1, 1 + rank / 10)``.
    """
    return clamp_score(1.0 + raw_rank / RANK_SCALE)


def build_match_expression(query: str) -> str:
    """Quote each term so user punctuation is never parsed as FTS5 syntax."""
    terms = query.split()
    return " ".join('"' + term.replace('"', '""') + '"' for term in terms)


def validate_search_request(
    query: str,
    filters: SearchFilters | None,
    limit: int | None,
    settings: SearchSettings,
) -> tuple[str, int]:
    """Check search input before any I/O.

    Returns:
        The trimmed query and the effective limit.

    Raises:
        ValidationError: If the query is blank, the limit is out of range or
            the date range is inverted.
    """
    cleaned = query.strip()
    if not cleaned:
        raise ValidationError("query must not be blank")

    effective_limit = settings.default_limit if limit is None else limit
    if not 1 <= effective_limit <= settings.max_limit:
        raise ValidationError(
            f"limit must be between 1 and {settings.max_limit}",
            details={"limit": effective_limit},
        )

    if (
        filters is not None
        and filters.date_from is not None
        and filters.date_to is not None
        and filters.date_from > filters.date_to
    ):
        raise ValidationError(
            "date_from must not be after date_to",
            details={
                "date_from": filters.date_from.isoformat(),
                "date_to": filters.date_to.isoformat(),
            },
        )

    return cleaned, effective_limit


class LexicalSearcher:
    """Keyword search with normalized scores and structured filters."""

    def __init__(
        self,
        db: Database,
        settings: SearchSettings | None = None,
    ) -> None:
        self._db = db
        self._settings = settings or get_settings().search

    def build_query(
        self,
        query: str,
        filters: SearchFilters | None,
        limit: int,
    ) -> tuple[str, list[Any]]:
        """Build the SQL statement and its parameters.

        Each set filter adds one AND predicate; unset filters add nothing.
        """
        filter_sql, filter_params = filter_conditions(filters)
        conditions = ["notes_fts MATCH ?", *filter_sql]
        params: list[Any] = [build_match_expression(query), *filter_params]

        sql = f"""
            SELECT wn.work_id, notes_fts.rank AS fts_rank
            FROM notes_fts
            JOIN work_notes wn ON wn.rowid = notes_fts.rowid
            WHERE {" AND ".join(conditions)}
            ORDER BY notes_fts.rank ASC, wn.work_id ASC
            LIMIT ?
        """
        params.append(limit)
        return sql, params

    def validate(
        self,
        query: str,
        filters: SearchFilters | None = None,
        limit: int | None = None,
    ) -> tuple[str, int]:
        return validate_search_request(query, filters, limit, self._settings)

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        limit: int | None = None,
    ) -> list[SearchResult]:
        """Search documents by keyword.

        Args:
            query: Search text; trimmed before matching.
            filters: Optional structured filters.
            limit: Maximum results (default from settings).

        Returns:
            Results ordered by relevance, scores in [0, 1].

        Raises:
            ValidationError: If the input is malformed.
            LexicalSearchError: If the query fails to execute.
        """
        cleaned, effective_limit = self.validate(query, filters, limit)
        sql, params = self.build_query(cleaned, filters, effective_limit)

        start_time = time.perf_counter()
        try:
            rows = await self._db.fetch_all(sql, params)
        except Exception as e:
            track_search_request("lexical", time.perf_counter() - start_time, 0, False)
            logger.error(f"Lexical search failed: {e}")
            raise LexicalSearchError(
                details={"query": cleaned[:100], "error": str(e)},
            ) from e

        results = [
            SearchResult(
                document_id=row["work_id"],
                score=normalize_rank(float(row["fts_rank"])),
                source=SearchSource.LEXICAL,
            )
            for row in rows
        ]

        track_search_request("lexical", time.perf_counter() - start_time, len(results))
        logger.debug(
            f"Lexical search returned {len(results)} results",
            extra={"query_length": len(cleaned), "limit": effective_limit},
        )
        return results
