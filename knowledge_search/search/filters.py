"""SQL predicates for search filters, evaluated against the document store."""

from collections.abc import Sequence
from typing import Any

from knowledge_search.documents.database import Database
from knowledge_search.search.models import SearchFilters


def has_filters(filters: SearchFilters | None) -> bool:
    """Whether any filter is set."""
    return filters is not None and any(
        value is not None for value in filters.model_dump().values()
    )


def filter_conditions(filters: SearchFilters | None) -> tuple[list[str], list[Any]]:
    """AND predicates over ``work_notes wn`` for every set filter.

    Person and department match any associated person, using each person's
    current department.
    """
    conditions: list[str] = []
    params: list[Any] = []
    if filters is None:
        return conditions, params

    if filters.category is not None:
        conditions.append("wn.category = ?")
        params.append(filters.category)

    if filters.date_from is not None:
        conditions.append("substr(wn.created_at, 1, 10) >= ?")
        params.append(filters.date_from.isoformat())

    if filters.date_to is not None:
        conditions.append("substr(wn.created_at, 1, 10) <= ?")
        params.append(filters.date_to.isoformat())

    if filters.person_id is not None:
        conditions.append(
            """EXISTS (
                SELECT 1 FROM work_note_person wnp
                WHERE wnp.work_id = wn.work_id AND wnp.person_id = ?
            )"""
        )
        params.append(filters.person_id)

    if filters.dept_name is not None:
        conditions.append(
            """EXISTS (
                SELECT 1 FROM work_note_person wnp2
                JOIN persons p ON p.person_id = wnp2.person_id
                WHERE wnp2.work_id = wn.work_id AND p.current_dept = ?
            )"""
        )
        params.append(filters.dept_name)

    return conditions, params


class StoreFilter:
    """Checks candidate document ids against filters in the document store."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def matching_ids(
        self,
        document_ids: Sequence[str],
        filters: SearchFilters | None,
    ) -> set[str]:
        """Return the subset of ``document_ids`` that satisfies ``filters``.

        Ids missing from the store never match.
        """
        if not document_ids:
            return set()

        conditions, params = filter_conditions(filters)
        placeholders = ", ".join("?" for _ in document_ids)
        conditions.insert(0, f"wn.work_id IN ({placeholders})")

        rows = await self._db.fetch_all(
            f"SELECT wn.work_id FROM work_notes wn WHERE {' AND '.join(conditions)}",
            [*document_ids, *params],
        )
        return {row["work_id"] for row in rows}
