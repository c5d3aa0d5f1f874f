"""SQLite implementation of the document source port."""

from collections.abc import Sequence
from datetime import datetime

import aiosqlite

from knowledge_search.documents.database import Database
from knowledge_search.documents.models import Document
from knowledge_search.documents.source import DocumentSource
from knowledge_search.logging_config import get_logger

logger = get_logger(__name__)

_DOCUMENT_COLUMNS = """
    work_id, title, content_raw, category, created_at, embedded_at
"""


class SQLiteDocumentStore(DocumentSource):
    """Reads work notes and records their embedding state.

    ``embedded_at`` is the single source of truth for pending vs. embedded;
    nothing is cached between calls.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def list_pending(self, limit: int) -> list[Document]:
        rows = await self._db.fetch_all(
            f"""
            SELECT {_DOCUMENT_COLUMNS}
            FROM work_notes
            WHERE embedded_at IS NULL
            ORDER BY created_at ASC, work_id ASC
            LIMIT ?
            """,
            [limit],
        )
        return await self._hydrate(rows)

    async def count_all(self) -> int:
        return int(await self._db.fetch_value("SELECT COUNT(*) FROM work_notes") or 0)

    async def count_embedded(self) -> int:
        return int(
            await self._db.fetch_value(
                "SELECT COUNT(*) FROM work_notes WHERE embedded_at IS NOT NULL"
            )
            or 0
        )

    async def mark_embedded(self, document_id: str, timestamp: datetime) -> None:
        await self._db.execute(
            "UPDATE work_notes SET embedded_at = ? WHERE work_id = ?",
            [timestamp.isoformat(), document_id],
        )

    async def mark_pending(self, document_id: str) -> None:
        await self._db.execute(
            "UPDATE work_notes SET embedded_at = NULL WHERE work_id = ?",
            [document_id],
        )

    async def mark_all_pending(self) -> int:
        reset = await self._db.execute(
            "UPDATE work_notes SET embedded_at = NULL WHERE embedded_at IS NOT NULL"
        )
        logger.info(f"Reset {reset} documents to pending")
        return reset

    async def get_by_id(self, document_id: str) -> Document | None:
        row = await self._db.fetch_one(
            f"SELECT {_DOCUMENT_COLUMNS} FROM work_notes WHERE work_id = ?",
            [document_id],
        )
        if row is None:
            return None
        documents = await self._hydrate([row])
        return documents[0]

    async def _hydrate(self, rows: Sequence[aiosqlite.Row]) -> list[Document]:
        """Attach persons and department in one extra query."""
        if not rows:
            return []

        work_ids = [row["work_id"] for row in rows]
        placeholders = ",".join("?" for _ in work_ids)
        person_rows = await self._db.fetch_all(
            f"""
            SELECT wnp.work_id, wnp.person_id, p.current_dept
            FROM work_note_person wnp
            LEFT JOIN persons p ON p.person_id = wnp.person_id
            WHERE wnp.work_id IN ({placeholders})
            ORDER BY wnp.rowid
            """,
            work_ids,
        )

        persons: dict[str, list[tuple[str, str | None]]] = {}
        for person_row in person_rows:
            persons.setdefault(person_row["work_id"], []).append(
                (person_row["person_id"], person_row["current_dept"])
            )

        documents = []
        for row in rows:
            associated = persons.get(row["work_id"], [])
            documents.append(
                Document(
                    id=row["work_id"],
                    text=f"{row['title']}\n\n{row['content_raw']}",
                    category=row["category"] or None,
                    created_at=datetime.fromisoformat(row["created_at"]),
                    person_ids=[person_id for person_id, _ in associated],
                    dept_name=associated[0][1] if associated else None,
                    embedded_at=(
                        datetime.fromisoformat(row["embedded_at"])
                        if row["embedded_at"]
                        else None
                    ),
                )
            )
        return documents
