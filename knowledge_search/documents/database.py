"""Async SQLite access for the document store."""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import aiosqlite

from knowledge_search.config import DatabaseSettings, get_settings
from knowledge_search.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_PRAGMAS = (
    "PRAGMA foreign_keys=ON;",
    "PRAGMA temp_store=MEMORY;",
)


class Database:
    """Thin wrapper around an aiosqlite connection with row access by name."""

    def __init__(
        self,
        settings: DatabaseSettings | None = None,
        connection: aiosqlite.Connection | None = None,
    ) -> None:
        """Initialize the database wrapper.

        Args:
            settings: Database configuration.
            connection: Existing connection (for testing).
        """
        self._settings = settings or get_settings().database
        self._connection = connection
        self._owns_connection = connection is None

    async def connect(self) -> aiosqlite.Connection:
        """Get or open the connection."""
        if self._connection is None:
            path = self._settings.path
            if path != ":memory:":
                Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)
            connection = await aiosqlite.connect(path)
            connection.row_factory = aiosqlite.Row
            for pragma in DEFAULT_PRAGMAS:
                await connection.execute(pragma)
            self._connection = connection
            logger.debug(f"Opened database: {path}")
        return self._connection

    async def close(self) -> None:
        """Close the connection if we own it."""
        if self._owns_connection and self._connection is not None:
            await self._connection.close()
            self._connection = None

    async def fetch_all(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> list[aiosqlite.Row]:
        connection = await self.connect()
        async with connection.execute(sql, params or []) as cursor:
            return list(await cursor.fetchall())

    async def fetch_one(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> aiosqlite.Row | None:
        connection = await self.connect()
        async with connection.execute(sql, params or []) as cursor:
            return await cursor.fetchone()

    async def fetch_value(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        row = await self.fetch_one(sql, params)
        return row[0] if row is not None else None

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> int:
        """Run a write statement and commit.

        Returns:
            Number of affected rows.
        """
        connection = await self.connect()
        async with connection.execute(sql, params or []) as cursor:
            rowcount = cursor.rowcount
        await connection.commit()
        return rowcount

    async def executemany(self, sql: str, seq_of_params: Sequence[Sequence[Any]]) -> None:
        connection = await self.connect()
        await connection.executemany(sql, seq_of_params)
        await connection.commit()

    async def executescript(self, script: str) -> None:
        connection = await self.connect()
        await connection.executescript(script)
        await connection.commit()
