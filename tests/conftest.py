"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from knowledge_search.api.app import create_app
from knowledge_search.config import DatabaseSettings
from knowledge_search.documents.database import Database
from knowledge_search.documents.schema import create_schema
from knowledge_search.documents.store import SQLiteDocumentStore

SeedNote = Callable[..., Awaitable[str]]


@pytest.fixture
async def db() -> AsyncGenerator[Database, None]:
    """In-memory SQLite database with the work note schema.

    Yields:
        Connected Database.
    """
    database = Database(DatabaseSettings(path=":memory:"))
    await database.connect()
    await create_schema(database)
    yield database
    await database.close()


@pytest.fixture
def store(db: Database) -> SQLiteDocumentStore:
    return SQLiteDocumentStore(db)


@pytest.fixture
def seed_note(db: Database) -> SeedNote:
    """Insert a work note (and its persons) directly into the database."""

    async def _seed(
        work_id: str,
        title: str = "Untitled",
        content: str = "",
        category: str | None = None,
        created_at: str = "2024-01-01T09:00:00",
        embedded_at: str | None = None,
        persons: list[tuple[str, str | None]] | None = None,
    ) -> str:
        await db.execute(
            """
            INSERT INTO work_notes
                (work_id, title, content_raw, category, created_at, updated_at, embedded_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [work_id, title, content, category, created_at, created_at, embedded_at],
        )
        for person_id, dept in persons or []:
            await db.execute(
                "INSERT OR IGNORE INTO persons (person_id, name, current_dept) VALUES (?, ?, ?)",
                [person_id, person_id, dept],
            )
            await db.execute(
                "INSERT INTO work_note_person (work_id, person_id, role) VALUES (?, ?, ?)",
                [work_id, person_id, "PARTICIPANT"],
            )
        return work_id

    return _seed


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture
def mock_container() -> MagicMock:
    """Service container with every collaborator mocked."""
    container = MagicMock()
    container.orchestrator = AsyncMock()
    container.search = AsyncMock()
    container.source = AsyncMock()
    return container


@pytest.fixture
def app(mock_container: MagicMock) -> FastAPI:
    """Application without lifespan, wired to the mock container."""
    application = create_app(use_lifespan=False)
    application.state.container = mock_container
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    Yields:
        AsyncClient configured for testing.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
