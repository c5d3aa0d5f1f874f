"""Relational schema for work notes and their full-text index.

The tables belong to the CRUD layer. They are created here so the SQLite
adapter and the tests have something to run against.
"""

import re

from knowledge_search.documents.database import Database
from knowledge_search.exceptions import ConfigurationError

_TOKENIZER_PATTERN = re.compile(r"^[a-z0-9_ ]+$")

SCHEMA = """
CREATE TABLE IF NOT EXISTS persons (
    person_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    current_dept TEXT
);

CREATE TABLE IF NOT EXISTS work_notes (
    work_id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    content_raw TEXT NOT NULL,
    category TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    embedded_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_work_notes_pending
    ON work_notes (embedded_at, created_at);

CREATE TABLE IF NOT EXISTS work_note_person (
    work_id TEXT NOT NULL REFERENCES work_notes (work_id) ON DELETE CASCADE,
    person_id TEXT NOT NULL REFERENCES persons (person_id),
    role TEXT,
    PRIMARY KEY (work_id, person_id)
);

CREATE VIRTUAL TABLE IF NOT EXISTS notes_fts USING fts5 (
    title,
    content_raw,
    content='work_notes',
    content_rowid='rowid',
    tokenize='{tokenizer}'
);

CREATE TRIGGER IF NOT EXISTS notes_fts_ai AFTER INSERT ON work_notes BEGIN
    INSERT INTO notes_fts (rowid, title, content_raw)
    VALUES (new.rowid, new.title, new.content_raw);
END;

CREATE TRIGGER IF NOT EXISTS notes_fts_ad AFTER DELETE ON work_notes BEGIN
    INSERT INTO notes_fts (notes_fts, rowid, title, content_raw)
    VALUES ('delete', old.rowid, old.title, old.content_raw);
END;

CREATE TRIGGER IF NOT EXISTS notes_fts_au AFTER UPDATE OF title, content_raw ON work_notes BEGIN
    INSERT INTO notes_fts (notes_fts, rowid, title, content_raw)
    VALUES ('delete', old.rowid, old.title, old.content_raw);
    INSERT INTO notes_fts (rowid, title, content_raw)
    VALUES (new.rowid, new.title, new.content_raw);
END;
"""


async def create_schema(db: Database, tokenizer: str = "trigram") -> None:
    """Create tables, the FTS5 index and its sync triggers if missing.

    Raises:
        ConfigurationError: If the tokenizer name is not a plain identifier.
    """
    if not _TOKENIZER_PATTERN.match(tokenizer):
        raise ConfigurationError(
            f"Invalid FTS5 tokenizer: {tokenizer!r}",
            details={"tokenizer": tokenizer},
        )
    await db.executescript(SCHEMA.replace("{tokenizer}", tokenizer))
