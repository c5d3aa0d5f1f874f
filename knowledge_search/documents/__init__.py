"""Document source port and its SQLite adapter."""

from knowledge_search.documents.database import Database
from knowledge_search.documents.models import Document
from knowledge_search.documents.schema import create_schema
from knowledge_search.documents.source import DocumentSource
from knowledge_search.documents.store import SQLiteDocumentStore

__all__ = [
    "Database",
    "Document",
    "DocumentSource",
    "SQLiteDocumentStore",
    "create_schema",
]
