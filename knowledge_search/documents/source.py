"""Port through which the sync engine reads documents and records embedding state."""

from abc import ABC, abstractmethod
from datetime import datetime

from knowledge_search.documents.models import Document


class DocumentSource(ABC):
    """Document store owned by the CRUD layer.

    The owner must call ``mark_pending`` whenever a document's searchable
    text changes.
    """

    @abstractmethod
    async def list_pending(self, limit: int) -> list[Document]:
        """Return up to ``limit`` pending documents, oldest first."""
        ...

    @abstractmethod
    async def count_all(self) -> int:
        """Count all documents."""
        ...

    @abstractmethod
    async def count_embedded(self) -> int:
        """Count documents whose current text is embedded."""
        ...

    @abstractmethod
    async def mark_embedded(self, document_id: str, timestamp: datetime) -> None:
        """Record a successful embed."""
        ...

    @abstractmethod
    async def mark_pending(self, document_id: str) -> None:
        """Clear the embedding timestamp of one document."""
        ...

    @abstractmethod
    async def mark_all_pending(self) -> int:
        """Clear every embedding timestamp.

        Returns:
            Number of documents reset.
        """
        ...

    @abstractmethod
    async def get_by_id(self, document_id: str) -> Document | None:
        """Fetch one document, or None if it does not exist."""
        ...
