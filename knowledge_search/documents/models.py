"""Document data models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class Document(BaseModel):
    """A searchable document as exposed by the owning CRUD layer.

    Attributes:
        id: Document identifier.
        text: Concatenated searchable text.
        category: Optional category.
        created_at: Creation time.
        person_ids: Associated person ids, in association order.
        dept_name: Department of the first associated person.
        scope: Access scope.
        embedded_at: When the current text was embedded; None means pending.
    """

    id: str = Field(min_length=1, description="Document identifier")
    text: str = Field(description="Concatenated searchable text")
    category: str | None = Field(default=None, description="Category")
    created_at: datetime = Field(description="Creation time")
    person_ids: list[str] = Field(
        default_factory=list,
        description="Associated person ids",
    )
    dept_name: str | None = Field(default=None, description="Department name")
    scope: str = Field(default="WORK", description="Access scope")
    embedded_at: datetime | None = Field(
        default=None,
        description="Embedding timestamp (None while pending)",
    )

    @property
    def is_pending(self) -> bool:
        return self.embedded_at is None

    def vector_metadata(self) -> dict[str, Any]:
        """Raw metadata to store next to the document's vector."""
        return {
            "scope": self.scope,
            "person_ids": self.person_ids,
            "dept_name": self.dept_name,
            "category": self.category,
            "created_at_bucket": self.created_at.strftime("%Y-%m-%d"),
        }
