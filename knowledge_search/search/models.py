"""Search data models."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class SearchSource(str, Enum):
    """Which method produced a search result."""

    LEXICAL = "LEXICAL"
    SEMANTIC = "SEMANTIC"
    HYBRID = "HYBRID"


class SearchResult(BaseModel):
    """A ranked document reference.

    Attributes:
        document_id: Document identifier.
        score: Relevance in [0, 1], higher is better.
        source: Method that produced the result.
    """

    document_id: str = Field(description="Document identifier")
    score: float = Field(ge=0.0, le=1.0, description="Relevance score")
    source: SearchSource = Field(description="Producing search method")


class SearchFilters(BaseModel):
    """Structured filters combined with AND. Unset filters are not applied."""

    category: str | None = Field(default=None, description="Exact category")
    date_from: date | None = Field(default=None, description="Created on or after")
    date_to: date | None = Field(default=None, description="Created on or before")
    person_id: str | None = Field(default=None, description="Associated person")
    dept_name: str | None = Field(default=None, description="Department of an associated person")

    @field_validator("category", "person_id", "dept_name", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


def clamp_score(value: float) -> float:
    """Clamp a score into [0, 1]."""
    return max(0.0, min(1.0, value))
