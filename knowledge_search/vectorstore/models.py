"""Vector store data models."""

from pydantic import BaseModel, Field


class VectorEntry(BaseModel):
    """A document vector stored in the index.

    Attributes:
        id: Document identifier (one vector per document).
        values: The embedding vector.
        metadata: Encoded, size-bounded metadata.
    """

    id: str = Field(min_length=1, description="Document identifier")
    values: list[float] = Field(description="Embedding vector")
    metadata: dict[str, str] = Field(
        default_factory=dict,
        description="Encoded metadata",
    )


class VectorMatch(BaseModel):
    """Result from a vector similarity query.

    Attributes:
        id: Document identifier.
        score: Similarity score as reported by the backend.
        metadata: Stored metadata, when requested.
    """

    id: str = Field(description="Document identifier")
    score: float = Field(description="Similarity score")
    metadata: dict[str, str] | None = Field(
        default=None,
        description="Stored metadata",
    )
