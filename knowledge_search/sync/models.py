"""Sync job data models."""

from pydantic import BaseModel, Field, model_validator


class SyncFailure(BaseModel):
    """One document that could not be embedded."""

    document_id: str = Field(description="Document identifier")
    message: str = Field(description="Failure reason")


class BatchJobResult(BaseModel):
    """Outcome of a sync job run.

    Attributes:
        processed: Documents attempted.
        succeeded: Documents embedded and stamped.
        failed: Documents that failed.
        errors: Per-document failure reasons.
        rate_limited: Whether the provider rate-limited the run.
    """

    processed: int = Field(default=0, ge=0)
    succeeded: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    errors: list[SyncFailure] = Field(default_factory=list)
    rate_limited: bool = False

    @model_validator(mode="after")
    def _counts_add_up(self) -> "BatchJobResult":
        if self.processed != self.succeeded + self.failed:
            raise ValueError("processed must equal succeeded + failed")
        return self

    def merge(self, other: "BatchJobResult") -> "BatchJobResult":
        """Combine two results, as when aggregating passes."""
        return BatchJobResult(
            processed=self.processed + other.processed,
            succeeded=self.succeeded + other.succeeded,
            failed=self.failed + other.failed,
            errors=[*self.errors, *other.errors],
            rate_limited=self.rate_limited or other.rate_limited,
        )


class EmbeddingStats(BaseModel):
    """Embedding coverage of the document store."""

    total: int = Field(ge=0, description="All documents")
    embedded: int = Field(ge=0, description="Documents with a current embedding")
    pending: int = Field(ge=0, description="Documents awaiting embedding")
