"""Application exception hierarchy.

All custom exceptions inherit from KnowledgeSearchError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "KBS-1000"
    CONFIGURATION_ERROR = "KBS-1001"
    VALIDATION_ERROR = "KBS-1002"

    # Document errors (2xxx)
    DOCUMENT_NOT_FOUND = "KBS-2000"

    # Embedding errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "KBS-3000"
    EMBEDDING_PROVIDER_ERROR = "KBS-3001"
    EMBEDDING_RATE_LIMIT = "KBS-3002"
    NO_EMBEDDING_RETURNED = "KBS-3003"

    # Vector store errors (4xxx)
    VECTOR_STORE_ERROR = "KBS-4000"
    VECTOR_NOT_FOUND = "KBS-4001"

    # Search errors (5xxx)
    SEARCH_ERROR = "KBS-5000"
    LEXICAL_SEARCH_ERROR = "KBS-5001"
    SEMANTIC_SEARCH_ERROR = "KBS-5002"

    # Sync errors (6xxx)
    SYNC_ERROR = "KBS-6000"


class KnowledgeSearchError(Exception):
    """Base exception for all knowledge search errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(KnowledgeSearchError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(KnowledgeSearchError):
    """Malformed filters or out-of-range parameters."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class NotFoundError(KnowledgeSearchError):
    """Lookup of a nonexistent document or vector id."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: ErrorCode = ErrorCode.DOCUMENT_NOT_FOUND,
    ) -> None:
        super().__init__(
            f"{resource} not found: {identifier}",
            code,
            {"resource": resource, "id": identifier},
        )


class EmbeddingError(KnowledgeSearchError):
    """Embedding service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ProviderError(EmbeddingError):
    """Upstream embedding provider answered with a non-success status.

    Attributes:
        status_code: HTTP status returned by the provider.
        body: Raw response body.
    """

    def __init__(
        self,
        status_code: int,
        body: str,
        code: ErrorCode = ErrorCode.EMBEDDING_PROVIDER_ERROR,
        message: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(
            message or f"Embedding provider returned {status_code}: {body}",
            code,
            {"status_code": status_code, "body": body[:500]},
        )


class RateLimitError(ProviderError):
    """Provider rejected the request with HTTP 429. Try again later."""

    def __init__(self, body: str = "") -> None:
        super().__init__(
            429,
            body,
            code=ErrorCode.EMBEDDING_RATE_LIMIT,
            message="Embedding rate limit exceeded",
        )


class NoEmbeddingError(EmbeddingError):
    """Provider answered successfully but returned no embedding data."""

    def __init__(
        self,
        message: str = "No embedding returned from provider",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.NO_EMBEDDING_RETURNED, details)


class VectorStoreError(KnowledgeSearchError):
    """Vector store operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_STORE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class SearchError(KnowledgeSearchError):
    """Search execution error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SEARCH_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class LexicalSearchError(SearchError):
    """Full-text query execution failed."""

    def __init__(
        self,
        message: str = "lexical search failed",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.LEXICAL_SEARCH_ERROR, details)


class SemanticSearchError(SearchError):
    """Vector similarity query failed."""

    def __init__(
        self,
        message: str = "semantic search failed",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.SEMANTIC_SEARCH_ERROR, details)


class SyncError(KnowledgeSearchError):
    """Embedding synchronization error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.SYNC_ERROR, details)
