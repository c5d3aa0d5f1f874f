"""Embedding client interface and HTTP implementation."""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from knowledge_search.config import EmbeddingSettings, get_settings
from knowledge_search.exceptions import (
    EmbeddingError,
    ErrorCode,
    NoEmbeddingError,
    ProviderError,
    RateLimitError,
)
from knowledge_search.logging_config import get_logger
from knowledge_search.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingClient(ABC):
    """Abstract base class for embedding clients.

    Defines the interface for turning text into vectors.
    """

    async def embed(self, text: str) -> list[float]:
        """Generate the embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            Embedding vector.

        Raises:
            EmbeddingError: If embedding fails.
        """
        vectors = await self.embed_batch([text])
        if not vectors:
            raise NoEmbeddingError()
        return vectors[0]

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts in one provider request.

        Args:
            texts: Texts to embed.

        Returns:
            One vector per input, in input order.

        Raises:
            RateLimitError: If the provider throttled the request.
            ProviderError: If the provider returned a non-success status.
            NoEmbeddingError: If the provider returned no embedding data.
            EmbeddingError: If the provider could not be reached.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...


class HTTPEmbeddingClient(EmbeddingClient):
    """Embedding client for OpenAI-compatible ``/embeddings`` APIs.

    Every ``embed_batch`` call is exactly one HTTP request. Choosing a batch
    size the provider accepts is the caller's job.
    """

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HTTP embedding client.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.api_key is not None:
            headers["Authorization"] = (
                f"Bearer {self._settings.api_key.get_secret_value()}"
            )
        return headers

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts in one provider request."""
        if not texts:
            return []

        client = await self._get_client()
        url = f"{self._settings.base_url.rstrip('/')}/embeddings"
        payload = {
            "model": self._settings.model,
            "input": texts,
            "encoding_format": "float",
        }

        start_time = time.perf_counter()
        try:
            response = await client.post(url, json=payload, headers=self._headers())
        except httpx.RequestError as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start_time, len(texts), False
            )
            logger.error(
                f"Embedding request error: {e}",
                extra={"url": url},
            )
            raise EmbeddingError(
                f"Failed to connect to embedding provider: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"url": url},
            ) from e

        duration = time.perf_counter() - start_time

        if not response.is_success:
            track_embedding_request(self.model_name, duration, len(texts), False)
            logger.error(
                f"Embedding request failed: {response.status_code}",
                extra={"url": url, "status": response.status_code},
            )
            if response.status_code == 429:
                raise RateLimitError(response.text)
            raise ProviderError(response.status_code, response.text)

        try:
            try:
                body = response.json()
            except ValueError as e:
                raise EmbeddingError(
                    f"Invalid JSON from embedding provider: {e}",
                    code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                ) from e
            vectors = self._parse_vectors(body, len(texts))
        except EmbeddingError:
            track_embedding_request(self.model_name, duration, len(texts), False)
            raise

        track_embedding_request(self.model_name, duration, len(texts))
        return vectors

    def _parse_vectors(self, data: Any, expected: int) -> list[list[float]]:
        """Map provider ``data`` entries back to input positions by ``index``."""
        entries = data.get("data") if isinstance(data, dict) else None
        if not entries:
            raise NoEmbeddingError()

        vectors: list[list[float] | None] = [None] * expected
        try:
            for position, entry in enumerate(entries):
                index = entry.get("index", position)
                embedding = entry.get("embedding")
                if embedding and 0 <= index < expected:
                    vectors[index] = [float(value) for value in embedding]
        except (AttributeError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Invalid response from embedding provider: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e

        missing = [i for i, vector in enumerate(vectors) if vector is None]
        if missing:
            raise NoEmbeddingError(
                f"No embedding returned for {len(missing)} of {expected} inputs",
                details={"missing_indexes": missing[:20]},
            )
        return [vector for vector in vectors if vector is not None]
