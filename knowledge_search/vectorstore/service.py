"""Vector index and its Qdrant backend."""

import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar
from uuid import NAMESPACE_URL, uuid5

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from knowledge_search.config import QdrantSettings, get_settings
from knowledge_search.exceptions import ErrorCode, ValidationError, VectorStoreError
from knowledge_search.logging_config import get_logger
from knowledge_search.observability.metrics import track_vectorstore_operation
from knowledge_search.vectorstore import metadata as metadata_codec
from knowledge_search.vectorstore.models import VectorEntry, VectorMatch

logger = get_logger(__name__)

T = TypeVar("T")

# Payload key carrying the document id; Qdrant point ids must be UUIDs.
DOCUMENT_ID_KEY = "document_id"
_POINT_NAMESPACE = uuid5(NAMESPACE_URL, "knowledge-search/documents")


class VectorBackend(ABC):
    """Wire contract of the underlying vector database."""

    @abstractmethod
    async def upsert(self, records: list[VectorEntry]) -> None:
        """Insert or replace records keyed by id."""
        ...

    @abstractmethod
    async def delete_by_ids(self, ids: list[str]) -> None:
        """Delete records by id. Unknown ids are ignored."""
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: dict[str, str] | None = None,
        return_metadata: bool = False,
    ) -> list[VectorMatch]:
        """Return the ``top_k`` nearest records, best first."""
        ...


def point_id(document_id: str) -> str:
    """Deterministic Qdrant point id for a document id."""
    return str(uuid5(_POINT_NAMESPACE, document_id))


class QdrantVectorBackend(VectorBackend):
    """Qdrant implementation of the vector backend."""

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant backend.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None

    @property
    def collection(self) -> str:
        return self._settings.collection_name

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            api_key = None
            if self._settings.api_key:
                api_key = self._settings.api_key.get_secret_value()

            self._client = AsyncQdrantClient(
                url=self._settings.url,
                api_key=api_key,
            )
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    async def ensure_collection(self, dimensions: int) -> bool:
        """Create the collection if it does not exist.

        Returns:
            True if the collection was created.
        """
        client = await self._get_client()
        if await client.collection_exists(self.collection):
            return False

        await client.create_collection(
            collection_name=self.collection,
            vectors_config=VectorParams(
                size=dimensions,
                distance=Distance.COSINE,
            ),
        )
        logger.info(
            f"Created collection: {self.collection}",
            extra={"dimensions": dimensions},
        )
        return True

    async def upsert(self, records: list[VectorEntry]) -> None:
        client = await self._get_client()
        points = [
            PointStruct(
                id=point_id(record.id),
                vector=record.values,
                payload={**record.metadata, DOCUMENT_ID_KEY: record.id},
            )
            for record in records
        ]
        await client.upsert(collection_name=self.collection, points=points)

    async def delete_by_ids(self, ids: list[str]) -> None:
        client = await self._get_client()
        await client.delete(
            collection_name=self.collection,
            points_selector=PointIdsList(points=[point_id(i) for i in ids]),  # type: ignore[misc]
        )

    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: dict[str, str] | None = None,
        return_metadata: bool = False,
    ) -> list[VectorMatch]:
        client = await self._get_client()

        query_filter = None
        if filter:
            conditions = [
                FieldCondition(key=k, match=MatchValue(value=v))
                for k, v in filter.items()
            ]
            query_filter = Filter(must=conditions)  # type: ignore[arg-type]

        response = await client.query_points(
            collection_name=self.collection,
            query=vector,
            limit=top_k,
            query_filter=query_filter,
            with_payload=True,
        )

        matches: list[VectorMatch] = []
        for point in response.points:
            payload = dict(point.payload) if point.payload else {}
            document_id = str(payload.pop(DOCUMENT_ID_KEY, point.id))
            matches.append(
                VectorMatch(
                    id=document_id,
                    score=point.score if point.score is not None else 0.0,
                    metadata=(
                        {k: str(v) for k, v in payload.items()}
                        if return_metadata
                        else None
                    ),
                )
            )
        return matches


class VectorIndex:
    """Stores and queries one vector per document.

    Validates input before touching the backend, skips backend calls for
    empty batches and bounds every metadata field to a fixed byte ceiling.
    Query results are returned in backend order.
    """

    def __init__(
        self,
        backend: VectorBackend,
        settings: QdrantSettings | None = None,
    ) -> None:
        self._backend = backend
        self._settings = settings or get_settings().qdrant

    @property
    def metadata_max_bytes(self) -> int:
        return self._settings.metadata_max_bytes

    async def insert(self, entries: list[VectorEntry]) -> int:
        """Upsert entries keyed by id.

        Returns:
            Number of entries written.

        Raises:
            VectorStoreError: If the backend call fails.
        """
        if not entries:
            return 0

        await self._call("upsert", lambda: self._backend.upsert(entries))
        logger.debug(f"Upserted {len(entries)} vectors")
        return len(entries)

    async def delete(self, ids: list[str]) -> int:
        """Delete entries by id.

        Returns:
            Number of ids submitted for deletion.

        Raises:
            VectorStoreError: If the backend call fails.
        """
        if not ids:
            return 0

        await self._call("delete", lambda: self._backend.delete_by_ids(ids))
        logger.debug(f"Deleted {len(ids)} vectors")
        return len(ids)

    async def query(
        self,
        vector: list[float],
        top_k: int = 10,
        filter: dict[str, str] | None = None,
        return_metadata: bool = False,
    ) -> list[VectorMatch]:
        """Query nearest documents.

        Args:
            vector: Query vector.
            top_k: Number of matches to return.
            filter: Equality filters on encoded metadata fields.
            return_metadata: Include stored metadata in matches.

        Returns:
            Backend-ranked matches, unmodified.

        Raises:
            ValidationError: If ``top_k`` or ``vector`` is invalid.
            VectorStoreError: If the backend call fails.
        """
        if not 1 <= top_k <= self._settings.max_top_k:
            raise ValidationError(
                f"top_k must be between 1 and {self._settings.max_top_k}",
                details={"top_k": top_k},
            )
        if not vector:
            raise ValidationError("query vector must not be empty")

        return await self._call(
            "query",
            lambda: self._backend.query(
                vector,
                top_k=top_k,
                filter=filter,
                return_metadata=return_metadata,
            ),
        )

    def encode_metadata(self, metadata: Mapping[str, Any]) -> dict[str, str]:
        """Encode metadata under the configured per-field byte ceiling."""
        return metadata_codec.encode_metadata(metadata, self.metadata_max_bytes)

    def encode_filter_value(self, value: str) -> str:
        """Encode a filter value the same way stored metadata was encoded."""
        return metadata_codec.truncate_utf8(value, self.metadata_max_bytes)

    @staticmethod
    def encode_person_ids(person_ids: list[str]) -> str:
        return metadata_codec.encode_person_ids(person_ids)

    @staticmethod
    def decode_person_ids(encoded: str) -> list[str]:
        return metadata_codec.decode_person_ids(encoded)

    async def _call(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        start_time = time.perf_counter()
        try:
            result = await call()
        except Exception as e:
            track_vectorstore_operation(
                operation, time.perf_counter() - start_time, success=False
            )
            raise VectorStoreError(
                f"Failed to {operation} vectors: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"operation": operation, "error": str(e)},
            ) from e

        track_vectorstore_operation(operation, time.perf_counter() - start_time)
        return result
