"""Keeps the vector index consistent with the document store."""

import math
import time
from datetime import UTC, datetime

from knowledge_search.config import SyncSettings, get_settings
from knowledge_search.documents.models import Document
from knowledge_search.documents.source import DocumentSource
from knowledge_search.embeddings.service import EmbeddingClient
from knowledge_search.exceptions import (
    NotFoundError,
    RateLimitError,
    SyncError,
    ValidationError,
)
from knowledge_search.logging_config import get_logger
from knowledge_search.observability.metrics import track_sync_job
from knowledge_search.sync.models import BatchJobResult, EmbeddingStats, SyncFailure
from knowledge_search.vectorstore.models import VectorEntry
from knowledge_search.vectorstore.service import VectorIndex

logger = get_logger(__name__)

EMPTY_TEXT_MESSAGE = "document text is empty"


class _BatchOutcome:
    """Mutable per-run bookkeeping, converted to a BatchJobResult at the end."""

    def __init__(self) -> None:
        self.succeeded: list[str] = []
        self.failures: list[SyncFailure] = []
        self.rate_limited = False

    def fail(self, document_id: str, message: str) -> None:
        self.failures.append(SyncFailure(document_id=document_id, message=message))

    def to_result(self) -> BatchJobResult:
        return BatchJobResult(
            processed=len(self.succeeded) + len(self.failures),
            succeeded=len(self.succeeded),
            failed=len(self.failures),
            errors=self.failures,
            rate_limited=self.rate_limited,
        )


class SyncOrchestrator:
    """Embeds pending documents and writes them to the vector index.

    Every write is an idempotent upsert or timestamp stamp, so runs may
    overlap. All state lives in the document store; nothing is kept between
    calls.
    """

    def __init__(
        self,
        source: DocumentSource,
        embedding_client: EmbeddingClient,
        vector_index: VectorIndex,
        settings: SyncSettings | None = None,
    ) -> None:
        self._source = source
        self._embedding_client = embedding_client
        self._vector_index = vector_index
        self._settings = settings or get_settings().sync

    async def get_stats(self) -> EmbeddingStats:
        """Count documents, always read fresh from the store."""
        total = await self._source.count_all()
        embedded = await self._source.count_embedded()
        return EmbeddingStats(
            total=total,
            embedded=embedded,
            pending=max(total - embedded, 0),
        )

    def _resolve_batch_size(self, batch_size: int | None) -> int:
        size = self._settings.batch_size if batch_size is None else batch_size
        if not 1 <= size <= self._settings.max_batch_size:
            raise ValidationError(
                f"batch_size must be between 1 and {self._settings.max_batch_size}",
                details={"batch_size": size},
            )
        return size

    async def embed_pending(self, batch_size: int | None = None) -> BatchJobResult:
        """Embed up to ``batch_size`` pending documents, oldest first.

        Per-document failures are reported in the result, never raised.

        Raises:
            ValidationError: If ``batch_size`` is out of range.
            SyncError: If the pending documents cannot be read.
        """
        size = self._resolve_batch_size(batch_size)
        start_time = time.perf_counter()

        documents = await self._list_pending(size)
        result = await self._embed_documents(documents)

        track_sync_job(
            "embed_pending",
            time.perf_counter() - start_time,
            result.succeeded,
            result.failed,
        )
        if result.processed:
            logger.info(
                "Embed pending completed",
                extra={
                    "processed": result.processed,
                    "succeeded": result.succeeded,
                    "failed": result.failed,
                    "rate_limited": result.rate_limited,
                },
            )
        return result

    async def reindex_all(self, batch_size: int | None = None) -> BatchJobResult:
        """Reset every document to pending and embed them all in batches.

        Documents that fail are not retried within the same run. The number
        of passes is bounded so the run always terminates, and it stops
        early when the provider rate-limits.

        Raises:
            ValidationError: If ``batch_size`` is out of range.
            SyncError: If the store cannot be reset or read.
        """
        size = self._resolve_batch_size(batch_size)
        start_time = time.perf_counter()

        try:
            reset = await self._source.mark_all_pending()
            total = await self._source.count_all()
        except Exception as e:
            raise SyncError(
                f"Failed to reset documents for reindex: {e}",
                details={"error": str(e)},
            ) from e

        max_passes = math.ceil(total / size) + 1
        logger.info(
            "Reindex started",
            extra={"total": total, "reset": reset, "max_passes": max_passes},
        )

        result = BatchJobResult()
        failed_ids: set[str] = set()
        for pass_number in range(1, max_passes + 1):
            candidates = await self._list_pending(size + len(failed_ids))
            documents = [doc for doc in candidates if doc.id not in failed_ids][:size]
            if not documents:
                break

            pass_result = await self._embed_documents(documents)
            result = result.merge(pass_result)
            failed_ids.update(failure.document_id for failure in pass_result.errors)

            logger.debug(
                f"Reindex pass {pass_number}: {result.processed}/{total}",
                extra={"succeeded": result.succeeded, "failed": result.failed},
            )
            if pass_result.rate_limited:
                logger.warning(
                    "Reindex stopped early: embedding provider rate limit",
                    extra={"pass": pass_number, "processed": result.processed},
                )
                break

        track_sync_job(
            "reindex_all",
            time.perf_counter() - start_time,
            result.succeeded,
            result.failed,
        )
        logger.info(
            "Reindex completed",
            extra={
                "total": total,
                "succeeded": result.succeeded,
                "failed": result.failed,
                "rate_limited": result.rate_limited,
            },
        )
        return result

    async def reembed_only(self, document_id: str) -> bool:
        """Re-embed one document after its text changed.

        Never raises; failures are logged and the document stays pending
        for the next scheduled run.

        Returns:
            True if the document was embedded and stamped.
        """
        start_time = time.perf_counter()
        try:
            document = await self._source.get_by_id(document_id)
            if document is None:
                raise NotFoundError("Document", document_id)
            if not document.text.strip():
                raise SyncError(EMPTY_TEXT_MESSAGE, details={"document_id": document_id})

            vector = await self._embedding_client.embed(document.text)
            await self._vector_index.insert([self._to_entry(document, vector)])
            await self._source.mark_embedded(document_id, datetime.now(UTC))
        except Exception as e:
            track_sync_job("reembed", time.perf_counter() - start_time, 0, 1)
            logger.error(
                f"Re-embed failed for document {document_id}: {e}",
                extra={"document_id": document_id, "error_type": type(e).__name__},
            )
            return False

        track_sync_job("reembed", time.perf_counter() - start_time, 1, 0)
        logger.debug("Re-embedded document", extra={"document_id": document_id})
        return True

    async def remove_document(self, document_id: str) -> bool:
        """Delete a document's vector after the owner deleted the document.

        Never raises.

        Returns:
            True if the delete call succeeded.
        """
        try:
            await self._vector_index.delete([document_id])
        except Exception as e:
            logger.error(
                f"Vector removal failed for document {document_id}: {e}",
                extra={"document_id": document_id},
            )
            return False
        return True

    async def _list_pending(self, limit: int) -> list[Document]:
        try:
            return await self._source.list_pending(limit)
        except Exception as e:
            raise SyncError(
                f"Failed to list pending documents: {e}",
                details={"error": str(e)},
            ) from e

    def _to_entry(self, document: Document, vector: list[float]) -> VectorEntry:
        return VectorEntry(
            id=document.id,
            values=vector,
            metadata=self._vector_index.encode_metadata(document.vector_metadata()),
        )

    async def _embed_documents(self, documents: list[Document]) -> BatchJobResult:
        """Embed, upsert and stamp one batch. Never raises."""
        outcome = _BatchOutcome()

        unique: dict[str, Document] = {}
        for document in documents:
            unique.setdefault(document.id, document)

        embeddable: list[Document] = []
        for document in unique.values():
            if document.text.strip():
                embeddable.append(document)
            else:
                outcome.fail(document.id, EMPTY_TEXT_MESSAGE)

        if not embeddable:
            return outcome.to_result()

        embedded = await self._embed_vectors(embeddable, outcome)
        if not embedded:
            return outcome.to_result()

        entries = [self._to_entry(document, vector) for document, vector in embedded]
        try:
            await self._vector_index.insert(entries)
        except Exception as e:
            logger.error(
                f"Vector upsert failed for {len(entries)} documents: {e}",
                extra={"batch_size": len(entries)},
            )
            for document, _ in embedded:
                outcome.fail(document.id, str(e))
            return outcome.to_result()

        timestamp = datetime.now(UTC)
        for document, _ in embedded:
            try:
                await self._source.mark_embedded(document.id, timestamp)
            except Exception as e:
                logger.error(
                    f"Failed to stamp document {document.id}: {e}",
                    extra={"document_id": document.id},
                )
                outcome.fail(document.id, str(e))
            else:
                outcome.succeeded.append(document.id)

        return outcome.to_result()

    async def _embed_vectors(
        self,
        documents: list[Document],
        outcome: _BatchOutcome,
    ) -> list[tuple[Document, list[float]]]:
        """Embed a batch in one call, falling back to one call per document.

        Rate limiting fails every remaining document without retrying.
        """
        try:
            vectors = await self._embedding_client.embed_batch(
                [document.text for document in documents]
            )
            return list(zip(documents, vectors, strict=True))
        except RateLimitError as e:
            self._fail_rate_limited(documents, outcome, e)
            return []
        except Exception as e:
            logger.warning(
                f"Batch embedding failed, retrying documents individually: {e}",
                extra={"batch_size": len(documents)},
            )

        embedded: list[tuple[Document, list[float]]] = []
        for index, document in enumerate(documents):
            try:
                vector = await self._embedding_client.embed(document.text)
            except RateLimitError as e:
                self._fail_rate_limited(documents[index:], outcome, e)
                break
            except Exception as e:
                logger.error(
                    f"Embedding failed for document {document.id}: {e}",
                    extra={"document_id": document.id},
                )
                outcome.fail(document.id, str(e))
            else:
                embedded.append((document, vector))
        return embedded

    @staticmethod
    def _fail_rate_limited(
        documents: list[Document],
        outcome: _BatchOutcome,
        error: RateLimitError,
    ) -> None:
        logger.warning(
            "Embedding provider rate limit hit",
            extra={"documents": len(documents), "status_code": error.status_code},
        )
        outcome.rate_limited = True
        for document in documents:
            outcome.fail(document.id, error.message)
