"""Wires the search and sync components from settings."""

from dataclasses import dataclass

from knowledge_search.config import Settings, get_settings
from knowledge_search.documents.database import Database
from knowledge_search.documents.schema import create_schema
from knowledge_search.documents.source import DocumentSource
from knowledge_search.documents.store import SQLiteDocumentStore
from knowledge_search.embeddings.service import HTTPEmbeddingClient
from knowledge_search.logging_config import get_logger
from knowledge_search.search.hybrid import HybridSearchService
from knowledge_search.search.lexical import LexicalSearcher
from knowledge_search.search.filters import StoreFilter
from knowledge_search.search.ranker import HybridRanker
from knowledge_search.search.semantic import SemanticSearcher
from knowledge_search.sync.orchestrator import SyncOrchestrator
from knowledge_search.vectorstore.service import QdrantVectorBackend, VectorIndex

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Long-lived components shared by the API and the CLI."""

    settings: Settings
    database: Database
    source: DocumentSource
    embedding_client: HTTPEmbeddingClient
    vector_backend: QdrantVectorBackend
    vector_index: VectorIndex
    orchestrator: SyncOrchestrator
    lexical: LexicalSearcher
    search: HybridSearchService

    async def close(self) -> None:
        await self.embedding_client.close()
        await self.vector_backend.close()
        await self.database.close()


async def build_container(settings: Settings | None = None) -> ServiceContainer:
    """Connect to the database and vector store and build every component.

    Creates the relational schema and the vector collection if missing.
    """
    settings = settings or get_settings()

    database = Database(settings.database)
    await database.connect()
    await create_schema(database, settings.database.fts_tokenizer)

    vector_backend = QdrantVectorBackend(settings.qdrant)
    await vector_backend.ensure_collection(settings.embedding.dimensions)

    source = SQLiteDocumentStore(database)
    embedding_client = HTTPEmbeddingClient(settings.embedding)
    vector_index = VectorIndex(vector_backend, settings.qdrant)
    lexical = LexicalSearcher(database, settings.search)
    semantic = SemanticSearcher(
        embedding_client,
        vector_index,
        StoreFilter(database),
        max_top_k=settings.qdrant.max_top_k,
    )

    logger.info(
        "Service container ready",
        extra={
            "database": settings.database.path,
            "collection": settings.qdrant.collection_name,
            "embedding_model": settings.embedding.model,
        },
    )
    return ServiceContainer(
        settings=settings,
        database=database,
        source=source,
        embedding_client=embedding_client,
        vector_backend=vector_backend,
        vector_index=vector_index,
        orchestrator=SyncOrchestrator(
            source, embedding_client, vector_index, settings.sync
        ),
        lexical=lexical,
        search=HybridSearchService(
            lexical,
            semantic,
            HybridRanker(settings.search.hybrid_presence_bonus),
        ),
    )
