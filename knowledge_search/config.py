"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration.

    Targets an OpenAI-compatible ``/embeddings`` endpoint.
    """

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Embedding API base URL",
    )
    model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Bearer token for the provider (optional for local servers)",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )
    dimensions: int = Field(
        default=1536,
        description="Vector dimensions produced by the model",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    collection_name: str = Field(
        default="work_notes",
        description="Collection holding one vector per document",
    )
    metadata_max_bytes: int = Field(
        default=60,
        ge=1,
        description="Per-field UTF-8 byte ceiling for vector metadata",
    )
    max_top_k: int = Field(
        default=100,
        ge=1,
        description="Largest top_k accepted by vector queries",
    )


class DatabaseSettings(BaseSettings):
    """Relational document store configuration."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    path: str = Field(
        default="knowledge.db",
        description="SQLite database path",
    )
    fts_tokenizer: str = Field(
        default="trigram",
        description="FTS5 tokenizer used when creating the schema",
    )


class SearchSettings(BaseSettings):
    """Search configuration."""

    model_config = SettingsConfigDict(env_prefix="SEARCH_")

    default_limit: int = Field(
        default=10,
        ge=1,
        description="Result limit when the caller gives none",
    )
    max_limit: int = Field(
        default=100,
        ge=1,
        description="Largest result limit accepted",
    )
    hybrid_presence_bonus: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Score bonus for documents found by both lexical and semantic search",
    )


class SyncSettings(BaseSettings):
    """Embedding synchronization configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    batch_size: int = Field(
        default=10,
        ge=1,
        description="Documents per scheduled embed-pending run",
    )
    max_batch_size: int = Field(
        default=100,
        ge=1,
        description="Largest batch size accepted by sync operations",
    )
    schedule_enabled: bool = Field(
        default=False,
        description="Run embed-pending periodically inside the API process",
    )
    schedule_interval_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Seconds between scheduled embed-pending runs",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )

    # Nested settings
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
