"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class ProviderKind(str, Enum):
    """Embedding backends the engine can run with."""

    LOCAL = "local"
    OPENAI = "openai"
    GEMINI = "gemini"


class VectorStoreBackend(str, Enum):
    """Vector store implementations."""

    MEMORY = "memory"
    QDRANT = "qdrant"


class EmbeddingSettings(BaseSettings):
    """Embedding provider selection and shared parameters."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    provider: ProviderKind = Field(
        default=ProviderKind.LOCAL,
        description="Active embedding backend",
    )
    dimension: int = Field(
        default=768,
        gt=0,
        description="Vector dimension produced by the provider",
    )
    batch_size: int = Field(
        default=32,
        ge=1,
        le=100,
        description="Texts per embedding request",
    )


class LocalEmbeddingSettings(BaseSettings):
    """In-process sentence-transformers model."""

    model_config = SettingsConfigDict(env_prefix="LOCAL_EMBEDDING_")

    model: str = Field(
        default="sentence-transformers/all-mpnet-base-v2",
        description="Model name or local path",
    )
    device: str = Field(
        default="cpu",
        description="Torch device for inference",
    )
    normalize: bool = Field(
        default=True,
        description="L2-normalize output vectors",
    )


class OpenAIEmbeddingSettings(BaseSettings):
    """OpenAI-compatible embeddings API."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_EMBEDDING_")

    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="API base URL",
    )
    model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key",
    )
    timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds",
    )


class GeminiEmbeddingSettings(BaseSettings):
    """Google GenAI embeddings API."""

    model_config = SettingsConfigDict(env_prefix="GEMINI_EMBEDDING_")

    model: str = Field(
        default="gemini-embedding-001",
        description="Embedding model name",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Google API key",
    )
    timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds",
    )


class RateLimitSettings(BaseSettings):
    """Token bucket shared by all remote embedding requests."""

    model_config = SettingsConfigDict(env_prefix="RATE_LIMIT_")

    requests_per_minute: float = Field(
        default=300.0,
        description="Sustained request rate (0 disables limiting)",
    )
    burst: int = Field(
        default=10,
        ge=1,
        description="Bucket capacity",
    )


class VectorStoreSettings(BaseSettings):
    """Vector store connection."""

    model_config = SettingsConfigDict(env_prefix="VECTORSTORE_")

    backend: VectorStoreBackend = Field(
        default=VectorStoreBackend.QDRANT,
        description="Vector store implementation",
    )
    url: str | None = Field(
        default=None,
        description="Qdrant server URL",
    )
    path: str | None = Field(
        default="./data/qdrant",
        description="On-disk Qdrant location, used when url is not set",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    collection_name: str = Field(
        default="vault_documents",
        description="Collection holding indexed records",
    )


class IndexingSettings(BaseSettings):
    """Indexing pipeline behaviour."""

    model_config = SettingsConfigDict(env_prefix="INDEXING_")

    max_workers: int = Field(
        default=4,
        ge=1,
        description="Batches embedded concurrently",
    )
    max_attempts: int = Field(
        default=4,
        ge=1,
        description="Attempts per batch for transient provider errors",
    )
    initial_backoff: float = Field(
        default=0.5,
        ge=0.0,
        description="First retry delay in seconds",
    )
    max_backoff: float = Field(
        default=8.0,
        ge=0.0,
        description="Retry delay cap in seconds",
    )
    batch_timeout: float | None = Field(
        default=120.0,
        description="Deadline for one embedding attempt (None disables)",
    )
    reconcile: bool = Field(
        default=True,
        description="Delete records whose documents left the corpus",
    )


class SearchSettings(BaseSettings):
    """Query engine behaviour."""

    model_config = SettingsConfigDict(env_prefix="SEARCH_")

    default_limit: int = Field(default=10, ge=1)
    max_limit: int = Field(default=50, ge=1)
    score_precision: int = Field(
        default=4,
        ge=0,
        description="Decimal places for similarity in API output",
    )
    query_timeout: float | None = Field(
        default=10.0,
        description="Deadline for embedding one query (None disables)",
    )
    max_attempts: int = Field(
        default=2,
        ge=1,
        description="Attempts for transient provider errors at query time",
    )
    hybrid: bool = Field(
        default=False,
        description="Append keyword-only matches after vector results",
    )
    hybrid_min_similarity: float = Field(
        default=0.3,
        ge=-1.0,
        le=1.0,
        description="In hybrid mode, vector results below this are replaced by keyword matches",
    )
    keyword_weight: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Scale applied to keyword scores in hybrid mode",
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
    content_dir: Path = Field(
        default=Path("content"),
        description="Markdown vault root",
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
    local_embedding: LocalEmbeddingSettings = Field(
        default_factory=LocalEmbeddingSettings
    )
    openai_embedding: OpenAIEmbeddingSettings = Field(
        default_factory=OpenAIEmbeddingSettings
    )
    gemini_embedding: GeminiEmbeddingSettings = Field(
        default_factory=GeminiEmbeddingSettings
    )
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    vector_store: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
