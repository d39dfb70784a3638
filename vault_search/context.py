"""Shared resources for indexing and search."""

from types import TracebackType

from vault_search.config import Settings, get_settings
from vault_search.embeddings.factory import create_provider
from vault_search.embeddings.rate_limit import TokenBucketRateLimiter
from vault_search.embeddings.service import EmbeddingProvider
from vault_search.logging_config import get_logger
from vault_search.vectorstore.factory import create_vector_store
from vault_search.vectorstore.service import VectorStore

logger = get_logger(__name__)


class SearchContext:
    """Owns the embedding provider, vector store and rate limiter.

    One context is created per process (or per test) and handed to the
    indexing pipeline and the query engine, which never build their own.

    Example:
        >>> async with SearchContext(settings) as context:
        ...     engine = QueryEngine(context)
        ...     results = await engine.search("docker")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        provider: EmbeddingProvider | None = None,
        vector_store: VectorStore | None = None,
        rate_limiter: TokenBucketRateLimiter | None = None,
    ) -> None:
        """Initialize the context.

        Args:
            settings: Application settings.
            provider: Embedding provider (built from settings if omitted).
            vector_store: Vector store (built from settings if omitted).
            rate_limiter: Limiter shared by remote providers.
        """
        self.settings = settings or get_settings()
        self.rate_limiter = rate_limiter or TokenBucketRateLimiter.from_settings(
            self.settings.rate_limit
        )
        self.provider = provider or create_provider(self.settings, self.rate_limiter)
        self.vector_store = vector_store or create_vector_store(self.settings)
        self._is_open = False

    @property
    def is_open(self) -> bool:
        return self._is_open

    async def open(self) -> None:
        """Connect the store and load the provider."""
        if self._is_open:
            return
        await self.vector_store.open()
        try:
            await self.provider.open()
        except Exception:
            await self.vector_store.close()
            raise
        self._is_open = True
        logger.info(
            "Search context opened",
            extra={
                "provider_tag": self.provider.provider_tag,
                "vector_store": type(self.vector_store).__name__,
            },
        )

    async def close(self) -> None:
        """Release the provider and the store."""
        if not self._is_open:
            return
        try:
            await self.provider.close()
        finally:
            await self.vector_store.close()
            self._is_open = False
        logger.info("Search context closed")

    async def __aenter__(self) -> "SearchContext":
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
