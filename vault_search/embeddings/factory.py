"""Build the configured embedding provider."""

from vault_search.config import ProviderKind, Settings
from vault_search.embeddings.gemini import GeminiEmbeddingProvider
from vault_search.embeddings.local import LocalEmbeddingProvider
from vault_search.embeddings.openai import OpenAIEmbeddingProvider
from vault_search.embeddings.rate_limit import TokenBucketRateLimiter
from vault_search.embeddings.service import EmbeddingProvider
from vault_search.exceptions import ConfigurationError


def create_provider(
    settings: Settings,
    rate_limiter: TokenBucketRateLimiter | None = None,
) -> EmbeddingProvider:
    """Instantiate the provider selected by ``EMBEDDING_PROVIDER``.

    Args:
        settings: Application settings.
        rate_limiter: Limiter shared by remote providers.

    Returns:
        An unopened provider.

    Raises:
        ConfigurationError: If the provider is unknown or misconfigured.
    """
    kind = settings.embedding.provider
    if kind == ProviderKind.LOCAL:
        return LocalEmbeddingProvider(settings.local_embedding, settings.embedding)
    if kind == ProviderKind.OPENAI:
        return OpenAIEmbeddingProvider(
            settings.openai_embedding, settings.embedding, rate_limiter
        )
    if kind == ProviderKind.GEMINI:
        return GeminiEmbeddingProvider(
            settings.gemini_embedding, settings.embedding, rate_limiter
        )
    raise ConfigurationError(
        f"Unknown embedding provider: {kind}",
        details={"provider": str(kind)},
    )
