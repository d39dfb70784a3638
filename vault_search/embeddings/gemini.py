"""Google GenAI embeddings."""

from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from vault_search.config import (
    EmbeddingSettings,
    GeminiEmbeddingSettings,
    ProviderKind,
    get_settings,
)
from vault_search.embeddings.rate_limit import TokenBucketRateLimiter
from vault_search.embeddings.service import RemoteEmbeddingProvider
from vault_search.exceptions import (
    ConfigurationError,
    EmbeddingError,
    ProviderAuthError,
    ProviderUnavailable,
)
from vault_search.logging_config import get_logger

logger = get_logger(__name__)

# Same task type on both sides so a single text embeds identically whether it
# is indexed or queried.
_TASK_TYPE = "SEMANTIC_SIMILARITY"


class GeminiEmbeddingProvider(RemoteEmbeddingProvider):
    """Generate text embeddings via the Google GenAI async client."""

    kind = ProviderKind.GEMINI

    def __init__(
        self,
        settings: GeminiEmbeddingSettings | None = None,
        embedding: EmbeddingSettings | None = None,
        rate_limiter: TokenBucketRateLimiter | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            settings: API configuration.
            embedding: Shared embedding configuration (dimension, batch size).
            rate_limiter: Shared request limiter.
            client: GenAI client (for testing).

        Raises:
            ConfigurationError: If no client is given and no API key is configured.
        """
        if settings is None or embedding is None:
            app_settings = get_settings()
            settings = settings or app_settings.gemini_embedding
            embedding = embedding or app_settings.embedding
        super().__init__(embedding.dimension, embedding.batch_size, rate_limiter)
        self._settings = settings
        self._owns_client = client is None

        if client is None:
            if settings.api_key is None or not settings.api_key.get_secret_value():
                raise ConfigurationError(
                    "GEMINI_EMBEDDING_API_KEY is required for the gemini provider"
                )
            client = genai.Client(
                api_key=settings.api_key.get_secret_value(),
                http_options=genai_types.HttpOptions(
                    timeout=int(settings.timeout * 1000)
                ),
            )
        self._client = client

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    async def close(self) -> None:
        """Release the async transport if we created the client."""
        if self._owns_client:
            await self._client.aio.aclose()

    async def _request(self, texts: list[str]) -> list[list[float]]:
        details = {"model": self._settings.model, "provider_tag": self.provider_tag}
        try:
            result = await self._client.aio.models.embed_content(
                model=self._settings.model,
                contents=texts,
                config={
                    "task_type": _TASK_TYPE,
                    "output_dimensionality": self._dimension,
                },
            )
        except genai_errors.APIError as e:
            status = e.code
            logger.error(
                f"Gemini embedding request failed: {status}",
                extra={**details, "status": status},
            )
            status_details = {**details, "status_code": status}
            if status in (401, 403):
                raise ProviderAuthError(
                    f"Gemini rejected credentials ({status})",
                    details=status_details,
                ) from e
            if status == 429 or status >= 500:
                raise ProviderUnavailable(
                    f"Gemini returned {status}",
                    details=status_details,
                ) from e
            raise EmbeddingError(
                f"Gemini returned {status}: {e.message}",
                details=status_details,
            ) from e
        except httpx.RequestError as e:
            logger.warning(f"Gemini embedding request error: {e}", extra=details)
            raise ProviderUnavailable(
                f"Failed to reach Gemini: {e}",
                details=details,
            ) from e

        embeddings = result.embeddings or []
        try:
            return [[float(x) for x in emb.values] for emb in embeddings]
        except (AttributeError, TypeError) as e:
            raise EmbeddingError(
                f"Invalid response from Gemini: {e}",
                details={**details, "error": str(e)},
            ) from e
