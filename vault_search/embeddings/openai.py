"""OpenAI-compatible embeddings over HTTP."""

from typing import Any

import httpx

from vault_search.config import (
    EmbeddingSettings,
    OpenAIEmbeddingSettings,
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

# Models that accept a requested output size
_RESIZABLE_PREFIXES = ("text-embedding-3",)


class OpenAIEmbeddingProvider(RemoteEmbeddingProvider):
    """Embedding provider for the OpenAI ``/embeddings`` API.

    Compatible with OpenAI itself and with servers exposing the same
    request/response shape.
    """

    kind = ProviderKind.OPENAI

    def __init__(
        self,
        settings: OpenAIEmbeddingSettings | None = None,
        embedding: EmbeddingSettings | None = None,
        rate_limiter: TokenBucketRateLimiter | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            settings: API configuration.
            embedding: Shared embedding configuration (dimension, batch size).
            rate_limiter: Shared request limiter.
            client: HTTP client. Creates new one if not provided.

        Raises:
            ConfigurationError: If no API key is configured.
        """
        if settings is None or embedding is None:
            app_settings = get_settings()
            settings = settings or app_settings.openai_embedding
            embedding = embedding or app_settings.embedding
        if settings.api_key is None or not settings.api_key.get_secret_value():
            raise ConfigurationError(
                "OPENAI_EMBEDDING_API_KEY is required for the openai provider"
            )
        super().__init__(embedding.dimension, embedding.batch_size, rate_limiter)
        self._settings = settings
        self._client = client
        self._owns_client = client is None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def open(self) -> None:
        await self._get_client()

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _payload(self, texts: list[str]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "input": texts,
            "model": self._settings.model,
        }
        if self._settings.model.startswith(_RESIZABLE_PREFIXES):
            payload["dimensions"] = self._dimension
        return payload

    async def _request(self, texts: list[str]) -> list[list[float]]:
        """Make embedding request for a batch.

        Raises:
            ProviderUnavailable: On timeouts, connection errors, 429 and 5xx.
            ProviderAuthError: On 401 and 403.
            EmbeddingError: On other client errors or a malformed response.
        """
        client = await self._get_client()
        url = f"{self._settings.base_url.rstrip('/')}/embeddings"
        api_key = self._settings.api_key.get_secret_value()  # type: ignore[union-attr]
        headers = {"Authorization": f"Bearer {api_key}"}
        details = {"url": url, "provider_tag": self.provider_tag}

        try:
            response = await client.post(url, json=self._payload(texts), headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning(f"Embedding request timed out: {e}", extra=details)
            raise ProviderUnavailable(
                "Embedding request timed out",
                details={**details, "timeout": self._settings.timeout},
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(
                f"Embedding request failed: {status}",
                extra={**details, "status": status},
            )
            status_details = {**details, "status_code": status}
            if status in (401, 403):
                raise ProviderAuthError(
                    f"Embedding service rejected credentials ({status})",
                    details=status_details,
                ) from e
            if status == 429 or status >= 500:
                raise ProviderUnavailable(
                    f"Embedding service returned {status}",
                    details=status_details,
                ) from e
            raise EmbeddingError(
                f"Embedding service returned {status}",
                details=status_details,
            ) from e
        except httpx.RequestError as e:
            logger.warning(f"Embedding request error: {e}", extra=details)
            raise ProviderUnavailable(
                f"Failed to connect to embedding service: {e}",
                details=details,
            ) from e

        try:
            data = response.json()
            items = sorted(data["data"], key=lambda item: item.get("index", 0))
            return [[float(x) for x in item["embedding"]] for item in items]
        except (KeyError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                details={**details, "error": str(e)},
            ) from e
