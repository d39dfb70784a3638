"""Embedding provider interface and shared behaviour."""

import time
from abc import ABC, abstractmethod
from collections.abc import Sequence

from vault_search.config import ProviderKind
from vault_search.embeddings.models import EmbeddingResult
from vault_search.embeddings.rate_limit import TokenBucketRateLimiter
from vault_search.exceptions import DimensionMismatch, EmbeddingError
from vault_search.logging_config import get_logger
from vault_search.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers.

    Every provider produces vectors of a fixed ``dimension`` and stamps them
    with a ``provider_tag``. Vectors with different tags are never compared.
    """

    kind: ProviderKind

    def __init__(self, dimension: int, batch_size: int) -> None:
        self._dimension = dimension
        self._batch_size = batch_size

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    @property
    def dimension(self) -> int:
        """Get the embedding dimensions."""
        return self._dimension

    @property
    def batch_size(self) -> int:
        """Preferred number of texts per backend call."""
        return self._batch_size

    @property
    def provider_tag(self) -> str:
        """Stable identifier stored with every vector this provider makes."""
        return f"{self.kind.value}:{self.model_name}:{self.dimension}"

    async def open(self) -> None:
        """Acquire resources. Safe to call more than once."""

    async def close(self) -> None:
        """Release resources."""

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            EmbeddingError: If embedding fails.
        """
        results = await self.embed_many([text])
        return results[0]

    async def embed_many(self, texts: Sequence[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts, preserving order.

        Args:
            texts: Texts to embed.

        Returns:
            One EmbeddingResult per input text.

        Raises:
            EmbeddingError: If embedding fails.
            DimensionMismatch: If the backend returns vectors of the wrong size.
        """
        texts = list(texts)
        if not texts:
            return []

        start = time.perf_counter()
        try:
            vectors = await self._embed_texts(texts)
        except Exception:
            track_embedding_request(
                provider=self.kind.value,
                duration=time.perf_counter() - start,
                batch_size=len(texts),
                success=False,
            )
            raise

        track_embedding_request(
            provider=self.kind.value,
            duration=time.perf_counter() - start,
            batch_size=len(texts),
        )

        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Provider returned {len(vectors)} vectors for {len(texts)} texts",
                details={"provider_tag": self.provider_tag},
            )

        results: list[EmbeddingResult] = []
        for text, vector in zip(texts, vectors):
            self._check_dimension(vector)
            results.append(
                EmbeddingResult(
                    text=text,
                    embedding=vector,
                    provider_tag=self.provider_tag,
                )
            )
        return results

    def _check_dimension(self, vector: Sequence[float]) -> None:
        if len(vector) != self._dimension:
            raise DimensionMismatch(
                f"Provider returned {len(vector)}-dimensional vector, "
                f"configured dimension is {self._dimension}",
                details={
                    "provider_tag": self.provider_tag,
                    "expected": self._dimension,
                    "actual": len(vector),
                },
            )

    @abstractmethod
    async def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Backend call for a non-empty list of texts."""
        ...


class RemoteEmbeddingProvider(EmbeddingProvider):
    """Provider behind an HTTP API.

    Splits input into requests of ``batch_size`` texts and takes a token from
    the shared rate limiter before each request.
    """

    def __init__(
        self,
        dimension: int,
        batch_size: int,
        rate_limiter: TokenBucketRateLimiter | None = None,
    ) -> None:
        super().__init__(dimension, batch_size)
        self._rate_limiter = rate_limiter

    async def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for i in range(0, len(texts), self._batch_size):
            batch = texts[i : i + self._batch_size]
            if self._rate_limiter is not None:
                await self._rate_limiter.acquire()
            vectors.extend(await self._request(batch))
        return vectors

    @abstractmethod
    async def _request(self, texts: list[str]) -> list[list[float]]:
        """Make one API request for a batch of texts."""
        ...
