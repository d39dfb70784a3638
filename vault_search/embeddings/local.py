"""In-process embedding provider backed by sentence-transformers."""

import asyncio
from typing import Any

from vault_search.config import (
    EmbeddingSettings,
    LocalEmbeddingSettings,
    ProviderKind,
    get_settings,
)
from vault_search.embeddings.service import EmbeddingProvider
from vault_search.exceptions import DimensionMismatch, ModelLoadError
from vault_search.logging_config import get_logger

logger = get_logger(__name__)


class LocalEmbeddingProvider(EmbeddingProvider):
    """Runs a sentence-transformers model in a worker thread.

    Deterministic for a fixed model; not rate limited. The model is loaded
    on ``open()`` or on first use.
    """

    kind = ProviderKind.LOCAL

    def __init__(
        self,
        settings: LocalEmbeddingSettings | None = None,
        embedding: EmbeddingSettings | None = None,
        model: Any | None = None,
    ) -> None:
        """Initialize the local provider.

        Args:
            settings: Model configuration.
            embedding: Shared embedding configuration (dimension, batch size).
            model: Pre-loaded model exposing ``encode`` (for testing).
        """
        if settings is None or embedding is None:
            app_settings = get_settings()
            settings = settings or app_settings.local_embedding
            embedding = embedding or app_settings.embedding
        self._settings = settings
        super().__init__(embedding.dimension, embedding.batch_size)
        self._model = model
        self._load_lock = asyncio.Lock()
        if model is not None:
            self._verify_dimension(model)

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    async def open(self) -> None:
        """Load the model eagerly so startup fails fast."""
        await self._ensure_model()

    async def close(self) -> None:
        """Drop the model reference."""
        self._model = None

    async def _ensure_model(self) -> Any:
        if self._model is not None:
            return self._model
        async with self._load_lock:
            if self._model is None:
                model = await asyncio.to_thread(self._load_model)
                self._verify_dimension(model)
                self._model = model
        return self._model

    def _load_model(self) -> Any:
        logger.info(
            f"Loading embedding model {self._settings.model}",
            extra={"device": self._settings.device},
        )
        try:
            from sentence_transformers import SentenceTransformer

            return SentenceTransformer(self._settings.model, device=self._settings.device)
        except Exception as e:
            raise ModelLoadError(
                f"Failed to load embedding model {self._settings.model}: {e}",
                details={"model": self._settings.model, "error": str(e)},
            ) from e

    def _verify_dimension(self, model: Any) -> None:
        get_dimension = getattr(model, "get_sentence_embedding_dimension", None)
        actual = get_dimension() if callable(get_dimension) else None
        if actual is not None and actual != self._dimension:
            raise DimensionMismatch(
                f"Model {self._settings.model} produces {actual}-dimensional "
                f"vectors, configured dimension is {self._dimension}",
                details={
                    "model": self._settings.model,
                    "expected": self._dimension,
                    "actual": actual,
                },
            )

    async def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        model = await self._ensure_model()
        vectors = await asyncio.to_thread(
            model.encode,
            texts,
            batch_size=self._batch_size,
            normalize_embeddings=self._settings.normalize,
            convert_to_numpy=True,
            show_progress_bar=False,
        )
        return [[float(x) for x in vector] for vector in vectors]
