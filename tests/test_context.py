"""Tests for SearchContext lifecycle."""

from unittest.mock import AsyncMock

import pytest

from vault_search.config import Settings
from vault_search.context import SearchContext
from vault_search.embeddings.local import LocalEmbeddingProvider
from vault_search.embeddings.rate_limit import TokenBucketRateLimiter
from vault_search.exceptions import ModelLoadError
from vault_search.vectorstore import InMemoryVectorStore


class TestSearchContext:
    """Tests for opening and closing shared resources."""

    async def test_builds_from_settings(
        self,
        settings: Settings,
        provider: LocalEmbeddingProvider,
    ) -> None:
        """Missing components are built from settings."""
        context = SearchContext(settings, provider=provider)

        assert isinstance(context.vector_store, InMemoryVectorStore)
        assert isinstance(context.rate_limiter, TokenBucketRateLimiter)
        assert context.provider is provider
        assert context.is_open is False

    async def test_async_with(
        self,
        settings: Settings,
        provider: LocalEmbeddingProvider,
        store: InMemoryVectorStore,
    ) -> None:
        """The context opens on enter and closes on exit."""
        context = SearchContext(settings, provider=provider, vector_store=store)

        async with context as opened:
            assert opened is context
            assert context.is_open

        assert context.is_open is False

    async def test_open_is_idempotent(
        self,
        settings: Settings,
        provider: LocalEmbeddingProvider,
    ) -> None:
        """Opening twice touches the store once."""
        store = AsyncMock(spec=InMemoryVectorStore)
        context = SearchContext(settings, provider=provider, vector_store=store)

        await context.open()
        await context.open()
        await context.close()
        await context.close()

        store.open.assert_awaited_once()
        store.close.assert_awaited_once()

    async def test_store_closed_when_provider_fails(
        self,
        settings: Settings,
        provider: LocalEmbeddingProvider,
    ) -> None:
        """A provider that cannot load releases the already-open store."""
        store = AsyncMock(spec=InMemoryVectorStore)
        provider.open = AsyncMock(  # type: ignore[method-assign]
            side_effect=ModelLoadError("no such model")
        )
        context = SearchContext(settings, provider=provider, vector_store=store)

        with pytest.raises(ModelLoadError):
            await context.open()

        store.close.assert_awaited_once()
        assert context.is_open is False
