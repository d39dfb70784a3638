"""Query engine: natural-language query in, ranked documents out."""

import time

from vault_search.context import SearchContext
from vault_search.exceptions import (
    DimensionMismatch,
    ProviderMismatch,
    ProviderUnavailable,
    ValidationError,
)
from vault_search.indexing.retry import RetryPolicy, retry_async
from vault_search.logging_config import get_logger
from vault_search.observability.metrics import track_search_request
from vault_search.search.keyword import KeywordIndex, query_terms
from vault_search.vectorstore.models import SearchFilter, SearchResult

logger = get_logger(__name__)


class QueryEngine:
    """Answers queries against the index built by ``IndexingPipeline``.

    Queries are read-only and independent of each other; any number may run
    concurrently with each other and with indexing.
    """

    def __init__(self, context: SearchContext) -> None:
        """Initialize the query engine.

        Args:
            context: Shared provider, vector store and settings.
        """
        self._context = context
        self._settings = context.settings.search
        self._policy = RetryPolicy.for_search(self._settings)

    async def search(
        self,
        query: str,
        limit: int | None = None,
        search_filter: SearchFilter | None = None,
    ) -> list[SearchResult]:
        """Rank indexed documents by semantic similarity to ``query``.

        Args:
            query: Natural-language query.
            limit: Maximum results (defaults to ``SEARCH_DEFAULT_LIMIT``,
                capped at ``SEARCH_MAX_LIMIT``).
            search_filter: Optional folder/tag restriction.

        Returns:
            Results ordered by similarity descending, ties by id ascending.
            Empty for a blank query or an empty index.

        Raises:
            ValidationError: If ``limit`` is less than 1.
            ProviderMismatch: If the index was built by a different provider.
            DimensionMismatch: If the index dimension differs from the provider's.
            ProviderUnavailable: If the provider stays unreachable.
            EmbeddingError: On other provider errors.
        """
        query = query.strip()
        if not query:
            return []

        if limit is None:
            limit = self._settings.default_limit
        if limit < 1:
            raise ValidationError(
                f"limit must be at least 1, got {limit}",
                details={"limit": limit},
            )
        limit = min(limit, self._settings.max_limit)

        start = time.perf_counter()
        try:
            results = await self._search(query, limit, search_filter)
        except Exception:
            track_search_request(time.perf_counter() - start, 0, None, status="error")
            raise

        top = results[0].similarity if results else None
        track_search_request(time.perf_counter() - start, len(results), top)
        logger.info(
            "Search completed",
            extra={
                "query_length": len(query),
                "limit": limit,
                "results": len(results),
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return results

    async def _search(
        self,
        query: str,
        limit: int,
        search_filter: SearchFilter | None,
    ) -> list[SearchResult]:
        provider = self._context.provider
        store = self._context.vector_store

        if await store.count() == 0:
            return []
        foreign = await store.foreign_provider_tags(provider.provider_tag)
        if foreign:
            raise ProviderMismatch(
                "Index was built by a different embedding provider; reindex first",
                details={
                    "index_provider_tags": sorted(foreign),
                    "query_provider_tag": provider.provider_tag,
                },
            )
        dimension = await store.dimension()
        if dimension != provider.dimension:
            raise DimensionMismatch(
                f"Index dimension {dimension} does not match provider "
                f"dimension {provider.dimension}",
                details={
                    "expected": dimension,
                    "actual": provider.dimension,
                    "provider_tag": provider.provider_tag,
                },
            )

        try:
            embedded = await retry_async(
                lambda: provider.embed(query),
                self._policy,
                operation_name="embed query",
            )
        except ProviderUnavailable as e:
            raise ProviderUnavailable(
                f"Embedding provider unavailable: {e.message}",
                details={**e.details, "provider_tag": provider.provider_tag},
            ) from e

        results = await store.query_similar(embedded.embedding, limit, search_filter)
        if self._settings.hybrid:
            floor = self._settings.hybrid_min_similarity
            results = [r for r in results if r.similarity >= floor]
            if len(results) < limit:
                results = await self._append_keyword_matches(
                    query, results, limit, search_filter
                )
        return results

    async def _append_keyword_matches(
        self,
        query: str,
        results: list[SearchResult],
        limit: int,
        search_filter: SearchFilter | None,
    ) -> list[SearchResult]:
        """Fill remaining slots with keyword-only matches, ranked after vectors."""
        terms = query_terms(query)
        if not terms:
            return results

        documents = await self._context.vector_store.scan(search_filter)
        scores = KeywordIndex(documents).scores(terms)
        seen = {r.id for r in results}
        scored = [
            (scores[d.id], d)
            for d in documents
            if d.id not in seen and d.id in scores
        ]
        scored.sort(key=lambda item: (-item[0], item[1].id))

        ceiling = results[-1].similarity if results else 1.0
        weight = self._settings.keyword_weight
        extra = [
            SearchResult(
                document=document,
                similarity=min(weight * score, ceiling),
                matched_by="keyword",
            )
            for score, document in scored[: limit - len(results)]
        ]
        return results + extra
