"""In-process vector store."""

from collections.abc import Sequence
from contextlib import AsyncExitStack

from vault_search.documents.models import Document
from vault_search.exceptions import (
    DimensionConflict,
    ErrorCode,
    VectorStoreError,
)
from vault_search.logging_config import get_logger
from vault_search.vectorstore.models import IndexedRecord, SearchFilter, SearchResult
from vault_search.vectorstore.service import KeyedLock, VectorStore, check_dimension
from vault_search.vectorstore.similarity import cosine_similarity, rank_results

logger = get_logger(__name__)


class InMemoryVectorStore(VectorStore):
    """Dictionary of immutable records with an exact cosine scan.

    Records are replaced by reference, so a reader sees either the old or
    the new record, never a mix.
    """

    def __init__(self) -> None:
        self._dimension: int | None = None
        self._records: dict[str, IndexedRecord] = {}
        self._locks = KeyedLock()

    async def create_schema(self, dimension: int) -> None:
        if self._dimension is None:
            self._dimension = dimension
            logger.info("Created in-memory schema", extra={"dimension": dimension})
            return
        if self._dimension != dimension:
            raise DimensionConflict(
                f"Schema exists with dimension {self._dimension}, "
                f"requested {dimension}",
                details={"existing": self._dimension, "requested": dimension},
            )

    async def dimension(self) -> int | None:
        return self._dimension

    async def upsert_many(self, records: Sequence[IndexedRecord]) -> None:
        if not records:
            return
        if self._dimension is None:
            raise VectorStoreError(
                "Schema not initialized",
                code=ErrorCode.SCHEMA_NOT_INITIALIZED,
                details={"ids": [r.id for r in records]},
            )
        for record in records:
            check_dimension(record.embedding, self._dimension, id=record.id)

        async with AsyncExitStack() as stack:
            # Sorted acquisition so overlapping batches cannot deadlock
            for record_id in sorted({r.id for r in records}):
                await stack.enter_async_context(self._locks.hold(record_id))
            # No await between swaps: the batch lands whole or not at all
            for record in records:
                self._records[record.id] = record

    async def delete(self, record_id: str) -> None:
        async with self._locks.hold(record_id):
            self._records.pop(record_id, None)

    async def query_similar(
        self,
        vector: list[float],
        limit: int,
        search_filter: SearchFilter | None = None,
    ) -> list[SearchResult]:
        if self._dimension is None or limit < 1:
            return []
        check_dimension(vector, self._dimension)

        results = [
            SearchResult(
                document=record.to_document(),
                similarity=cosine_similarity(vector, record.embedding),
            )
            for record in self._snapshot(search_filter)
        ]
        return rank_results(results)[:limit]

    async def list_all(self) -> list[Document]:
        return [record.to_document() for record in self._snapshot()]

    async def get_by_id(self, record_id: str) -> Document | None:
        record = self._records.get(record_id)
        return record.to_document() if record is not None else None

    async def get_record(self, record_id: str) -> IndexedRecord | None:
        """Full record including the vector."""
        return self._records.get(record_id)

    async def list_folders(self) -> list[str]:
        return sorted(
            {r.folder for r in self._records.values() if r.folder is not None}
        )

    async def scan(self, search_filter: SearchFilter | None = None) -> list[Document]:
        return [record.to_document() for record in self._snapshot(search_filter)]

    async def fingerprints(self) -> dict[str, tuple[str | None, str]]:
        return {
            record.id: (record.content_hash, record.provider_tag)
            for record in list(self._records.values())
        }

    async def count(self) -> int:
        return len(self._records)

    async def foreign_provider_tags(self, provider_tag: str) -> set[str]:
        return {
            r.provider_tag
            for r in list(self._records.values())
            if r.provider_tag != provider_tag
        }

    def _snapshot(self, search_filter: SearchFilter | None = None) -> list[IndexedRecord]:
        records = sorted(self._records.values(), key=lambda r: r.id)
        if search_filter is None or search_filter.is_empty:
            return records
        return [r for r in records if search_filter.matches(r.folder, r.tags)]
