"""Vector store interface."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from vault_search.documents.models import Document
from vault_search.exceptions import DimensionMismatch
from vault_search.vectorstore.models import (
    IndexedRecord,
    IndexInfo,
    SearchFilter,
    SearchResult,
)


class KeyedLock:
    """One ``asyncio.Lock`` per key, dropped once nobody holds or waits on it.

    Writers to the same key are serialized; different keys never contend.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class VectorStore(ABC):
    """Abstract base class for vector stores.

    Persists ``IndexedRecord`` rows keyed by document id and answers cosine
    similarity queries. Writes to one id are serialized; reads take no lock
    and always observe whole records.
    """

    async def open(self) -> None:
        """Connect to the backing store."""

    async def close(self) -> None:
        """Release the connection."""

    @abstractmethod
    async def create_schema(self, dimension: int) -> None:
        """Create the record table for vectors of ``dimension``.

        Idempotent for the same dimension.

        Raises:
            DimensionConflict: If a schema exists with another dimension.
        """
        ...

    @abstractmethod
    async def dimension(self) -> int | None:
        """Dimension of the existing schema, None when there is none."""
        ...

    async def upsert(self, record: IndexedRecord) -> None:
        """Insert or overwrite a record by id, atomically.

        Raises:
            DimensionMismatch: If the vector length differs from the schema.
            VectorStoreError: If no schema exists.
        """
        await self.upsert_many([record])

    @abstractmethod
    async def upsert_many(self, records: Sequence[IndexedRecord]) -> None:
        """Write a group of records as one unit.

        Every record is validated before anything is written, and the
        records become visible together. A cancelled call leaves either all
        of them or none of them stored.

        Raises:
            DimensionMismatch: If any vector length differs from the schema.
            VectorStoreError: If no schema exists.
        """
        ...

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Remove a record; no-op if absent."""
        ...

    @abstractmethod
    async def query_similar(
        self,
        vector: list[float],
        limit: int,
        search_filter: SearchFilter | None = None,
    ) -> list[SearchResult]:
        """Rank records matching the filter by cosine similarity.

        Returns:
            Up to ``limit`` results, similarity descending, ties by id.

        Raises:
            DimensionMismatch: If ``vector`` length differs from the schema.
        """
        ...

    @abstractmethod
    async def list_all(self) -> list[Document]:
        """All stored documents, ordered by id."""
        ...

    @abstractmethod
    async def get_by_id(self, record_id: str) -> Document | None:
        """Stored document or None."""
        ...

    @abstractmethod
    async def list_folders(self) -> list[str]:
        """Distinct non-null folders, sorted."""
        ...

    @abstractmethod
    async def scan(self, search_filter: SearchFilter | None = None) -> list[Document]:
        """Documents matching a filter, ordered by id (keyword matching)."""
        ...

    @abstractmethod
    async def fingerprints(self) -> dict[str, tuple[str | None, str]]:
        """Map of id to ``(content_hash, provider_tag)`` for every record."""
        ...

    async def list_ids(self) -> set[str]:
        """Ids of every stored record."""
        return set(await self.fingerprints())

    async def count(self) -> int:
        """Number of stored records."""
        return len(await self.fingerprints())

    async def foreign_provider_tags(self, provider_tag: str) -> set[str]:
        """Provider tags of stored records other than ``provider_tag``.

        Empty when every record was embedded by that provider.
        """
        fingerprints = await self.fingerprints()
        return {tag for _, tag in fingerprints.values()} - {provider_tag}

    async def index_info(self) -> IndexInfo:
        """Schema dimension, distinct provider tags and record count."""
        fingerprints = await self.fingerprints()
        return IndexInfo(
            dimension=await self.dimension(),
            provider_tags={tag for _, tag in fingerprints.values()},
            count=len(fingerprints),
        )


def check_dimension(vector: list[float], dimension: int, **context: object) -> None:
    """Raise DimensionMismatch unless ``vector`` has ``dimension`` entries."""
    if len(vector) != dimension:
        raise DimensionMismatch(
            f"Vector has {len(vector)} dimensions, index has {dimension}",
            details={"expected": dimension, "actual": len(vector), **context},
        )
