"""Qdrant vector store implementation."""

import time
import uuid
from collections.abc import AsyncIterator, Sequence
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PayloadSchemaType,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from vault_search.config import VectorStoreSettings, get_settings
from vault_search.documents.models import Document
from vault_search.exceptions import (
    DimensionConflict,
    ErrorCode,
    VectorStoreError,
)
from vault_search.logging_config import get_logger
from vault_search.observability.metrics import track_vectorstore_operation
from vault_search.vectorstore.models import IndexedRecord, SearchFilter, SearchResult
from vault_search.vectorstore.service import KeyedLock, VectorStore, check_dimension
from vault_search.vectorstore.similarity import (
    cosine_similarity,
    rank_results,
    vector_norm,
)

logger = get_logger(__name__)

_POINT_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "vault-search")
_SCROLL_PAGE = 256
# Extra candidates fetched so equal scores at the cut-off still sort by id
_CANDIDATE_PADDING = 16
_FOREIGN_TAG_SAMPLE = 64
_INDEXED_FIELDS = ("doc_id", "folder", "tags", "provider_tag")


def point_id(record_id: str) -> str:
    """Qdrant point id for a document id (Qdrant only accepts UUIDs or ints)."""
    return str(uuid.uuid5(_POINT_NAMESPACE, record_id))


class QdrantVectorStore(VectorStore):
    """Vector store on a Qdrant collection.

    Works against a Qdrant server (``url``), an embedded on-disk store
    (``path``) or an in-process ``:memory:`` instance. Candidates returned by
    Qdrant are re-scored locally so zero vectors score 0 and equal scores are
    ordered by id.
    """

    def __init__(
        self,
        settings: VectorStoreSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant vector store.

        Args:
            settings: Vector store configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().vector_store
        self._client = client
        self._owns_client = client is None
        self._dimension: int | None = None
        self._locks = KeyedLock()

    @property
    def collection(self) -> str:
        return self._settings.collection_name

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            if self._settings.url:
                api_key = None
                if self._settings.api_key:
                    api_key = self._settings.api_key.get_secret_value()
                self._client = AsyncQdrantClient(url=self._settings.url, api_key=api_key)
            elif self._settings.path:
                self._client = AsyncQdrantClient(path=self._settings.path)
            else:
                self._client = AsyncQdrantClient(location=":memory:")
        return self._client

    async def open(self) -> None:
        await self._get_client()
        self._dimension = await self._read_dimension()

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    @asynccontextmanager
    async def _operation(self, name: str, **context: Any) -> AsyncIterator[AsyncQdrantClient]:
        """Time a call and wrap unexpected client errors."""
        client = await self._get_client()
        start = time.perf_counter()
        success = False
        try:
            yield client
            success = True
        except VectorStoreError:
            raise
        except Exception as e:
            raise VectorStoreError(
                f"Qdrant {name} failed: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "error": str(e), **context},
            ) from e
        finally:
            track_vectorstore_operation(name, time.perf_counter() - start, success)

    async def _read_dimension(self) -> int | None:
        async with self._operation("get_collection") as client:
            if not await client.collection_exists(self.collection):
                return None
            info = await client.get_collection(self.collection)
            vectors = info.config.params.vectors
            return int(vectors.size)  # type: ignore[union-attr]

    async def create_schema(self, dimension: int) -> None:
        existing = await self._read_dimension()
        if existing is not None:
            if existing != dimension:
                raise DimensionConflict(
                    f"Collection {self.collection} has dimension {existing}, "
                    f"requested {dimension}",
                    details={
                        "collection": self.collection,
                        "existing": existing,
                        "requested": dimension,
                    },
                )
            self._dimension = existing
            return

        async with self._operation("create_collection") as client:
            await client.create_collection(
                collection_name=self.collection,
                vectors_config=VectorParams(size=dimension, distance=Distance.COSINE),
            )
            for field in _INDEXED_FIELDS:
                await client.create_payload_index(
                    collection_name=self.collection,
                    field_name=field,
                    field_schema=PayloadSchemaType.KEYWORD,
                )
        self._dimension = dimension
        logger.info(
            f"Created collection: {self.collection}",
            extra={"dimensions": dimension},
        )

    async def dimension(self) -> int | None:
        if self._dimension is None:
            self._dimension = await self._read_dimension()
        return self._dimension

    async def upsert_many(self, records: Sequence[IndexedRecord]) -> None:
        if not records:
            return
        ids = [r.id for r in records]
        dimension = await self.dimension()
        if dimension is None:
            raise VectorStoreError(
                "Schema not initialized",
                code=ErrorCode.SCHEMA_NOT_INITIALIZED,
                details={"collection": self.collection, "ids": ids},
            )
        for record in records:
            check_dimension(record.embedding, dimension, id=record.id)

        points = [
            PointStruct(
                id=point_id(record.id),
                vector=record.embedding,
                payload=_payload(record),
            )
            for record in records
        ]
        async with AsyncExitStack() as stack:
            for record_id in sorted(set(ids)):
                await stack.enter_async_context(self._locks.hold(record_id))
            # One request for the whole batch
            async with self._operation("upsert", ids=ids) as client:
                await client.upsert(
                    collection_name=self.collection,
                    points=points,
                    wait=True,
                )

    async def delete(self, record_id: str) -> None:
        if await self.dimension() is None:
            return
        async with self._locks.hold(record_id):
            async with self._operation("delete", id=record_id) as client:
                await client.delete(
                    collection_name=self.collection,
                    points_selector=PointIdsList(points=[point_id(record_id)]),
                    wait=True,
                )

    async def query_similar(
        self,
        vector: list[float],
        limit: int,
        search_filter: SearchFilter | None = None,
    ) -> list[SearchResult]:
        dimension = await self.dimension()
        if dimension is None or limit < 1:
            return []
        check_dimension(vector, dimension)

        if vector_norm(vector) == 0.0:
            # Every record scores 0 against a zero query
            documents = await self.scan(search_filter)
            return [SearchResult(document=d, similarity=0.0) for d in documents[:limit]]

        async with self._operation("query") as client:
            response = await client.query_points(
                collection_name=self.collection,
                query=vector,
                limit=limit + _CANDIDATE_PADDING,
                query_filter=_build_filter(search_filter),
                with_payload=True,
                with_vectors=True,
            )

        results = []
        for point in response.points:
            payload = dict(point.payload or {})
            stored = point.vector if isinstance(point.vector, list) else []
            similarity = (
                cosine_similarity(vector, stored) if len(stored) == len(vector) else 0.0
            )
            results.append(
                SearchResult(document=_document(payload), similarity=similarity)
            )
        return rank_results(results)[:limit]

    async def list_all(self) -> list[Document]:
        return await self.scan()

    async def get_by_id(self, record_id: str) -> Document | None:
        if await self.dimension() is None:
            return None
        async with self._operation("retrieve", id=record_id) as client:
            points = await client.retrieve(
                collection_name=self.collection,
                ids=[point_id(record_id)],
                with_payload=True,
                with_vectors=False,
            )
        if not points:
            return None
        return _document(dict(points[0].payload or {}))

    async def list_folders(self) -> list[str]:
        payloads = await self._scroll(with_payload=["folder"])
        return sorted({p["folder"] for p in payloads if p.get("folder")})

    async def scan(self, search_filter: SearchFilter | None = None) -> list[Document]:
        payloads = await self._scroll(search_filter=search_filter)
        documents = [_document(p) for p in payloads]
        return sorted(documents, key=lambda d: d.id)

    async def fingerprints(self) -> dict[str, tuple[str | None, str]]:
        payloads = await self._scroll(
            with_payload=["doc_id", "content_hash", "provider_tag"]
        )
        return {
            p["doc_id"]: (p.get("content_hash"), p.get("provider_tag", ""))
            for p in payloads
        }

    async def count(self) -> int:
        return await self._count()

    async def foreign_provider_tags(self, provider_tag: str) -> set[str]:
        foreign = Filter(
            must_not=[
                FieldCondition(key="provider_tag", match=MatchValue(value=provider_tag))
            ]
        )
        if await self._count(foreign) == 0:
            return set()
        # A sample is enough to name the offending providers
        async with self._operation("scroll") as client:
            points, _ = await client.scroll(
                collection_name=self.collection,
                scroll_filter=foreign,
                limit=_FOREIGN_TAG_SAMPLE,
                with_payload=["provider_tag"],
                with_vectors=False,
            )
        return {str((p.payload or {}).get("provider_tag", "")) for p in points}

    async def _count(self, count_filter: Filter | None = None) -> int:
        if await self.dimension() is None:
            return 0
        async with self._operation("count") as client:
            result = await client.count(
                collection_name=self.collection,
                count_filter=count_filter,
                exact=True,
            )
        return int(result.count)

    async def _scroll(
        self,
        search_filter: SearchFilter | None = None,
        with_payload: bool | list[str] = True,
    ) -> list[dict[str, Any]]:
        if await self.dimension() is None:
            return []

        payloads: list[dict[str, Any]] = []
        offset = None
        async with self._operation("scroll") as client:
            while True:
                points, offset = await client.scroll(
                    collection_name=self.collection,
                    scroll_filter=_build_filter(search_filter),
                    limit=_SCROLL_PAGE,
                    offset=offset,
                    with_payload=with_payload,
                    with_vectors=False,
                )
                payloads.extend(dict(p.payload or {}) for p in points)
                if offset is None:
                    break
        return payloads


def _payload(record: IndexedRecord) -> dict[str, Any]:
    return {
        "doc_id": record.id,
        "title": record.title,
        "body": record.body,
        "folder": record.folder,
        "tags": list(record.tags),
        "provider_tag": record.provider_tag,
        "content_hash": record.content_hash,
    }


def _document(payload: dict[str, Any]) -> Document:
    return Document(
        id=payload["doc_id"],
        title=payload["title"],
        body=payload["body"],
        folder=payload.get("folder"),
        tags=list(payload.get("tags") or []),
    )


def _build_filter(search_filter: SearchFilter | None) -> Filter | None:
    if search_filter is None or search_filter.is_empty:
        return None
    conditions = []
    if search_filter.folder is not None:
        conditions.append(
            FieldCondition(key="folder", match=MatchValue(value=search_filter.folder))
        )
    # One condition per tag: a record must carry all of them
    for tag in search_filter.tags:
        conditions.append(FieldCondition(key="tags", match=MatchValue(value=tag)))
    return Filter(must=conditions)  # type: ignore[arg-type]
