"""Indexing pipeline: corpus in, vector records out."""

import asyncio
import time

from vault_search.context import SearchContext
from vault_search.documents.corpus import CorpusAdapter
from vault_search.documents.models import Document
from vault_search.exceptions import VaultSearchError
from vault_search.indexing.models import BatchFailure, IndexReport
from vault_search.indexing.retry import RetryPolicy, retry_async
from vault_search.logging_config import get_logger
from vault_search.observability.metrics import track_batch_retry, track_indexing_run
from vault_search.vectorstore.models import IndexedRecord

logger = get_logger(__name__)


class IndexingPipeline:
    """Embeds a corpus and writes it to the vector store.

    Runs are incremental: a document whose content hash and provider tag
    match its stored record is skipped unless ``force`` is set. Batches are
    embedded concurrently up to ``indexing.max_workers``.
    """

    def __init__(self, context: SearchContext) -> None:
        """Initialize the pipeline.

        Args:
            context: Shared provider, vector store and settings.
        """
        self._context = context
        self._settings = context.settings.indexing
        self._policy = RetryPolicy.for_indexing(self._settings)

    async def run(
        self,
        corpus: CorpusAdapter,
        *,
        reconcile: bool | None = None,
        force: bool = False,
    ) -> IndexReport:
        """Index every document in ``corpus``.

        Args:
            corpus: Source of documents.
            reconcile: Delete records whose document is no longer in the
                corpus (defaults to ``INDEXING_RECONCILE``).
            force: Re-embed documents even when unchanged.

        Returns:
            IndexReport with counts and any failed batches.

        Raises:
            DimensionConflict: If the index was created with another dimension.
            CorpusError: If the corpus yields invalid or duplicate documents.
            EmbeddingError: On non-retryable provider errors (auth, model load,
                bad request); remaining batches are cancelled.
            VectorStoreError: If a write fails.
        """
        start = time.perf_counter()
        provider = self._context.provider
        store = self._context.vector_store
        provider_tag = provider.provider_tag
        if reconcile is None:
            reconcile = self._settings.reconcile

        await store.create_schema(provider.dimension)
        documents = await asyncio.to_thread(corpus.load)
        stored = await store.fingerprints()

        pending: list[Document] = []
        for document in documents:
            if not force and stored.get(document.id) == (
                document.content_hash(),
                provider_tag,
            ):
                continue
            pending.append(document)
        skipped = len(documents) - len(pending)

        batch_size = provider.batch_size
        batches = [
            pending[i : i + batch_size] for i in range(0, len(pending), batch_size)
        ]
        logger.info(
            f"Indexing {len(pending)} documents in {len(batches)} batches",
            extra={
                "total": len(documents),
                "skipped": skipped,
                "provider_tag": provider_tag,
                "max_workers": self._settings.max_workers,
            },
        )

        failures = await self._process_batches(batches)

        deleted = 0
        if reconcile:
            corpus_ids = {d.id for d in documents}
            for record_id in sorted(set(stored) - corpus_ids):
                await store.delete(record_id)
                deleted += 1

        failures.sort(key=lambda f: f.batch_index)
        failed_docs = sum(len(f.document_ids) for f in failures)
        report = IndexReport(
            total=len(documents),
            indexed=len(pending) - failed_docs,
            skipped=skipped,
            deleted=deleted,
            failed_batches=failures,
            provider_tag=provider_tag,
            duration_seconds=time.perf_counter() - start,
        )
        track_indexing_run(
            duration=report.duration_seconds,
            indexed=report.indexed,
            skipped=report.skipped,
            deleted=report.deleted,
            failed=report.failed,
        )
        logger.info(
            "Indexing run completed",
            extra={
                "indexed": report.indexed,
                "skipped": report.skipped,
                "deleted": report.deleted,
                "failed_batches": len(failures),
                "duration_seconds": round(report.duration_seconds, 3),
            },
        )
        return report

    async def delete_document(self, document_id: str) -> None:
        """Remove the record of a document that left the corpus."""
        await self._context.vector_store.delete(document_id)
        logger.info("Deleted document", extra={"id": document_id})

    async def _process_batches(
        self,
        batches: list[list[Document]],
    ) -> list[BatchFailure]:
        semaphore = asyncio.Semaphore(self._settings.max_workers)
        failures: list[BatchFailure] = []

        async def worker(index: int, batch: list[Document]) -> None:
            async with semaphore:
                failure = await self._index_batch(index, batch)
            if failure is not None:
                failures.append(failure)

        try:
            async with asyncio.TaskGroup() as group:
                for index, batch in enumerate(batches):
                    group.create_task(worker(index, batch))
        except ExceptionGroup as eg:
            # The first fatal error cancelled the rest; surface it as-is
            raise eg.exceptions[0] from None
        return failures

    async def _index_batch(
        self,
        index: int,
        batch: list[Document],
    ) -> BatchFailure | None:
        """Embed one batch and write its records.

        Returns:
            BatchFailure if transient errors outlasted the retry budget.
        """
        provider = self._context.provider
        document_ids = [d.id for d in batch]
        texts = [d.embedding_text() for d in batch]

        try:
            results = await retry_async(
                lambda: provider.embed_many(texts),
                self._policy,
                operation_name=f"embed batch {index}",
                on_retry=lambda _attempt, _error: track_batch_retry(),
            )
        except VaultSearchError as e:
            if not e.retryable:
                e.details.setdefault("batch_index", index)
                e.details.setdefault("document_ids", document_ids)
                raise
            logger.error(
                f"Batch {index} failed after {self._policy.max_attempts} attempts: "
                f"{e.message}",
                extra={"batch_index": index, "document_ids": document_ids},
            )
            return BatchFailure(
                batch_index=index,
                document_ids=document_ids,
                error=e.message,
                error_code=e.code.value,
            )

        # Every vector is in hand before the batch is written as one unit
        records = [
            IndexedRecord.from_document(document, result.embedding, provider.provider_tag)
            for document, result in zip(batch, results)
        ]
        await self._context.vector_store.upsert_many(records)

        logger.debug(
            f"Indexed batch {index}",
            extra={"batch_index": index, "size": len(records)},
        )
        return None
