"""Indexing run data models."""

from pydantic import BaseModel, Field


class BatchFailure(BaseModel):
    """A batch whose embedding still failed after every retry.

    Attributes:
        batch_index: Position of the batch in the run.
        document_ids: Documents in the batch; none of them were written.
        error: Message of the last error.
        error_code: Structured code of the last error.
    """

    batch_index: int = Field(ge=0, description="Batch position in the run")
    document_ids: list[str] = Field(description="Documents not indexed")
    error: str = Field(description="Last error message")
    error_code: str = Field(description="Last error code")


class IndexReport(BaseModel):
    """Outcome of one indexing run.

    Attributes:
        total: Documents enumerated from the corpus.
        indexed: Documents embedded and written.
        skipped: Documents unchanged since the last run.
        deleted: Records removed because their document left the corpus.
        failed_batches: Batches that exhausted their retries.
        provider_tag: Provider that produced the vectors.
        duration_seconds: Wall-clock duration of the run.
    """

    total: int = Field(default=0, ge=0)
    indexed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    deleted: int = Field(default=0, ge=0)
    failed_batches: list[BatchFailure] = Field(default_factory=list)
    provider_tag: str = Field(description="Provider tag stamped on new records")
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def failed(self) -> int:
        """Documents left unindexed by failed batches."""
        return sum(len(f.document_ids) for f in self.failed_batches)

    @property
    def succeeded(self) -> bool:
        return not self.failed_batches
