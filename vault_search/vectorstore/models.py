"""Vector store data models."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from vault_search.documents.models import Document


class IndexedRecord(BaseModel):
    """A document together with its embedding, as persisted.

    Attributes:
        id: Document id (primary key).
        embedding: Vector produced by the provider named in ``provider_tag``.
        provider_tag: Provider that produced ``embedding``.
        content_hash: Fingerprint of the document content at index time.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Document id")
    title: str = Field(description="Document title")
    body: str = Field(description="Document text")
    folder: str | None = Field(default=None, description="Coarse category")
    tags: list[str] = Field(default_factory=list, description="Ordered tags")
    embedding: list[float] = Field(description="Embedding vector")
    provider_tag: str = Field(description="Provider that produced the vector")
    content_hash: str | None = Field(default=None, description="Content fingerprint")

    @classmethod
    def from_document(
        cls,
        document: Document,
        embedding: list[float],
        provider_tag: str,
    ) -> "IndexedRecord":
        """Stamp a document with its vector and provider tag."""
        return cls(
            id=document.id,
            title=document.title,
            body=document.body,
            folder=document.folder,
            tags=list(document.tags),
            embedding=list(embedding),
            provider_tag=provider_tag,
            content_hash=document.content_hash(),
        )

    def to_document(self) -> Document:
        """Metadata view without the vector."""
        return Document(
            id=self.id,
            title=self.title,
            body=self.body,
            folder=self.folder,
            tags=list(self.tags),
        )


class SearchFilter(BaseModel):
    """Restricts a search to one folder and/or records carrying every tag."""

    folder: str | None = Field(default=None, description="Required folder")
    tags: list[str] = Field(default_factory=list, description="Required tags")

    @property
    def is_empty(self) -> bool:
        return self.folder is None and not self.tags

    def matches(self, folder: str | None, tags: list[str]) -> bool:
        """Check a record's metadata against the filter."""
        if self.folder is not None and folder != self.folder:
            return False
        return all(tag in tags for tag in self.tags)


class SearchResult(BaseModel):
    """Result from a similarity search.

    Attributes:
        document: Matched document metadata.
        similarity: Cosine similarity in [-1, 1] (higher is more relevant).
        matched_by: ``vector`` or, in hybrid mode, ``keyword``.
    """

    document: Document = Field(description="Matched document")
    similarity: float = Field(description="Cosine similarity")
    matched_by: Literal["vector", "keyword"] = Field(
        default="vector",
        description="How the result was found",
    )

    @property
    def id(self) -> str:
        return self.document.id

    def to_payload(self, precision: int = 4) -> dict[str, Any]:
        """JSON-ready view with similarity rounded for stable comparisons."""
        return {
            "id": self.document.id,
            "title": self.document.title,
            "folder": self.document.folder,
            "tags": list(self.document.tags),
            "similarity": round(self.similarity, precision),
        }


class IndexInfo(BaseModel):
    """Summary of what the store currently holds."""

    dimension: int | None = Field(default=None, description="Schema dimension")
    provider_tags: set[str] = Field(
        default_factory=set,
        description="Distinct provider tags among stored records",
    )
    count: int = Field(default=0, description="Number of records")
