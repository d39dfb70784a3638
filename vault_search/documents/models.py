"""Document data models."""

import hashlib
import json

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Document(BaseModel):
    """One indexable unit of content.

    Attributes:
        id: Stable identifier, never regenerated for the same logical content.
        title: Display title.
        body: Full text used for embedding.
        folder: Coarse category used for filtering.
        tags: Ordered, de-duplicated labels.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Stable document identifier")
    title: str = Field(description="Document title")
    body: str = Field(description="Full text content")
    folder: str | None = Field(default=None, description="Coarse category")
    tags: list[str] = Field(default_factory=list, description="Ordered tags")

    @field_validator("id", "title", "body")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("folder")
    @classmethod
    def _blank_folder_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for tag in value:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    def embedding_text(self) -> str:
        """Text submitted to the embedding provider at index time."""
        return f"{self.title}\n\n{self.body}"

    def content_hash(self) -> str:
        """SHA-256 over everything that ends up in the indexed record."""
        payload = json.dumps(
            {
                "id": self.id,
                "title": self.title,
                "body": self.body,
                "folder": self.folder,
                "tags": self.tags,
            },
            sort_keys=True,
            ensure_ascii=False,
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()
