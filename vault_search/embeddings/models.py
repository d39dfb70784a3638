"""Embedding data models."""

from pydantic import BaseModel, Field, field_validator


class EmbeddingResult(BaseModel):
    """One embedded text.

    Attributes:
        text: The text that was embedded.
        embedding: The embedding vector.
        provider_tag: Provider that produced the vector.
    """

    text: str = Field(description="Original text")
    embedding: list[float] = Field(description="Embedding vector")
    provider_tag: str = Field(description="Provider that produced the vector")

    @field_validator("embedding")
    @classmethod
    def validate_embedding(cls, v: list[float]) -> list[float]:
        if not v:
            raise ValueError("embedding must not be empty")
        return v

    @property
    def dimensions(self) -> int:
        return len(self.embedding)
