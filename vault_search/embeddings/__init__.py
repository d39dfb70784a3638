"""Embedding provider module."""

from vault_search.embeddings.factory import create_provider
from vault_search.embeddings.gemini import GeminiEmbeddingProvider
from vault_search.embeddings.local import LocalEmbeddingProvider
from vault_search.embeddings.models import EmbeddingResult
from vault_search.embeddings.openai import OpenAIEmbeddingProvider
from vault_search.embeddings.rate_limit import TokenBucketRateLimiter
from vault_search.embeddings.service import EmbeddingProvider, RemoteEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "EmbeddingResult",
    "GeminiEmbeddingProvider",
    "LocalEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "RemoteEmbeddingProvider",
    "TokenBucketRateLimiter",
    "create_provider",
]
