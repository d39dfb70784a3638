"""Build the configured vector store."""

from vault_search.config import Settings, VectorStoreBackend
from vault_search.exceptions import ConfigurationError
from vault_search.vectorstore.memory import InMemoryVectorStore
from vault_search.vectorstore.qdrant import QdrantVectorStore
from vault_search.vectorstore.service import VectorStore


def create_vector_store(settings: Settings) -> VectorStore:
    """Instantiate the backend selected by ``VECTORSTORE_BACKEND``.

    Raises:
        ConfigurationError: If the backend is unknown.
    """
    backend = settings.vector_store.backend
    if backend == VectorStoreBackend.MEMORY:
        return InMemoryVectorStore()
    if backend == VectorStoreBackend.QDRANT:
        return QdrantVectorStore(settings.vector_store)
    raise ConfigurationError(
        f"Unknown vector store backend: {backend}",
        details={"backend": str(backend)},
    )
