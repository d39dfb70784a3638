"""Pytest configuration and shared fixtures."""

import hashlib
import re
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from vault_search.api.app import create_app
from vault_search.config import (
    EmbeddingSettings,
    IndexingSettings,
    LocalEmbeddingSettings,
    RateLimitSettings,
    SearchSettings,
    Settings,
    VectorStoreBackend,
    VectorStoreSettings,
)
from vault_search.context import SearchContext
from vault_search.documents.models import Document
from vault_search.embeddings.local import LocalEmbeddingProvider
from vault_search.vectorstore.memory import InMemoryVectorStore

DIMENSION = 16

_TOKEN = re.compile(r"[a-z0-9]+")
_STOP_WORDS = {
    "a", "an", "and", "do", "for", "how", "i", "in", "is", "it", "my", "of",
    "on", "the", "to", "what", "with",
}  # fmt: skip
# Topic axes 0-2; every other token is hashed onto axes 3..DIMENSION-1
_TOPICS = {
    "app": 0,
    "container": 0,
    "deploy": 0,
    "deploying": 0,
    "docker": 0,
    "image": 0,
    "run": 0,
    "autoscaling": 1,
    "cluster": 1,
    "kubernete": 1,
    "pod": 1,
    "scaling": 1,
    "baking": 2,
    "bread": 2,
    "flour": 2,
    "yeast": 2,
}


class FakeSentenceModel:
    """Stands in for a SentenceTransformer: bag of topic words, deterministic."""

    def __init__(self, dimension: int = DIMENSION) -> None:
        self.dimension = dimension
        self.calls: list[list[str]] = []

    def get_sentence_embedding_dimension(self) -> int:
        return self.dimension

    def encode(
        self,
        texts: list[str],
        batch_size: int = 32,
        normalize_embeddings: bool = False,
        convert_to_numpy: bool = True,
        show_progress_bar: bool = False,
    ) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(text, normalize_embeddings) for text in texts]

    def _vector(self, text: str, normalize: bool) -> list[float]:
        vector = [0.0] * self.dimension
        for token in _TOKEN.findall(text.lower()):
            if len(token) > 3 and token.endswith("s"):
                token = token[:-1]
            if len(token) < 2 or token in _STOP_WORDS:
                continue
            if token in _TOPICS:
                axis = _TOPICS[token]
            else:
                digest = int(hashlib.md5(token.encode()).hexdigest(), 16)
                axis = 3 + digest % (self.dimension - 3)
            vector[axis] += 1.0
        if normalize:
            norm = sum(x * x for x in vector) ** 0.5
            if norm:
                vector = [x / norm for x in vector]
        return vector


@pytest.fixture
def settings() -> Settings:
    """Settings for an in-memory engine with a small local model."""
    return Settings(
        embedding=EmbeddingSettings(dimension=DIMENSION, batch_size=2),
        local_embedding=LocalEmbeddingSettings(model="fake-model"),
        rate_limit=RateLimitSettings(requests_per_minute=0),
        vector_store=VectorStoreSettings(backend=VectorStoreBackend.MEMORY),
        indexing=IndexingSettings(
            max_workers=2,
            max_attempts=3,
            initial_backoff=0.0,
            max_backoff=0.0,
            batch_timeout=5.0,
        ),
        search=SearchSettings(query_timeout=5.0, max_attempts=2),
    )


@pytest.fixture
def fake_model() -> FakeSentenceModel:
    return FakeSentenceModel()


@pytest.fixture
def provider(settings: Settings, fake_model: FakeSentenceModel) -> LocalEmbeddingProvider:
    return LocalEmbeddingProvider(
        settings.local_embedding,
        settings.embedding,
        model=fake_model,
    )


@pytest.fixture
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
async def context(
    settings: Settings,
    provider: LocalEmbeddingProvider,
    store: InMemoryVectorStore,
) -> AsyncGenerator[SearchContext, None]:
    """Open search context over the fake model and the in-memory store."""
    async with SearchContext(settings, provider=provider, vector_store=store) as ctx:
        yield ctx


@pytest.fixture
def sample_documents() -> list[Document]:
    """Three documents on unrelated topics."""
    return [
        Document(
            id="a",
            title="Deploying with Docker",
            body="containers and images",
            folder="devops",
            tags=["docker", "containers"],
        ),
        Document(
            id="b",
            title="Kubernetes scaling",
            body="pods and autoscaling",
            folder="devops",
            tags=["kubernetes"],
        ),
        Document(
            id="c",
            title="Baking bread",
            body="flour and yeast",
            folder="kitchen",
            tags=["recipes"],
        ),
    ]


@pytest.fixture
async def client(context: SearchContext) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    Yields:
        AsyncClient configured for testing.
    """
    app = create_app(context)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
