"""Shared fixtures: deterministic embeddings, in-memory stores and sources."""

import hashlib
import math
import re
import uuid

import pytest

from src.embedding.provider import EmbeddingProvider
from src.history.store import ConversationHistory
from src.ingestion.file_source import FileSource
from src.models.source_file import RepoFile, SourceFile
from src.retrieval.search import SearchEngine
from src.vectorstore.chroma_store import ChromaStore


def bag_of_words(text: str, dimension: int) -> list[float]:
    """Hash words into buckets; texts sharing words end up close."""
    vector = [0.0] * dimension
    for token in re.findall(r"\w+", text.lower()):
        bucket = int(hashlib.md5(token.encode()).hexdigest(), 16) % (dimension - 1)
        vector[bucket] += 1.0
    vector[-1] = 0.5
    norm = math.sqrt(sum(v * v for v in vector))
    return [v / norm for v in vector]


class FakeEmbeddingProvider(EmbeddingProvider):
    """Deterministic embeddings; specific texts can be pinned to vectors."""

    def __init__(self, dimension: int = 32, vectors: dict | None = None):
        self._dimension = dimension
        self.vectors = dict(vectors or {})
        self.calls: list[list[str]] = []

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            raise ValueError("texts must not be empty")
        self.calls.append(list(texts))
        return [self.vectors.get(t) or bag_of_words(t, self._dimension) for t in texts]

    @property
    def dimension(self) -> int:
        return self._dimension


class InMemoryFileSource(FileSource):
    """File source over a dict of path -> content."""

    def __init__(self, files: dict[str, str], unreadable: set[str] | None = None, batch_size: int = 2):
        super().__init__(batch_size=batch_size, batch_delay=0.0)
        self.files = dict(files)
        self.unreadable = set(unreadable or ())

    def list_files(self) -> list[SourceFile]:
        return [SourceFile(path=p) for p in sorted(self.files)]

    def fetch_file(self, path: str) -> RepoFile | None:
        if path in self.unreadable:
            return None
        return RepoFile(path=path, content=self.files[path])


@pytest.fixture
def embedder():
    return FakeEmbeddingProvider()


@pytest.fixture
def make_embedder():
    return FakeEmbeddingProvider


@pytest.fixture
def make_source():
    return InMemoryFileSource


@pytest.fixture
def make_store():
    """Factory for isolated in-memory stores (collections share one process-wide client)."""
    stores = []

    def _make(dimension: int | None = None) -> ChromaStore:
        store = ChromaStore(
            path=":memory:",
            collection_name=f"test_{uuid.uuid4().hex}",
            dimension=dimension,
        )
        stores.append(store)
        return store

    yield _make
    for store in stores:
        store.close()


@pytest.fixture
def store(make_store, embedder):
    return make_store(embedder.dimension)


@pytest.fixture
def search_engine(store, embedder):
    return SearchEngine(store, embedder)


@pytest.fixture
def history():
    with ConversationHistory("sqlite://", max_messages=100) as h:
        yield h
