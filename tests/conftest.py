"""
Shared test fixtures.

Provides: a deterministic fake embedding provider, a temporary library
store, and helpers for seeding documents with hand-picked vectors.
"""

import hashlib
import math
import threading

import numpy as np
import pytest

from docrecall.embedders import EmbeddingClient
from docrecall.lifecycle import DocumentLifecycle
from docrecall.models import Document
from docrecall.search import SearchEngine
from docrecall.storage import LibraryStore


DIMENSION = 16


class FakeEmbedder:
    """Bag-of-words hashing embedder; records every text it is asked to embed.

    Explicit vectors can be pinned per text, and specific texts can be made
    to fail.
    """

    def __init__(self, dimension: int = DIMENSION, vectors=None, fail_on=()):
        self._dimension = dimension
        self.vectors = dict(vectors or {})
        self.fail_on = set(fail_on)
        self.calls: list[str] = []
        self._lock = threading.Lock()

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return "fake-embedder"

    def embed(self, texts: list[str]) -> np.ndarray:
        with self._lock:
            self.calls.extend(texts)
        rows = []
        for text in texts:
            if text in self.fail_on:
                raise RuntimeError(f"rate limited on {text!r}")
            if text in self.vectors:
                rows.append(np.asarray(self.vectors[text], dtype=np.float32))
                continue
            vector = np.zeros(self._dimension, dtype=np.float32)
            for word in text.lower().split():
                digest = hashlib.md5(word.encode("utf-8")).digest()
                vector[digest[0] % self._dimension] += 1.0
            norm = np.linalg.norm(vector)
            rows.append(vector / norm if norm else vector)
        return np.vstack(rows)


def unit_vector(similarity: float) -> np.ndarray:
    """Unit vector whose cosine similarity with QUERY is `similarity`.

    Only the first two components are used; the rest stay zero so the
    vector matches the fake provider's dimension.
    """
    vector = np.zeros(DIMENSION, dtype=np.float32)
    vector[0] = similarity
    vector[1] = math.sqrt(max(0.0, 1.0 - similarity**2))
    return vector


QUERY = unit_vector(1.0)


@pytest.fixture
def store(tmp_path) -> LibraryStore:
    """Fresh library store in a temporary directory."""
    library = LibraryStore(tmp_path / "library.db")
    library.initialize()
    return library


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def client(embedder) -> EmbeddingClient:
    return EmbeddingClient(embedder, max_workers=4)


@pytest.fixture
def lifecycle(store, client) -> DocumentLifecycle:
    return DocumentLifecycle(store, client)


@pytest.fixture
def engine(store, client) -> SearchEngine:
    return SearchEngine(store, client)


@pytest.fixture
def add_document(store):
    """Insert a document row directly, without chunks."""

    def _add(doc_id: str, owner_id: str = "alice", title: str = None, content: str = "text"):
        doc = Document(
            id=doc_id,
            owner_id=owner_id,
            title=title or f"Title {doc_id}",
            content=content,
        )
        store.insert_document(doc)
        return doc

    return _add


@pytest.fixture
def seed_scores(store, add_document):
    """Give a document one chunk per similarity score (against QUERY)."""

    def _seed(doc_id: str, scores, owner_id: str = "alice"):
        add_document(doc_id, owner_id=owner_id)
        return [
            store.create_chunk(doc_id, f"{doc_id} chunk {i}", unit_vector(score), i)
            for i, score in enumerate(scores)
        ]

    return _seed
