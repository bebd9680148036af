"""Shared fakes for the embedding provider and vector store."""

from __future__ import annotations

import asyncio
import hashlib
from typing import Any, Sequence

import pytest

from codecontext.errors import EmbeddingError, VectorStoreError
from codecontext.models import SearchResult
from codecontext.registry import ProjectRegistry


class FakeEmbedder:
    """Deterministic 4-dimensional embeddings; can fail on chosen texts."""

    def __init__(self, fail_when=None, delay: float = 0.0):
        self.fail_when = fail_when or (lambda text: False)
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    @property
    def dimension(self) -> int:
        return 4

    @property
    def model_name(self) -> str:
        return "fake"

    async def embed_one(self, text: str) -> list[float]:
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.fail_when(text):
                raise EmbeddingError("boom", status_code=500, body="boom")
            digest = hashlib.sha256(text.encode("utf-8")).digest()
            return [b / 255.0 + 0.01 for b in digest[:4]]
        finally:
            self.in_flight -= 1

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_one(text) for text in texts]

    async def aclose(self) -> None:
        self.closed = True


class FakeVectorStore:
    """In-memory collections with scripted failures and canned search hits."""

    def __init__(self):
        self.collections: dict[str, list[tuple[list[float], dict[str, Any]]]] = {}
        self.canned: dict[str, list[SearchResult]] = {}
        self.created: list[str] = []
        self.dropped: list[str] = []
        self.deleted: list[tuple[str, str]] = []
        self.fail_create = False
        self.fail_insert: set[str] = set()
        self.fail_drop: set[str] = set()
        self.fail_search: set[str] = set()

    async def create_collection(self, name: str, dimension: int) -> None:
        self.created.append(name)
        if self.fail_create:
            raise VectorStoreError("store unavailable")
        self.collections.setdefault(name, [])

    async def insert(
        self,
        collection: str,
        vectors: Sequence[Sequence[float]],
        metadata: Sequence[dict[str, Any]],
    ) -> None:
        assert len(vectors) == len(metadata)
        if any(meta["file_path"].endswith(tuple(self.fail_insert)) for meta in metadata):
            raise VectorStoreError("insert rejected", status_code=400, body="bad")
        self.collections.setdefault(collection, []).extend(
            (list(v), dict(m)) for v, m in zip(vectors, metadata)
        )

    async def search(
        self, collection: str, vector: Sequence[float], limit: int
    ) -> list[SearchResult]:
        if collection in self.fail_search:
            raise VectorStoreError("search failed", status_code=503, body="down")
        if collection in self.canned:
            return [
                SearchResult(score=r.score, metadata=dict(r.metadata))
                for r in self.canned[collection][:limit]
            ]
        entries = self.collections.get(collection, [])
        return [SearchResult(score=1.0, metadata=dict(m)) for _, m in entries[:limit]]

    async def delete_by_file(self, collection: str, file_path: str) -> None:
        self.deleted.append((collection, file_path))
        entries = self.collections.get(collection, [])
        entries[:] = [(v, m) for v, m in entries if m.get("file_path") != file_path]

    async def drop_collection(self, name: str) -> None:
        self.dropped.append(name)
        if name in self.fail_drop:
            raise VectorStoreError("drop failed", status_code=500, body="nope")
        self.collections.pop(name, None)

    async def aclose(self) -> None:
        return None


class FakeClock:
    """Monotonic integer clock advanced by one second per reading."""

    def __init__(self, start: int = 1_000):
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(tmp_path, clock) -> ProjectRegistry:
    return ProjectRegistry(tmp_path / "state" / "snapshot.json", max_projects=3, clock=clock)
