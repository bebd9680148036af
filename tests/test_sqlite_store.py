"""Tests for codecontext.storage.sqlite_store."""

import pytest

from codecontext.errors import VectorStoreError
from codecontext.storage import SqliteVectorStore


@pytest.fixture
def sqlite_store(tmp_path):
    return SqliteVectorStore(tmp_path / "db" / "vectors.db")


class TestSqliteVectorStore:
    """Tests for SqliteVectorStore."""

    @pytest.mark.asyncio
    async def test_search_ranks_by_cosine_similarity(self, sqlite_store):
        await sqlite_store.create_collection("c", 2)
        await sqlite_store.insert(
            "c",
            [[1.0, 0.0], [0.0, 1.0], [0.7, 0.7]],
            [{"file_path": "x"}, {"file_path": "y"}, {"file_path": "xy"}],
        )

        results = await sqlite_store.search("c", [1.0, 0.1], 2)

        assert [r.file_path for r in results] == ["x", "xy"]
        assert results[0].score > results[1].score
        assert results[0].score == pytest.approx(0.995, abs=1e-3)

    @pytest.mark.asyncio
    async def test_create_is_idempotent(self, sqlite_store):
        await sqlite_store.create_collection("c", 2)
        await sqlite_store.create_collection("c", 2)
        assert sqlite_store.list_collections() == ["c"]

    @pytest.mark.asyncio
    async def test_dimension_mismatch(self, sqlite_store):
        await sqlite_store.create_collection("c", 3)
        with pytest.raises(VectorStoreError, match="dimension"):
            await sqlite_store.insert("c", [[1.0, 0.0]], [{}])

    @pytest.mark.asyncio
    async def test_missing_collection(self, sqlite_store):
        with pytest.raises(VectorStoreError, match="not found"):
            await sqlite_store.search("missing", [1.0], 5)

    @pytest.mark.asyncio
    async def test_collections_are_isolated_and_droppable(self, sqlite_store):
        await sqlite_store.create_collection("a", 2)
        await sqlite_store.create_collection("b", 2)
        await sqlite_store.insert("a", [[1.0, 0.0]], [{"file_path": "in-a"}])
        await sqlite_store.insert("b", [[1.0, 0.0]], [{"file_path": "in-b"}])

        await sqlite_store.drop_collection("a")

        assert sqlite_store.list_collections() == ["b"]
        results = await sqlite_store.search("b", [1.0, 0.0], 10)
        assert [r.file_path for r in results] == ["in-b"]

    @pytest.mark.asyncio
    async def test_empty_collection(self, sqlite_store):
        await sqlite_store.create_collection("c", 2)
        assert await sqlite_store.search("c", [1.0, 0.0], 5) == []

    @pytest.mark.asyncio
    async def test_delete_by_file(self, sqlite_store):
        await sqlite_store.create_collection("a", 2)
        await sqlite_store.create_collection("b", 2)
        await sqlite_store.insert(
            "a",
            [[1.0, 0.0], [0.0, 1.0], [0.5, 0.5]],
            [{"file_path": "x"}, {"file_path": "x"}, {"file_path": "y"}],
        )
        await sqlite_store.insert("b", [[1.0, 0.0]], [{"file_path": "x"}])

        await sqlite_store.delete_by_file("a", "x")

        assert [r.file_path for r in await sqlite_store.search("a", [1.0, 0.0], 10)] == ["y"]
        assert [r.file_path for r in await sqlite_store.search("b", [1.0, 0.0], 10)] == ["x"]

    @pytest.mark.asyncio
    async def test_delete_by_file_missing_collection(self, sqlite_store):
        with pytest.raises(VectorStoreError, match="not found"):
            await sqlite_store.delete_by_file("missing", "x")
