"""Tests for codecontext.search.merger."""

import pytest

from codecontext.models import SearchResult
from codecontext.search import SearchMerger


def hits(prefix, score, count):
    return [
        SearchResult(score=score, metadata={"file_path": f"{prefix}/{i}.py", "start_line": i})
        for i in range(count)
    ]


class TestSearchMerger:
    """Tests for SearchMerger."""

    @pytest.mark.asyncio
    async def test_search_project_not_indexed(self, registry, store):
        assert await SearchMerger(registry, store).search_project("/nope", [0.1] * 4, 5) is None

    @pytest.mark.asyncio
    async def test_search_project(self, registry, store):
        registry.get_or_create_root("/a", "ca")
        store.canned["ca"] = hits("/a", 0.7, 3)
        results = await SearchMerger(registry, store).search_project("/a", [0.1] * 4, 2)
        assert [r.file_path for r in results] == ["/a/0.py", "/a/1.py"]

    @pytest.mark.asyncio
    async def test_search_all_keeps_global_top(self, registry, store):
        registry.get_or_create_root("/a", "ca")
        registry.get_or_create_root("/b", "cb")
        store.canned["ca"] = hits("/a", 0.9, 10)
        store.canned["cb"] = hits("/b", 0.5, 10)

        results = await SearchMerger(registry, store).search_all([0.1] * 4, 5)

        assert len(results) == 5
        assert all(r.project_root == "/a" for r in results)
        assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)

    @pytest.mark.asyncio
    async def test_search_all_interleaves_by_score(self, registry, store):
        registry.get_or_create_root("/a", "ca")
        registry.get_or_create_root("/b", "cb")
        store.canned["ca"] = [SearchResult(0.9, {"file_path": "a1"}), SearchResult(0.3, {"file_path": "a2"})]
        store.canned["cb"] = [SearchResult(0.6, {"file_path": "b1"})]

        results = await SearchMerger(registry, store).search_all([0.1] * 4, 10)

        assert [(r.file_path, r.project_root) for r in results] == [
            ("a1", "/a"),
            ("b1", "/b"),
            ("a2", "/a"),
        ]

    @pytest.mark.asyncio
    async def test_failing_collection_is_excluded(self, registry, store):
        registry.get_or_create_root("/a", "ca")
        registry.get_or_create_root("/b", "cb")
        store.canned["ca"] = hits("/a", 0.4, 2)
        store.fail_search = {"cb"}

        results = await SearchMerger(registry, store).search_all([0.1] * 4, 10)

        assert [r.project_root for r in results] == ["/a", "/a"]

    @pytest.mark.asyncio
    async def test_search_all_without_projects(self, registry, store):
        assert await SearchMerger(registry, store).search_all([0.1] * 4, 10) == []
