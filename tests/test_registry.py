"""Tests for codecontext.registry."""

import json

import pytest

from codecontext.errors import SnapshotError
from codecontext.registry import ProjectRegistry


class TestProjectLifecycle:
    """Tests for registration, LRU ordering and eviction."""

    def test_new_project_has_no_eviction(self, registry):
        root, to_evict = registry.get_or_create_root("/a", "ca")
        assert root.collection_name == "ca"
        assert root.files == {}
        assert to_evict is None
        assert registry.get_project_count() == 1

    def test_existing_project_is_touched(self, registry):
        first, _ = registry.get_or_create_root("/a", "ca")
        again, to_evict = registry.get_or_create_root("/a", "ca")
        assert to_evict is None
        assert again.last_accessed_at > first.last_accessed_at
        assert registry.get_project_count() == 1

    def test_evicts_least_recently_used(self, registry):
        for name in ("/a", "/b", "/c"):
            registry.get_or_create_root(name, "c" + name[1:])
        # Using /a makes /b the oldest
        registry.get_collection_name("/a")

        _, to_evict = registry.get_or_create_root("/d", "cd")
        assert to_evict == "/b"

    def test_caller_removal_keeps_bound(self, registry):
        for name in ("/a", "/b", "/c", "/d", "/e"):
            _, to_evict = registry.get_or_create_root(name, "c" + name[1:])
            if to_evict is not None:
                registry.remove_root(to_evict)
            assert registry.get_project_count() <= registry.max_projects
        assert registry.get_all_roots() == ["/c", "/d", "/e"]

    def test_tie_breaks_on_insertion_order(self, tmp_path):
        registry = ProjectRegistry(tmp_path / "s.json", max_projects=2, clock=lambda: 5)
        registry.get_or_create_root("/a", "ca")
        registry.get_or_create_root("/b", "cb")
        _, to_evict = registry.get_or_create_root("/c", "cc")
        assert to_evict == "/a"

    def test_tie_breaks_on_recency_after_touch(self, tmp_path):
        registry = ProjectRegistry(tmp_path / "s.json", max_projects=2, clock=lambda: 5)
        registry.get_or_create_root("/a", "ca")
        registry.get_or_create_root("/b", "cb")
        registry.touch_project("/a")
        _, to_evict = registry.get_or_create_root("/c", "cc")
        assert to_evict == "/b"

    def test_recency_order_survives_reload(self, tmp_path):
        path = tmp_path / "s.json"
        registry = ProjectRegistry(path, max_projects=2, clock=lambda: 5)
        registry.get_or_create_root("/a", "ca")
        registry.get_or_create_root("/b", "cb")
        registry.get_collection_name("/a")
        registry.save()

        restored = ProjectRegistry(path, max_projects=2, clock=lambda: 5)
        restored.load()
        _, to_evict = restored.get_or_create_root("/c", "cc")
        assert to_evict == "/b"

    def test_new_project_starts_incomplete(self, registry):
        registry.get_or_create_root("/a", "ca")
        assert not registry.is_complete("/a")
        registry.mark_complete("/a")
        assert registry.is_complete("/a")
        assert not registry.is_complete("/missing")

    def test_mark_incomplete_can_reset_ledger(self, registry):
        registry.get_or_create_root("/a", "ca")
        registry.update_file("/a", "/a/x.py", "h", 1)
        registry.mark_complete("/a")

        registry.mark_incomplete("/a")
        assert not registry.is_complete("/a")
        assert registry.get_file_paths("/a") == ["/a/x.py"]

        registry.mark_incomplete("/a", reset_files=True)
        assert registry.get_file_paths("/a") == []

    def test_projects_by_age(self, registry):
        registry.get_or_create_root("/a", "ca")
        registry.get_or_create_root("/b", "cb")
        registry.touch_project("/a")
        assert [path for path, _ in registry.get_projects_by_age()] == ["/b", "/a"]

    def test_remove_root_returns_collection(self, registry):
        registry.get_or_create_root("/a", "ca")
        assert registry.remove_root("/a") == "ca"
        assert registry.remove_root("/a") is None
        assert registry.get_collection_name("/a") is None

    def test_clear(self, registry):
        registry.get_or_create_root("/a", "ca")
        registry.get_or_create_root("/b", "cb")
        registry.clear()
        assert registry.get_project_count() == 0

    def test_rejects_zero_capacity(self, tmp_path):
        with pytest.raises(ValueError):
            ProjectRegistry(tmp_path / "s.json", max_projects=0)


class TestLookups:
    """Tests for registry lookups."""

    def test_get_root_does_not_touch(self, registry):
        created, _ = registry.get_or_create_root("/a", "ca")
        assert registry.get_root("/a").last_accessed_at == created.last_accessed_at

    def test_get_root_returns_copy(self, registry):
        registry.get_or_create_root("/a", "ca")
        registry.get_root("/a").files["/a/x"] = None
        assert registry.get_root("/a").files == {}

    def test_update_file_unknown_project_is_noop(self, registry):
        registry.update_file("/missing", "/missing/a.py", "h", 1)
        assert registry.get_project_count() == 0
        assert registry.get_file_hash("/missing", "/missing/a.py") is None

    def test_update_file_upserts(self, registry):
        registry.get_or_create_root("/a", "ca")
        registry.update_file("/a", "/a/x.py", "h1", 2)
        registry.update_file("/a", "/a/x.py", "h2", 3)
        root = registry.get_root("/a")
        assert root.files["/a/x.py"].hash == "h2"
        assert root.chunk_count == 3

    def test_remove_file(self, registry):
        registry.get_or_create_root("/a", "ca")
        registry.update_file("/a", "/a/x.py", "h", 1)
        registry.update_file("/a", "/a/y.py", "h", 1)
        assert registry.remove_file("/a", "/a/x.py")
        assert not registry.remove_file("/a", "/a/x.py")
        assert not registry.remove_file("/missing", "/missing/x.py")
        assert registry.get_file_paths("/a") == ["/a/y.py"]
        assert registry.get_file_paths("/missing") == []

    def test_find_project_root_prefers_longest(self, registry):
        registry.get_or_create_root("/work", "c1")
        registry.get_or_create_root("/work/nested", "c2")
        assert registry.find_project_root("/work/nested/src/a.py") == "/work/nested"
        assert registry.find_project_root("/work/other/a.py") == "/work"
        assert registry.find_project_root("/work") == "/work"

    def test_find_project_root_is_component_wise(self, registry):
        registry.get_or_create_root("/work/app", "c1")
        assert registry.find_project_root("/work/application/a.py") is None

    def test_all_collection_names(self, registry):
        registry.get_or_create_root("/a", "ca")
        registry.get_or_create_root("/b", "cb")
        assert registry.get_all_collection_names() == [("/a", "ca"), ("/b", "cb")]


class TestPersistence:
    """Tests for load/save."""

    def test_round_trip(self, registry, clock):
        registry.get_or_create_root("/a", "ca")
        registry.get_or_create_root("/b", "cb")
        for root in ("/a", "/b"):
            registry.update_file(root, f"{root}/one.py", "h1", 1)
            registry.update_file(root, f"{root}/two.py", "h2", 2)
        registry.save()

        restored = ProjectRegistry(registry.snapshot_path, max_projects=3, clock=clock)
        restored.load()
        assert restored.snapshot() == registry.snapshot()
        assert restored.get_file_hash("/b", "/b/two.py") == "h2"

    def test_save_creates_parent_directories(self, registry):
        assert not registry.snapshot_path.parent.exists()
        registry.save()
        assert json.loads(registry.snapshot_path.read_text()) == {"roots": {}}

    def test_save_leaves_no_temp_files(self, registry):
        registry.get_or_create_root("/a", "ca")
        registry.save()
        registry.save()
        assert [p.name for p in registry.snapshot_path.parent.iterdir()] == ["snapshot.json"]

    def test_load_missing_file_starts_empty(self, registry):
        registry.load()
        assert registry.get_project_count() == 0

    def test_load_corrupt_file_raises(self, registry):
        registry.snapshot_path.parent.mkdir(parents=True)
        registry.snapshot_path.write_text("{not json")
        with pytest.raises(SnapshotError):
            registry.load()

    def test_load_wrong_shape_raises(self, registry):
        registry.snapshot_path.parent.mkdir(parents=True)
        registry.snapshot_path.write_text(json.dumps({"roots": {"/a": {"files": {}}}}))
        with pytest.raises(SnapshotError):
            registry.load()

    def test_save_failure_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        registry = ProjectRegistry(blocker / "snapshot.json")
        with pytest.raises(SnapshotError):
            registry.save()
