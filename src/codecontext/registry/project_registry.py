"""Thread-safe owner of the project snapshot with LRU eviction."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path, PurePath
from typing import Callable, Optional

from codecontext.config import DEFAULT_MAX_PROJECTS
from codecontext.errors import SnapshotError
from codecontext.models import FileEntry, RootInfo, Snapshot
from codecontext.models.project import now_seconds

logger = logging.getLogger(__name__)


class ProjectRegistry:
    """Maps project roots to collections and per-file hash ledgers.

    Every operation runs under one lock, so each call is atomic with
    respect to concurrent callers. The raw snapshot is never handed out;
    readers receive copies.

    Touching a project also moves it to the end of the map, so among equal
    timestamps the least recently touched project comes first. That order
    is what the snapshot file preserves.

    Note:
        Eviction picks the minimum `last_accessed_at` by linear scan, which
        is fine for tens of projects.
    """

    def __init__(
        self,
        snapshot_path: Path | str,
        max_projects: int = DEFAULT_MAX_PROJECTS,
        clock: Callable[[], int] = now_seconds,
    ):
        if max_projects < 1:
            raise ValueError("max_projects must be >= 1")
        self.snapshot_path = Path(snapshot_path)
        self.max_projects = max_projects
        self._snapshot = Snapshot()
        self._clock = clock
        self._lock = threading.RLock()

    # Persistence

    def load(self) -> None:
        """Replace in-memory state with the snapshot file, if it exists.

        Raises:
            SnapshotError: If the file exists but cannot be read or parsed
        """
        if not self.snapshot_path.exists():
            logger.debug("No snapshot at %s, starting empty", self.snapshot_path)
            return
        try:
            data = json.loads(self.snapshot_path.read_text(encoding="utf-8"))
            snapshot = Snapshot.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise SnapshotError(f"Failed to load snapshot {self.snapshot_path}: {e}") from e

        with self._lock:
            self._snapshot = snapshot
        logger.info("Loaded %d projects from %s", len(snapshot.roots), self.snapshot_path)

    def save(self) -> None:
        """Write the full snapshot, creating parent directories as needed.

        The file is replaced atomically so a crash never leaves half a
        snapshot behind.

        Raises:
            SnapshotError: If the snapshot cannot be written
        """
        with self._lock:
            data = json.dumps(self._snapshot.to_dict(), indent=2)

        try:
            self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.snapshot_path.parent, prefix=".snapshot-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(data)
                os.replace(tmp_name, self.snapshot_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise SnapshotError(f"Failed to save snapshot {self.snapshot_path}: {e}") from e

    # Project lifecycle

    def get_or_create_root(
        self, project_root: str, collection_name: str
    ) -> tuple[RootInfo, Optional[str]]:
        """Touch an existing project, or register a new one.

        When a new project would exceed `max_projects`, the least recently
        accessed existing project is returned as the eviction candidate.
        The new project is inserted regardless; the caller must then
        `remove_root` the candidate and drop its collection.
        """
        with self._lock:
            roots = self._snapshot.roots
            if project_root in roots:
                return self._touch(project_root).copy(), None

            to_evict = None
            if len(roots) >= self.max_projects:
                # min() keeps the first entry on ties: the least recently touched one
                to_evict = min(roots, key=lambda path: roots[path].last_accessed_at)

            now = self._clock()
            new_root = RootInfo(
                collection_name=collection_name,
                indexed_at=now,
                last_accessed_at=now,
                complete=False,
            )
            roots[project_root] = new_root
            return new_root.copy(), to_evict

    def touch_project(self, project_root: str) -> None:
        with self._lock:
            if project_root in self._snapshot.roots:
                self._touch(project_root)

    def _touch(self, project_root: str) -> RootInfo:
        roots = self._snapshot.roots
        root = roots.pop(project_root)
        roots[project_root] = root
        root.touch(self._clock())
        return root

    def mark_incomplete(self, project_root: str, reset_files: bool = False) -> None:
        """Flag a pass as started; `reset_files` also empties the ledger."""
        with self._lock:
            root = self._snapshot.roots.get(project_root)
            if root is None:
                return
            root.complete = False
            if reset_files:
                root.files.clear()

    def mark_complete(self, project_root: str) -> None:
        with self._lock:
            root = self._snapshot.roots.get(project_root)
            if root is not None:
                root.complete = True

    def is_complete(self, project_root: str) -> bool:
        with self._lock:
            root = self._snapshot.roots.get(project_root)
            return root is not None and root.complete

    def remove_root(self, project_root: str) -> Optional[str]:
        """Delete a project and return its collection name, if it existed."""
        with self._lock:
            root = self._snapshot.roots.pop(project_root, None)
            return root.collection_name if root else None

    def clear_project(self, project_root: str) -> Optional[str]:
        return self.remove_root(project_root)

    def clear(self) -> None:
        """Forget every project. External collections are the caller's job."""
        with self._lock:
            self._snapshot.roots.clear()

    # Lookups

    def get_collection_name(self, project_root: str) -> Optional[str]:
        """Return the project's collection; a lookup counts as usage."""
        with self._lock:
            if project_root not in self._snapshot.roots:
                return None
            return self._touch(project_root).collection_name

    def find_project_root(self, path: str) -> Optional[str]:
        """Return the registered root containing `path`.

        Matching is component-wise; with nested roots the longest (most
        specific) one wins.
        """
        candidate = PurePath(path)
        with self._lock:
            matches = [
                root
                for root in self._snapshot.roots
                if candidate == PurePath(root) or PurePath(root) in candidate.parents
            ]
        if not matches:
            return None
        return max(matches, key=lambda root: len(PurePath(root).parts))

    def get_root(self, project_root: str) -> Optional[RootInfo]:
        """Return a copy of a project's info without touching it."""
        with self._lock:
            root = self._snapshot.roots.get(project_root)
            return root.copy() if root else None

    def get_file_hash(self, project_root: str, file_path: str) -> Optional[str]:
        with self._lock:
            root = self._snapshot.roots.get(project_root)
            if root is None:
                return None
            entry = root.files.get(file_path)
            return entry.hash if entry else None

    def update_file(
        self, project_root: str, file_path: str, file_hash: str, chunk_count: int
    ) -> None:
        """Upsert a file's ledger row; no-op if the project is unknown."""
        with self._lock:
            root = self._snapshot.roots.get(project_root)
            if root is None:
                return
            root.files[file_path] = FileEntry(
                hash=file_hash, chunk_count=chunk_count, indexed_at=self._clock()
            )

    def remove_file(self, project_root: str, file_path: str) -> bool:
        """Drop a file's ledger row; True if there was one."""
        with self._lock:
            root = self._snapshot.roots.get(project_root)
            if root is None:
                return False
            return root.files.pop(file_path, None) is not None

    def get_file_paths(self, project_root: str) -> list[str]:
        with self._lock:
            root = self._snapshot.roots.get(project_root)
            return list(root.files) if root else []

    def get_all_collection_names(self) -> list[tuple[str, str]]:
        """(project root, collection name) pairs for cross-project operations."""
        with self._lock:
            return [
                (path, root.collection_name) for path, root in self._snapshot.roots.items()
            ]

    def get_all_roots(self) -> list[str]:
        with self._lock:
            return list(self._snapshot.roots)

    def get_project_count(self) -> int:
        with self._lock:
            return len(self._snapshot.roots)

    def get_projects_by_age(self) -> list[tuple[str, int]]:
        """Projects with their last access time, oldest first."""
        with self._lock:
            projects = [
                (path, root.last_accessed_at) for path, root in self._snapshot.roots.items()
            ]
        return sorted(projects, key=lambda item: item[1])

    def snapshot(self) -> Snapshot:
        """A deep copy of the current state (for tests and diagnostics)."""
        with self._lock:
            return Snapshot.from_dict(self._snapshot.to_dict())
