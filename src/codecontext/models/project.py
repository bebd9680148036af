"""Durable per-project bookkeeping owned by the project registry."""

import time
from dataclasses import dataclass, field
from typing import Any, Optional


def now_seconds() -> int:
    """Current Unix time in whole seconds."""
    return int(time.time())


@dataclass
class FileEntry:
    """Ledger row for one indexed file."""

    hash: str
    chunk_count: int
    indexed_at: int = field(default_factory=now_seconds)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "chunk_count": self.chunk_count,
            "indexed_at": self.indexed_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileEntry":
        return cls(
            hash=str(data["hash"]),
            chunk_count=int(data["chunk_count"]),
            indexed_at=int(data["indexed_at"]),
        )


@dataclass
class RootInfo:
    """One indexed project: its collection and file hash ledger.

    `complete` is False while an indexing pass is in progress, or after one
    was interrupted; such a project is resumed rather than reported as
    already indexed.
    """

    collection_name: str
    files: dict[str, FileEntry] = field(default_factory=dict)
    indexed_at: int = field(default_factory=now_seconds)
    last_accessed_at: int = field(default_factory=now_seconds)
    complete: bool = True

    def touch(self, now: Optional[int] = None) -> None:
        """Mark the project as used for LRU purposes."""
        self.last_accessed_at = now_seconds() if now is None else now

    @property
    def chunk_count(self) -> int:
        return sum(entry.chunk_count for entry in self.files.values())

    def copy(self) -> "RootInfo":
        """Return a detached copy that callers may keep without sharing state."""
        return RootInfo.from_dict(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        return {
            "collection_name": self.collection_name,
            "files": {path: entry.to_dict() for path, entry in self.files.items()},
            "indexed_at": self.indexed_at,
            "last_accessed_at": self.last_accessed_at,
            "complete": self.complete,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RootInfo":
        return cls(
            collection_name=str(data["collection_name"]),
            files={
                path: FileEntry.from_dict(entry)
                for path, entry in data.get("files", {}).items()
            },
            indexed_at=int(data["indexed_at"]),
            last_accessed_at=int(data["last_accessed_at"]),
            complete=bool(data.get("complete", True)),
        )


@dataclass
class Snapshot:
    """The full durable state: project root path -> RootInfo."""

    roots: dict[str, RootInfo] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"roots": {path: root.to_dict() for path, root in self.roots.items()}}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        return cls(
            roots={
                path: RootInfo.from_dict(root)
                for path, root in data.get("roots", {}).items()
            }
        )
