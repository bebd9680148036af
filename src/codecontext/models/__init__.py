"""Data models for Code Context."""

from codecontext.models.chunk import Chunk, SymbolKind
from codecontext.models.document import FileMetadata
from codecontext.models.project import FileEntry, RootInfo, Snapshot
from codecontext.models.search import SearchResult

__all__ = [
    "Chunk",
    "SymbolKind",
    "FileMetadata",
    "FileEntry",
    "RootInfo",
    "Snapshot",
    "SearchResult",
]
