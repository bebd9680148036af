"""Incremental indexing engine."""

from codecontext.indexing.change_detector import (
    ChangeDetector,
    collection_name_for,
    hash_content,
)
from codecontext.indexing.orchestrator import (
    MAX_FILE_SIZE,
    Eviction,
    FileOutcome,
    FileStatus,
    IndexSummary,
    Indexer,
    SkipReason,
)

__all__ = [
    "ChangeDetector",
    "collection_name_for",
    "hash_content",
    "MAX_FILE_SIZE",
    "Eviction",
    "FileOutcome",
    "FileStatus",
    "IndexSummary",
    "Indexer",
    "SkipReason",
]
