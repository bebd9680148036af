"""One full or incremental indexing pass over a project."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from codecontext.chunkers import get_chunker
from codecontext.embedders import EmbeddingBatcher
from codecontext.errors import InvalidPathError
from codecontext.indexing.change_detector import (
    ChangeDetector,
    collection_name_for,
    hash_content,
)
from codecontext.ingesters import get_ingester
from codecontext.models import FileMetadata
from codecontext.protocols import ChunkingStrategy, EmbeddingProvider, Ingester, VectorStore
from codecontext.registry import ProjectRegistry
from codecontext.utils import detect_binary

logger = logging.getLogger(__name__)

# Maximum file size to index (10 MiB)
MAX_FILE_SIZE = 10 * 1024 * 1024


class FileStatus(Enum):
    INDEXED = "indexed"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(Enum):
    TOO_LARGE = "too_large"
    BINARY = "binary"
    UNREADABLE = "unreadable"
    OUTSIDE_ROOT = "outside_root"
    EMPTY = "empty"
    NO_CHUNKS = "no_chunks"
    NO_EMBEDDINGS = "no_embeddings"
    PARSE_ERROR = "parse_error"
    INSERT_ERROR = "insert_error"


@dataclass(frozen=True)
class FileOutcome:
    """What happened to one file during a pass."""

    path: str
    status: FileStatus
    chunks: int = 0
    size_bytes: int = 0
    reason: Optional[SkipReason] = None
    error: Optional[str] = None

    @classmethod
    def indexed(cls, path: str, chunks: int, size_bytes: int) -> "FileOutcome":
        return cls(path, FileStatus.INDEXED, chunks=chunks, size_bytes=size_bytes)

    @classmethod
    def unchanged(cls, path: str, size_bytes: int) -> "FileOutcome":
        return cls(path, FileStatus.UNCHANGED, size_bytes=size_bytes)

    @classmethod
    def skipped(cls, path: str, reason: SkipReason, size_bytes: int = 0) -> "FileOutcome":
        return cls(path, FileStatus.SKIPPED, size_bytes=size_bytes, reason=reason)

    @classmethod
    def failed(
        cls, path: str, reason: SkipReason, error: str, size_bytes: int = 0
    ) -> "FileOutcome":
        return cls(path, FileStatus.FAILED, size_bytes=size_bytes, reason=reason, error=error)


@dataclass
class Eviction:
    """A project evicted to make room, and whether its collection was dropped."""

    project_root: str
    collection_name: str
    dropped: bool = True


@dataclass
class IndexSummary:
    """Aggregated counts for one indexing pass."""

    project_root: str
    collection_name: str
    already_indexed: bool = False
    files_indexed: int = 0
    chunks_indexed: int = 0
    files_unchanged: int = 0
    skipped_by_size: int = 0
    bytes_skipped_by_size: int = 0
    skipped_other: int = 0
    failed: int = 0
    eviction: Optional[Eviction] = None
    project_count: int = 0
    max_projects: int = 0
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def files_skipped(self) -> int:
        return self.skipped_by_size + self.skipped_other + self.failed

    def record(self, outcome: FileOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status is FileStatus.INDEXED:
            self.files_indexed += 1
            self.chunks_indexed += outcome.chunks
        elif outcome.status is FileStatus.UNCHANGED:
            self.files_unchanged += 1
        elif outcome.status is FileStatus.FAILED:
            self.failed += 1
        elif outcome.reason is SkipReason.TOO_LARGE:
            self.skipped_by_size += 1
            self.bytes_skipped_by_size += outcome.size_bytes
        else:
            self.skipped_other += 1


ProgressCallback = Callable[[FileOutcome], None]


class Indexer:
    """Drives indexing passes: discover, detect changes, chunk, embed, store.

    Files are processed strictly one after another; embedding requests for
    one file's chunks run concurrently through the batcher.
    """

    def __init__(
        self,
        registry: ProjectRegistry,
        embedder: EmbeddingProvider,
        vector_store: VectorStore,
        ingester: Optional[Ingester] = None,
        embed_concurrency: int = 5,
        max_file_size: int = MAX_FILE_SIZE,
    ):
        self.registry = registry
        self.embedder = embedder
        self.vector_store = vector_store
        self.ingester = ingester
        self.batcher = EmbeddingBatcher(embedder, concurrency=embed_concurrency)
        self.change_detector = ChangeDetector(registry)
        self.max_file_size = max_file_size

    async def index(
        self,
        project_root: Path,
        force: bool = False,
        splitter: str = "ast",
        on_file: Optional[ProgressCallback] = None,
        refresh: bool = False,
    ) -> IndexSummary:
        """Run one indexing pass over `project_root` (absolute directory).

        A project whose last pass completed is left alone unless `force`
        or `refresh` is set. `force` drops the collection, empties the
        ledger and re-processes every file. `refresh` re-processes only
        files whose content hash changed, replacing their old vectors, and
        forgets files that disappeared. A project whose last pass was
        interrupted is resumed the same way.

        Raises:
            InvalidArgumentError: If the splitter is unknown
            InvalidPathError: If no ingester can enumerate the root
            SnapshotError: If the registry cannot be persisted
            VectorStoreError: If a forced pass cannot drop the old collection
        """
        chunker = get_chunker(splitter)
        ingester = self.ingester or get_ingester(project_root)
        if ingester is None:
            raise InvalidPathError(f"No ingester can read {project_root}")
        root_key = str(project_root)
        collection_name = collection_name_for(root_key)
        summary = IndexSummary(
            project_root=root_key,
            collection_name=collection_name,
            max_projects=self.registry.max_projects,
        )

        existing = self.registry.get_collection_name(root_key)
        known = existing == collection_name
        if known and not (force or refresh) and self.registry.is_complete(root_key):
            summary.already_indexed = True
            summary.project_count = self.registry.get_project_count()
            return summary
        if known and not (force or refresh):
            logger.info("Resuming interrupted indexing pass for %s", root_key)

        _, to_evict = self.registry.get_or_create_root(root_key, collection_name)
        if to_evict is not None:
            summary.eviction = await self._evict(to_evict)
        self.registry.mark_incomplete(root_key, reset_files=force)
        await asyncio.to_thread(self.registry.save)

        if known and force:
            # A failed drop leaves the project incomplete, so the next pass redoes it
            await self.vector_store.drop_collection(collection_name)
            logger.info("Dropped collection %s for a forced re-index", collection_name)

        try:
            await self.vector_store.create_collection(collection_name, self.embedder.dimension)
            logger.info("Created/verified collection: %s", collection_name)
        except Exception as e:
            # The collection may already exist; inserts will fail loudly if not
            logger.warning("Failed to create collection (may already exist): %s", e)

        logger.info("Indexing codebase at: %s", root_key)

        # Vectors of a known project may exist without a ledger row after an interruption
        replace = known and not force
        seen: set[str] = set()
        for candidate in ingester.discover(project_root):
            seen.add(str(candidate.path))
            outcome = await self._index_file(
                project_root, collection_name, candidate, chunker, force, replace
            )
            summary.record(outcome)
            if on_file is not None:
                on_file(outcome)

        if replace:
            await self._forget_missing(root_key, collection_name, seen)

        self.registry.mark_complete(root_key)
        await asyncio.to_thread(self.registry.save)
        summary.project_count = self.registry.get_project_count()
        logger.info(
            "Indexed %d files, %d chunks (%d unchanged, %d skipped) in %s",
            summary.files_indexed,
            summary.chunks_indexed,
            summary.files_unchanged,
            summary.files_skipped,
            root_key,
        )
        return summary

    async def _forget_missing(
        self, root_key: str, collection_name: str, seen: set[str]
    ) -> None:
        """Delete vectors and ledger rows of files that are no longer discovered."""
        for path_key in self.registry.get_file_paths(root_key):
            if path_key in seen:
                continue
            try:
                await self.vector_store.delete_by_file(collection_name, path_key)
            except Exception as e:
                logger.warning("Failed to delete vectors of removed file %s: %s", path_key, e)
                continue
            self.registry.remove_file(root_key, path_key)
            logger.debug("Forgot removed file %s", path_key)

    async def _evict(self, project_root: str) -> Optional[Eviction]:
        """Forget an evicted project, persist, then drop its collection."""
        collection_name = self.registry.remove_root(project_root)
        if collection_name is None:
            return None

        await asyncio.to_thread(self.registry.save)
        eviction = Eviction(project_root=project_root, collection_name=collection_name)
        try:
            await self.vector_store.drop_collection(collection_name)
        except Exception as e:
            logger.warning(
                "Failed to drop evicted collection %s (orphaned): %s", collection_name, e
            )
            eviction.dropped = False
        logger.info("Evicted least recently used project: %s", project_root)
        return eviction

    async def _index_file(
        self,
        project_root: Path,
        collection_name: str,
        candidate: FileMetadata,
        chunker: ChunkingStrategy,
        force: bool,
        replace: bool = False,
    ) -> FileOutcome:
        path = candidate.path
        path_key = str(path)
        size = candidate.size_bytes

        if not self._within_root(project_root, path):
            logger.warning("Skipping file outside project root: %s", path)
            return FileOutcome.skipped(path_key, SkipReason.OUTSIDE_ROOT, size)

        if size > self.max_file_size:
            logger.debug("Skipping large file %s (%d bytes)", path, size)
            return FileOutcome.skipped(path_key, SkipReason.TOO_LARGE, size)

        try:
            raw = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.debug("Failed to read %s: %s", path, e)
            return FileOutcome.skipped(path_key, SkipReason.UNREADABLE, size)

        if detect_binary(path, raw):
            return FileOutcome.skipped(path_key, SkipReason.BINARY, size)
        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError:
            return FileOutcome.skipped(path_key, SkipReason.BINARY, size)

        if not content.strip():
            return FileOutcome.skipped(path_key, SkipReason.EMPTY, size)

        root_key = str(project_root)
        file_hash = hash_content(content)
        if not force and self.change_detector.is_unchanged(root_key, path_key, file_hash):
            return FileOutcome.unchanged(path_key, size)

        try:
            chunks = chunker.chunk(content, path_key)
        except Exception as e:
            logger.warning("Failed to parse %s: %s", path, e)
            return FileOutcome.failed(path_key, SkipReason.PARSE_ERROR, str(e), size)

        if not chunks:
            return FileOutcome.skipped(path_key, SkipReason.NO_CHUNKS, size)

        embedded = await self.batcher.embed_chunks(chunks)
        if not embedded:
            logger.warning("Failed to generate embeddings for %s", path)
            return FileOutcome.skipped(path_key, SkipReason.NO_EMBEDDINGS, size)
        if len(embedded) < len(chunks):
            logger.warning(
                "%d of %d chunks of %s could not be embedded; indexing the rest",
                len(chunks) - len(embedded),
                len(chunks),
                path,
            )

        vectors = [item.vector for item in embedded]
        metadata = [chunks[item.index].metadata(root_key) for item in embedded]
        try:
            if replace:
                await self.vector_store.delete_by_file(collection_name, path_key)
            await self.vector_store.insert(collection_name, vectors, metadata)
        except Exception as e:
            logger.warning("Failed to insert vectors for %s: %s", path, e)
            if replace:
                # Old vectors may already be gone; the next pass must redo this file
                self.registry.remove_file(root_key, path_key)
            return FileOutcome.failed(path_key, SkipReason.INSERT_ERROR, str(e), size)

        self.registry.update_file(root_key, path_key, file_hash, len(embedded))
        return FileOutcome.indexed(path_key, len(embedded), size)

    @staticmethod
    def _within_root(project_root: Path, path: Path) -> bool:
        try:
            path.resolve().relative_to(project_root.resolve())
        except (OSError, ValueError):
            return False
        return True
