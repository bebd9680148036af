"""Transport-independent handlers for the four indexing tools."""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

from codecontext.chunkers import DEFAULT_SPLITTER
from codecontext.config import Settings
from codecontext.embedders import create_embedder
from codecontext.errors import CodeContextError, InvalidArgumentError, InvalidPathError
from codecontext.indexing import IndexSummary, Indexer
from codecontext.models import SearchResult
from codecontext.protocols import EmbeddingProvider, VectorStore
from codecontext.registry import ProjectRegistry
from codecontext.search import SearchMerger
from codecontext.storage import create_vector_store

logger = logging.getLogger(__name__)

ALL_PROJECTS = "all"
DEFAULT_SEARCH_LIMIT = 10
MAX_CONTENT_CHARS = 500


@dataclass(frozen=True)
class SingleProject:
    path: Path


@dataclass(frozen=True)
class AllProjects:
    pass


Target = Union[SingleProject, AllProjects]


def parse_target(path_arg: Any, cwd: Optional[Path] = None) -> Target:
    """Turn a raw `path` tool argument into a Target, once, at the boundary.

    "all" (or a path ending in "/all") selects every project. Anything
    else becomes an absolute, normalised path; relative paths resolve
    against `cwd`.

    Raises:
        InvalidArgumentError: If the argument is missing or not a string
        InvalidPathError: If the path contains a '..' component
    """
    if not isinstance(path_arg, str) or not path_arg.strip():
        raise InvalidArgumentError("Missing 'path' argument")

    raw = path_arg.strip()
    if raw == ALL_PROJECTS or raw.rstrip("/").endswith("/" + ALL_PROJECTS):
        return AllProjects()

    path = Path(raw).expanduser()
    if ".." in path.parts:
        raise InvalidPathError("Invalid path: suspicious path traversal detected")
    if not path.is_absolute():
        path = (cwd or Path.cwd()) / path
    return SingleProject(Path(os.path.normpath(path)))


@dataclass(frozen=True)
class ToolResult:
    """Human-readable tool output with an explicit error flag."""

    text: str
    is_error: bool = False

    @classmethod
    def ok(cls, text: str) -> "ToolResult":
        return cls(text)

    @classmethod
    def error(cls, text: str) -> "ToolResult":
        return cls(text, is_error=True)


def _truncate(text: str, max_chars: int) -> str:
    return text if len(text) <= max_chars else text[:max_chars]


def format_index_summary(summary: IndexSummary) -> str:
    if summary.already_indexed:
        return (
            "Codebase already indexed. Use refresh=true to pick up changed files "
            "or force=true to re-index everything.\n"
            f"Project: {summary.project_root}\n"
            f"Collection: {summary.collection_name}"
        )

    lines = [
        f"Indexed {summary.files_indexed} files, {summary.chunks_indexed} chunks",
        f"Project: {summary.project_root}",
        f"Collection: {summary.collection_name}",
        f"Projects: {summary.project_count}/{summary.max_projects}",
    ]
    if summary.files_unchanged:
        lines.append(f"Unchanged: {summary.files_unchanged} files")
    if summary.files_skipped:
        size_mb = summary.bytes_skipped_by_size / 1024 / 1024
        lines.append(
            f"Skipped {summary.files_skipped} files "
            f"({summary.skipped_by_size} by size, {size_mb:.2f} MB filtered; "
            f"{summary.skipped_other} other; {summary.failed} failed)"
        )
    if summary.eviction is not None:
        eviction = summary.eviction
        lines.append(
            f"Evicted oldest project: {eviction.project_root} "
            f"(collection: {eviction.collection_name})"
        )
        if not eviction.dropped:
            lines.append("Warning: the evicted collection could not be dropped")
    return "\n".join(lines)


def format_search_results(results: list[SearchResult]) -> str:
    if not results:
        return "No results found."

    parts = ["Search results:\n"]
    for i, result in enumerate(results, 1):
        project = result.project_root
        project_info = f" [{Path(project).name or project}]" if project else ""
        parts.append(
            f"{i}. **{result.symbol_name}** "
            f"(`{result.file_path}:{result.start_line + 1}-{result.end_line + 1}`)"
            f"{project_info}\n"
            f"Score: {result.score * 100:.2f}%\n"
            f"```\n{_truncate(result.content, MAX_CONTENT_CHARS)}\n```\n"
        )
    return "\n".join(parts)


class ToolHandlers:
    """Implements index / search / clear / status on top of the engine.

    Invocations are serialised end-to-end by one lock. Failures never
    escape as exceptions; they come back as error ToolResults.
    """

    def __init__(
        self,
        registry: ProjectRegistry,
        embedder: EmbeddingProvider,
        vector_store: VectorStore,
        embed_concurrency: int = 5,
        indexer: Optional[Indexer] = None,
    ):
        self.registry = registry
        self.embedder = embedder
        self.vector_store = vector_store
        self.indexer = indexer or Indexer(
            registry, embedder, vector_store, embed_concurrency=embed_concurrency
        )
        self.merger = SearchMerger(registry, vector_store)
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ToolHandlers":
        """Wire the engine from configuration (snapshot is not loaded yet)."""
        registry = ProjectRegistry(settings.snapshot_path, max_projects=settings.max_projects)
        return cls(
            registry=registry,
            embedder=create_embedder(settings),
            vector_store=create_vector_store(settings),
            embed_concurrency=settings.embed_concurrency,
        )

    async def startup(self) -> None:
        """Load the persisted snapshot."""
        await asyncio.to_thread(self.registry.load)

    async def aclose(self) -> None:
        await self.embedder.aclose()
        await self.vector_store.aclose()

    async def _run(self, name: str, handler: Callable[[], Awaitable[ToolResult]]) -> ToolResult:
        async with self._lock:
            try:
                return await handler()
            except CodeContextError as e:
                logger.error("%s failed: %s", name, e)
                return ToolResult.error(f"Error: {e}")
            except Exception as e:
                logger.exception("%s failed unexpectedly", name)
                return ToolResult.error(f"Error: {e}")

    # index_codebase

    async def index_codebase(
        self,
        path: Any,
        force: bool = False,
        splitter: str = DEFAULT_SPLITTER,
        refresh: bool = False,
        on_file: Optional[Callable[..., None]] = None,
    ) -> ToolResult:
        async def handler() -> ToolResult:
            target = parse_target(path)
            if not isinstance(target, SingleProject):
                raise InvalidPathError("Cannot index 'all'; pass a project directory")
            project_root = target.path
            if not project_root.exists():
                raise InvalidPathError(f"Path does not exist: {project_root}")
            if not project_root.is_dir():
                raise InvalidPathError(f"Path is not a directory: {project_root}")

            summary = await self.indexer.index(
                project_root,
                force=bool(force),
                splitter=splitter,
                on_file=on_file,
                refresh=bool(refresh),
            )
            return ToolResult.ok(format_index_summary(summary))

        return await self._run("index_codebase", handler)

    # search_code

    async def search_code(
        self,
        path: Any,
        query: Any,
        limit: Any = DEFAULT_SEARCH_LIMIT,
        cross_project: bool = False,
    ) -> ToolResult:
        async def handler() -> ToolResult:
            target = parse_target(path)
            if not isinstance(query, str) or not query.strip():
                raise InvalidArgumentError("Missing 'query' argument")
            if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
                raise InvalidArgumentError("'limit' must be a positive integer")

            vector = await self.embedder.embed_one(query)

            if cross_project or isinstance(target, AllProjects):
                results = await self.merger.search_all(vector, limit)
            else:
                search_path = str(target.path)
                project_root = self.registry.find_project_root(search_path) or search_path
                found = await self.merger.search_project(project_root, vector, limit)
                if found is None:
                    raise InvalidArgumentError(
                        "No indexed codebase found for this path. Please index first."
                    )
                results = found

            return ToolResult.ok(format_search_results(results))

        return await self._run("search_code", handler)

    # clear_index

    async def clear_index(self, path: Any) -> ToolResult:
        async def handler() -> ToolResult:
            target = parse_target(path)
            if isinstance(target, AllProjects):
                return await self._clear_all()

            project_root = str(target.path)
            collection_name = self.registry.get_collection_name(project_root)
            if collection_name is None:
                raise InvalidArgumentError("No indexed codebase found for this path.")

            await self.vector_store.drop_collection(collection_name)
            self.registry.clear_project(project_root)
            await asyncio.to_thread(self.registry.save)
            return ToolResult.ok(
                f"Cleared index for {project_root}\nCollection: {collection_name}"
            )

        return await self._run("clear_index", handler)

    async def _clear_all(self) -> ToolResult:
        cleared = []
        failed = []
        for project_root, collection_name in self.registry.get_all_collection_names():
            try:
                await self.vector_store.drop_collection(collection_name)
            except Exception as e:
                logger.warning("Failed to drop collection %s: %s", collection_name, e)
                failed.append(project_root)
            else:
                cleared.append(project_root)

        self.registry.clear()
        await asyncio.to_thread(self.registry.save)

        text = f"Cleared {len(cleared)} projects: {', '.join(cleared)}"
        if failed:
            text += f"\nFailed to drop collections for: {', '.join(failed)}"
        return ToolResult.ok(text)

    # get_indexing_status

    async def get_indexing_status(self, path: Any) -> ToolResult:
        async def handler() -> ToolResult:
            target = parse_target(path)
            if isinstance(target, AllProjects):
                return self._status_all()

            project_root = str(target.path)
            collection_name = self.registry.get_collection_name(project_root)
            root = self.registry.get_root(project_root)
            if collection_name is None or root is None:
                return ToolResult.ok(f"Status: Not indexed\nProject: {project_root}")
            return ToolResult.ok(
                "Status: Indexed\n"
                f"Project: {project_root}\n"
                f"Collection: {collection_name}\n"
                f"Files: {len(root.files)}\n"
                f"Chunks: {root.chunk_count}"
            )

        return await self._run("get_indexing_status", handler)

    def _status_all(self) -> ToolResult:
        roots = self.registry.get_all_roots()
        if not roots:
            return ToolResult.ok("No indexed projects found.")

        lines = [f"Indexed projects ({len(roots)}/{self.registry.max_projects}):\n"]
        for i, project_root in enumerate(roots, 1):
            root = self.registry.get_root(project_root)
            if root is None:
                continue
            lines.append(
                f"{i}. {project_root}\n"
                f"   Collection: {root.collection_name}\n"
                f"   Files: {len(root.files)}, Chunks: {root.chunk_count}\n"
            )
        return ToolResult.ok("\n".join(lines))
