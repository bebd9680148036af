"""FastMCP server exposing the indexing tools."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from codecontext.handlers import DEFAULT_SEARCH_LIMIT, ToolHandlers, ToolResult


def _unwrap(result: ToolResult) -> str:
    """Error results become ToolErrors, which clients receive with isError set."""
    if result.is_error:
        raise ToolError(result.text)
    return result.text


def create_mcp_server(handlers: ToolHandlers) -> FastMCP:
    """Create an MCP server backed by one set of tool handlers.

    Design: 1 process = 1 registry. The snapshot is loaded when the server
    starts and network clients are closed when it stops.

    Args:
        handlers: Wired tool handlers (see ToolHandlers.from_settings)

    Returns:
        Configured FastMCP server instance
    """

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[None]:
        await handlers.startup()
        try:
            yield
        finally:
            await handlers.aclose()

    mcp = FastMCP(name="code-context", lifespan=lifespan)

    @mcp.tool()
    async def index_codebase(
        path: str, force: bool = False, splitter: str = "ast", refresh: bool = False
    ) -> str:
        """Index a codebase directory for semantic code search.

        An already indexed project is left as-is unless `refresh` or `force`
        is set. When the maximum number of projects is reached, the least recently
        used project is evicted.

        Args:
            path: Absolute path to the project directory
            force: Re-index every file even if unchanged
            refresh: Re-walk an indexed project, re-embedding only changed files
            splitter: Chunking strategy: "ast" (functions, classes...) or "paragraph"

        Returns:
            Summary of indexed, unchanged and skipped files
        """
        return _unwrap(
            await handlers.index_codebase(
                path, force=force, splitter=splitter, refresh=refresh
            )
        )

    @mcp.tool()
    async def search_code(
        path: str,
        query: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
        cross_project: bool = False,
    ) -> str:
        """Semantic search over indexed code using natural language.

        For example: "where are auth tokens refreshed" finds the relevant
        function even if it never uses those words.

        Args:
            path: Project directory (or any path inside it), or "all"
            query: Natural language description of what you're looking for
            limit: Maximum number of results to return (default: 10)
            cross_project: Search every indexed project instead of one

        Returns:
            Ranked code snippets with file locations and similarity scores
        """
        return _unwrap(
            await handlers.search_code(path, query, limit=limit, cross_project=cross_project)
        )

    @mcp.tool()
    async def clear_index(path: str) -> str:
        """Remove a project's index, or every index with path "all".

        Args:
            path: Project directory, or "all"
        """
        return _unwrap(await handlers.clear_index(path))

    @mcp.tool()
    async def get_indexing_status(path: str) -> str:
        """Report whether a project is indexed, or list all projects with path "all".

        Args:
            path: Project directory, or "all"
        """
        return _unwrap(await handlers.get_indexing_status(path))

    return mcp
