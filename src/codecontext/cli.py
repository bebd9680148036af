"""CLI entry point for Code Context."""

import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable, Literal, Optional, cast

from codecontext.config import Settings
from codecontext.errors import CodeContextError
from codecontext.handlers import DEFAULT_SEARCH_LIMIT, ToolHandlers, ToolResult

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Send logs to stderr; stdout carries the MCP stdio transport."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.ERROR),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _run_tool(
    settings: Settings, call: Callable[[ToolHandlers], Awaitable[ToolResult]]
) -> int:
    """Run one tool call against a freshly loaded registry and print its text."""

    async def main() -> ToolResult:
        try:
            handlers = ToolHandlers.from_settings(settings)
        except CodeContextError as e:
            return ToolResult.error(f"Error: {e}")
        try:
            await handlers.startup()
            return await call(handlers)
        except CodeContextError as e:
            return ToolResult.error(f"Error: {e}")
        finally:
            await handlers.aclose()

    result = asyncio.run(main())
    stream = sys.stderr if result.is_error else sys.stdout
    print(result.text, file=stream)
    return 1 if result.is_error else 0


def serve(settings: Settings, transport: str = "stdio") -> None:
    """Start the MCP server.

    Args:
        settings: Runtime configuration
        transport: Transport protocol (stdio or sse)
    """
    # Import here to avoid loading MCP unless needed
    from codecontext.server import create_mcp_server

    logger.info("Starting Code Context MCP server via %s", transport)
    try:
        handlers = ToolHandlers.from_settings(settings)
    except CodeContextError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)
    mcp = create_mcp_server(handlers)
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


def deck(settings: Settings) -> None:
    """Launch the Deck TUI for interactive indexing and search."""
    from codecontext.deck import main as deck_main

    deck_main(settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="code-context",
        description="Code Context - incremental semantic code search across projects",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the MCP server")
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )

    # index command
    index_parser = subparsers.add_parser("index", help="Index a project directory")
    index_parser.add_argument("path", help="Project directory")
    index_parser.add_argument(
        "-f", "--force", action="store_true", help="Re-index unchanged files too"
    )
    index_parser.add_argument(
        "--splitter",
        choices=["ast", "paragraph"],
        default="ast",
        help="Chunking strategy (default: ast)",
    )
    index_parser.add_argument(
        "-r", "--refresh", action="store_true", help="Only re-embed files that changed"
    )

    # search command
    search_parser = subparsers.add_parser("search", help="Search indexed code")
    search_parser.add_argument("path", help="Project directory, or 'all'")
    search_parser.add_argument("query", help="Natural language query")
    search_parser.add_argument(
        "-n", "--limit", type=int, default=DEFAULT_SEARCH_LIMIT, help="Maximum results"
    )
    search_parser.add_argument(
        "--cross-project", action="store_true", help="Search every indexed project"
    )

    # status command
    status_parser = subparsers.add_parser("status", help="Show indexing status")
    status_parser.add_argument("path", nargs="?", default="all", help="Project or 'all'")

    # clear command
    clear_parser = subparsers.add_parser("clear", help="Remove an index")
    clear_parser.add_argument("path", help="Project directory, or 'all'")

    # deck command
    subparsers.add_parser("deck", help="Launch the Deck TUI")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
    except CodeContextError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)
    configure_logging(settings.log_level)

    if args.command == "serve":
        serve(settings, args.transport)
    elif args.command == "deck":
        deck(settings)
    elif args.command == "index":
        sys.exit(
            _run_tool(
                settings,
                lambda h: h.index_codebase(
                    args.path, force=args.force, splitter=args.splitter, refresh=args.refresh
                ),
            )
        )
    elif args.command == "search":
        sys.exit(
            _run_tool(
                settings,
                lambda h: h.search_code(
                    args.path, args.query, limit=args.limit, cross_project=args.cross_project
                ),
            )
        )
    elif args.command == "status":
        sys.exit(_run_tool(settings, lambda h: h.get_indexing_status(args.path)))
    elif args.command == "clear":
        sys.exit(_run_tool(settings, lambda h: h.clear_index(args.path)))


if __name__ == "__main__":
    main()
