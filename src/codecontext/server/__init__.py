"""MCP front end."""

from codecontext.server.mcp_server import create_mcp_server

__all__ = ["create_mcp_server"]
