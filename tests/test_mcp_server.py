"""Tests for the MCP server wiring."""

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from codecontext.handlers import ToolHandlers, ToolResult
from codecontext.server import create_mcp_server
from codecontext.server.mcp_server import _unwrap


@pytest.fixture
def mcp(registry, embedder, store):
    return create_mcp_server(ToolHandlers(registry, embedder, store))


class TestMcpServer:
    """Tests for create_mcp_server."""

    @pytest.mark.asyncio
    async def test_registers_four_tools(self, mcp):
        tools = {tool.name: tool for tool in await mcp.list_tools()}
        assert set(tools) == {"index_codebase", "search_code", "clear_index", "get_indexing_status"}
        assert set(tools["index_codebase"].inputSchema["properties"]) == {
            "path",
            "force",
            "splitter",
            "refresh",
        }
        assert tools["search_code"].inputSchema["required"] == ["path", "query"]

    @pytest.mark.asyncio
    async def test_error_results_raise_tool_error(self, mcp):
        with pytest.raises(ToolError, match="Please index first"):
            await mcp.call_tool("search_code", {"path": "/not/indexed", "query": "q"})

    def test_unwrap(self):
        assert _unwrap(ToolResult.ok("fine")) == "fine"
        with pytest.raises(ToolError, match="broken"):
            _unwrap(ToolResult.error("broken"))
