"""MCP (Model Context Protocol) tool host for form-mcp.

Publishes registered form tools through an MCP server, so any MCP client can
list them and call them. Assign an MCPToolHost to ``page.model_context``.

Requires: pip install form-mcp[mcp]
"""

import json
import logging
from typing import Any, Optional

import mcp.types as types
from mcp.server.lowlevel import Server

from form_mcp.exceptions import FormToolsError, ToolNotFound, ToolRegistrationError
from form_mcp.execution import ExecuteResult
from form_mcp.tools import FormTool, ToolHost

logger = logging.getLogger(__name__)


class MCPToolHost(ToolHost):
    """Tool host backed by an MCP server.

    Args:
        name: Server name reported to MCP clients.

    Usage:
        host = MCPToolHost("shop-forms")
        page.model_context = host
        handle = await initialize(page)
        server = host.build_server()
    """

    def __init__(self, name: str = "form-mcp"):
        self.name = name
        self._tools: dict[str, FormTool] = {}

    async def register_tool(self, tool: FormTool) -> None:
        if tool.name in self._tools:
            raise ToolRegistrationError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.debug(f"MCP tool added: {tool.name}")

    async def unregister_tool(self, name: str) -> None:
        if name not in self._tools:
            raise ToolNotFound(f"Tool '{name}' not found")
        del self._tools[name]
        logger.debug(f"MCP tool removed: {name}")

    def get_tool(self, name: str) -> Optional[FormTool]:
        return self._tools.get(name)

    def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.schema(),
            )
            for tool in self._tools.values()
        ]

    async def call_tool(self, name: str, arguments: Optional[dict[str, Any]]) -> list[types.TextContent]:
        """Invoke a form tool and return its result as JSON text.

        Raises:
            ToolNotFound: If no tool with that name is registered.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFound(f"Tool '{name}' not found")

        try:
            result = await tool.execute(**(arguments or {}))
        except FormToolsError as e:
            result = ExecuteResult(success=False, error=str(e))

        return [types.TextContent(type="text", text=json.dumps(result.to_dict()))]

    def build_server(self) -> Server:
        """Create a low-level MCP server serving this host's tools."""
        server = Server(self.name)

        @server.list_tools()
        async def list_tools() -> list[types.Tool]:
            return self.list_tools()

        @server.call_tool()
        async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
            return await self.call_tool(name, arguments)

        return server
