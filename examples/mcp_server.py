#!/usr/bin/env python3
"""Serve the forms of an HTML file as MCP tools.

This server runs over stdio transport. Every form in the page becomes a tool;
calling a tool fills the form and submits it, returning the submitted data.

Requirements:
    pip install form-mcp[mcp]

Run:
    python examples/mcp_server.py page.html [https://example.com/page]
"""

import asyncio
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mcp.server.stdio import stdio_server

from form_mcp import Page, initialize
from form_mcp.mcp import MCPToolHost

logging.basicConfig(stream=sys.stderr, level=logging.INFO)


async def main(path: str, url: str):
    with open(path, encoding="utf-8") as f:
        html = f.read()

    host = MCPToolHost("form-mcp")
    page = Page(html, url=url, model_context=host)
    handle = await initialize(page, {"auto_submit": True})
    server = host.build_server()

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await handle.destroy()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        sys.exit("usage: mcp_server.py PAGE.html [URL]")
    asyncio.run(main(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else "about:blank"))
