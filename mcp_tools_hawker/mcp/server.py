"""MCP server exposing the hawker tools.

Two transports, one dispatcher:
- stdio (default): the low-level `Server` from the official MCP Python SDK,
  used by `StdioToolClient`. Unknown tools, invalid arguments and handler
  faults come back as JSON-RPC errors.
- streamable-http: FastMCP, served by Uvicorn at /mcp. Tools are ordinary
  Python functions decorated with @mcp.tool(); they delegate to the same
  ToolDispatcher.

Framing, initialize/ping and error envelopes are handled by the SDK.
"""

from __future__ import annotations

import sys
import asyncio
import argparse
import logging
from typing import List, Optional

import uvicorn
from mcp import types
from mcp.server.fastmcp import FastMCP
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from .. import __version__
from ..core.config import Settings
from ..services.data_gov_sg import OpenDataGateway
from .registry import CLOSURES_TOOL, DETAILS_TOOL, NEARBY_TOOL, ToolDispatcher, build_registry

SERVER_NAME = "hawker-location-server"

logger = logging.getLogger("hawker-mcp")


def build_dispatcher(settings: Optional[Settings] = None) -> ToolDispatcher:
    gateway = OpenDataGateway(settings=settings)
    return ToolDispatcher(build_registry(gateway))


def _text(result: types.CallToolResult) -> str:
    return result.content[0].text


# ---------------------------------------------------------------------------
# Low-level Server (stdio)
# ---------------------------------------------------------------------------

def create_server(dispatcher: ToolDispatcher) -> Server:
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return dispatcher.list_tools()

    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        # McpError propagates; the SDK answers it with a JSON-RPC error.
        # Handlers block on HTTP, so they run off the event loop.
        result = await asyncio.to_thread(dispatcher.call, req.params.name, req.params.arguments or {})
        return types.ServerResult(result)

    server.request_handlers[types.CallToolRequest] = call_tool
    return server


async def serve_stdio(dispatcher: ToolDispatcher) -> None:
    server = create_server(dispatcher)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Hawker MCP server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())


# ---------------------------------------------------------------------------
# FastMCP (streamable HTTP)
# ---------------------------------------------------------------------------

def create_fastmcp(dispatcher: ToolDispatcher) -> FastMCP:
    mcp = FastMCP(name=SERVER_NAME, stateless_http=False)
    registry = dispatcher.registry

    @mcp.tool(name=NEARBY_TOOL, description=registry.get(NEARBY_TOOL).description)
    def get_nearby_hawkers(latitude: float, longitude: float, radius: float = 2000, limit: int = 10) -> str:
        return _text(
            dispatcher.call(
                NEARBY_TOOL,
                {"latitude": latitude, "longitude": longitude, "radius": radius, "limit": limit},
            )
        )

    @mcp.tool(name=CLOSURES_TOOL, description=registry.get(CLOSURES_TOOL).description)
    def check_hawker_closures(hawkerName: str) -> str:  # noqa: N803 - wire argument name
        return _text(dispatcher.call(CLOSURES_TOOL, {"hawkerName": hawkerName}))

    @mcp.tool(name=DETAILS_TOOL, description=registry.get(DETAILS_TOOL).description)
    def get_hawker_details(hawkerName: str) -> str:  # noqa: N803 - wire argument name
        return _text(dispatcher.call(DETAILS_TOOL, {"hawkerName": hawkerName}))

    return mcp


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[list] = None) -> None:
    """Start the hawker MCP server (stdio by default)."""
    parser = argparse.ArgumentParser()
    parser.add_argument("--transport", choices=["stdio", "streamable-http"], default="stdio")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8765)
    args = parser.parse_args(argv)

    # stdout is the protocol channel for stdio; logs must stay on stderr
    logging.basicConfig(stream=sys.stderr, level=logging.INFO)

    dispatcher = build_dispatcher()

    if args.transport == "stdio":
        asyncio.run(serve_stdio(dispatcher))
        return

    starlette_app = create_fastmcp(dispatcher).streamable_http_app()  # path="/mcp"
    logger.info(
        "Starting hawker MCP server (streamable-http) on http://%s:%d/mcp …",
        args.host,
        args.port,
    )
    uvicorn.run(
        starlette_app,
        host=args.host,
        port=args.port,
        reload=False,
        loop="asyncio",
    )


if __name__ == "__main__":
    main()
