# tests/test_server.py
# Both transports over the same dispatcher. The stdio Server is driven through
# an in-memory client session from the SDK, so no child process is needed.

import asyncio

import pytest
from mcp import types
from mcp.shared.exceptions import McpError
from mcp.shared.memory import create_connected_server_and_client_session

from mcp_tools_hawker.core.schemas import HawkerNameArgs
from mcp_tools_hawker.mcp.registry import (
    CLOSURES_TOOL,
    NEARBY_TOOL,
    ToolDispatcher,
    ToolRegistry,
    ToolSpec,
)
from mcp_tools_hawker.mcp.server import SERVER_NAME, create_fastmcp, create_server


def _in_session(dispatcher, body):
    async def scenario():
        async with create_connected_server_and_client_session(create_server(dispatcher)) as client:
            return await body(client)

    return asyncio.run(scenario())


def test_server_identity_and_tool_list(dispatcher):
    server = create_server(dispatcher)
    assert server.name == SERVER_NAME

    async def body(client):
        return await client.list_tools()

    tools = _in_session(dispatcher, body).tools
    assert sorted(t.name for t in tools) == ["check_hawker_closures", "get_hawker_details", "get_nearby_hawkers"]


def test_call_returns_single_text_block(dispatcher):
    async def body(client):
        return await client.call_tool(CLOSURES_TOOL, {"hawkerName": "place b"})

    result = _in_session(dispatcher, body)
    assert not result.isError
    assert len(result.content) == 1
    assert result.content[0].type == "text"
    assert "Q1" in result.content[0].text
    assert "Cleaning" in result.content[0].text


@pytest.mark.parametrize(
    "name, arguments, code",
    [
        ("get_weather", {}, types.METHOD_NOT_FOUND),
        (NEARBY_TOOL, {"latitude": 1.3}, types.INVALID_PARAMS),
        (NEARBY_TOOL, {"latitude": "north", "longitude": 103.8}, types.INVALID_PARAMS),
    ],
)
def test_dispatch_errors_are_protocol_errors(dispatcher, name, arguments, code):
    async def body(client):
        with pytest.raises(McpError) as exc_info:
            await client.call_tool(name, arguments)
        return exc_info.value

    err = _in_session(dispatcher, body)
    assert err.error.code == code


def test_handler_fault_is_a_protocol_error():
    def explode(args):
        raise RuntimeError("upstream parser broke")

    registry = ToolRegistry()
    registry.register(ToolSpec(name="boom", description="fails", args_model=HawkerNameArgs, handler=explode))

    async def body(client):
        with pytest.raises(McpError) as exc_info:
            await client.call_tool("boom", {"hawkerName": "x"})
        return exc_info.value

    err = _in_session(ToolDispatcher(registry), body)
    assert err.error.code == types.INTERNAL_ERROR
    assert "upstream parser broke" in err.error.message


def test_fastmcp_exposes_the_same_tools(dispatcher):
    mcp = create_fastmcp(dispatcher)
    tools = asyncio.run(mcp.list_tools())

    by_name = {t.name: t for t in tools}
    assert sorted(by_name) == ["check_hawker_closures", "get_hawker_details", "get_nearby_hawkers"]
    assert by_name["check_hawker_closures"].inputSchema["required"] == ["hawkerName"]
    assert sorted(by_name["get_nearby_hawkers"].inputSchema["required"]) == ["latitude", "longitude"]
