"""Error types.

Protocol-level errors subclass `McpError` so they carry a JSON-RPC
`ErrorData` (code + message) and can be written to the wire unchanged.
Data problems (no matches, unknown hawker name) are NOT errors: tools return
a normal text result for those.
"""

from __future__ import annotations

from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData


class ToolError(McpError):
    """Base class for errors raised by the tool dispatcher."""

    code = INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(ErrorData(code=self.code, message=message))


class UnknownToolError(ToolError):
    code = METHOD_NOT_FOUND

    def __init__(self, name: str) -> None:
        self.tool_name = name
        super().__init__(f"Unknown tool: {name}")


class ToolValidationError(ToolError):
    code = INVALID_PARAMS


class ToolExecutionError(ToolError):
    code = INTERNAL_ERROR


class RemoteToolError(McpError):
    """An error response received over the bridge."""

    @property
    def code(self) -> int:
        return self.error.code


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------

class BridgeError(Exception):
    """Transport-level failure talking to the out-of-process dispatcher."""


class BridgeTimeoutError(BridgeError):
    pass


class BridgeExitedError(BridgeError):
    pass
