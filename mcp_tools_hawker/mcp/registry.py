"""Tool registry + dispatcher.

The registry is transport-agnostic: the low-level stdio Server, the FastMCP
HTTP app and `InProcessToolClient` all go through `ToolDispatcher.call`.

Contract of `call`:
- unknown name         -> UnknownToolError      (JSON-RPC -32601)
- bad/missing args     -> ToolValidationError   (JSON-RPC -32602)
- handler raised       -> ToolExecutionError    (JSON-RPC -32603)
- otherwise            -> CallToolResult with exactly one TextContent
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from mcp import types
from mcp.shared.exceptions import McpError
from pydantic import BaseModel, ValidationError

from ..core.errors import ToolExecutionError, ToolValidationError, UnknownToolError
from ..core.schemas import HawkerNameArgs, NearbyHawkersArgs
from ..services.closures import closures_text
from ..services.data_gov_sg import OpenDataGateway
from ..services.details import details_text
from ..services.nearby import nearby_hawkers_text

NEARBY_TOOL = "get_nearby_hawkers"
CLOSURES_TOOL = "check_hawker_closures"
DETAILS_TOOL = "get_hawker_details"


@dataclass(frozen=True)
class ToolSpec:
    """A callable tool: name, description, argument model and text handler."""
    name: str
    description: str
    args_model: Type[BaseModel]
    handler: Callable[[Any], str]

    def input_schema(self) -> Dict[str, Any]:
        return self.args_model.model_json_schema(by_alias=True)

    def to_mcp_tool(self) -> types.Tool:
        return types.Tool(name=self.name, description=self.description, inputSchema=self.input_schema())


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def get(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


class ToolDispatcher:
    def __init__(self, registry: ToolRegistry, logger: Optional[logging.Logger] = None) -> None:
        self.registry = registry
        self.log = logger or logging.getLogger("hawker-mcp")

    def list_tools(self) -> List[types.Tool]:
        self.log.info("Listing available tools")
        return [self.registry.get(name).to_mcp_tool() for name in self.registry.names()]

    def call(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> types.CallToolResult:
        self.log.info("Tool called: %s", name)
        spec = self.registry.get(name)

        try:
            args = spec.args_model.model_validate(dict(arguments or {}))
        except ValidationError as exc:
            raise ToolValidationError(f"Invalid arguments for {name}: {_describe(exc)}") from exc

        try:
            text = spec.handler(args)
        except McpError:
            raise
        except Exception as exc:
            self.log.exception("Tool execution failed: %s", name)
            raise ToolExecutionError(f"Tool execution failed: {exc}") from exc

        return types.CallToolResult(content=[types.TextContent(type="text", text=text)])


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def build_registry(gateway: OpenDataGateway) -> ToolRegistry:
    """The three hawker tools, wired to one gateway instance."""
    registry = ToolRegistry()
    registry.register(
        ToolSpec(
            name=NEARBY_TOOL,
            description=(
                "Get Hawker centres near a GPS location, sorted by distance. Returns name, address, "
                "distance, number of stalls and status. Defaults: radius 2000m, limit 10."
            ),
            args_model=NearbyHawkersArgs,
            handler=lambda args: nearby_hawkers_text(gateway, args),
        )
    )
    registry.register(
        ToolSpec(
            name=CLOSURES_TOOL,
            description=(
                "Check if a Hawker centre is closed or has scheduled closures. "
                "Only use this when the user asks about closures or closure dates."
            ),
            args_model=HawkerNameArgs,
            handler=lambda args: closures_text(gateway, args),
        )
    )
    registry.register(
        ToolSpec(
            name=DETAILS_TOOL,
            description=(
                "Get detailed information (description, photo) about a specific Hawker centre. "
                "Use the exact name returned by get_nearby_hawkers."
            ),
            args_model=HawkerNameArgs,
            handler=lambda args: details_text(gateway, args),
        )
    )
    return registry
