"""Clients for the hawker tool server.

`StdioToolClient` runs the dispatcher as a child process and talks
line-delimited JSON-RPC over its stdin/stdout:

    NOT_STARTED --start()--> STARTING --initialize ok--> RUNNING
         ^                                                  |
         +------------------- EXITED <---- child exits -----+

- Requests are correlated by a monotonically increasing integer id; replies
  may arrive in any order.
- A request without a reply within `request_timeout_s` raises
  BridgeTimeoutError; a late reply for that id is dropped.
- When the child exits every pending request fails with BridgeExitedError and
  the next call relaunches the child. There is no proactive restart.
- The child's stderr is re-logged line by line and never interpreted.

`InProcessToolClient` offers the same `list_tools` / `call_tool` surface
around a local ToolDispatcher, so callers do not care where tools run.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from mcp import types

from .. import __version__
from ..core.errors import BridgeError, BridgeExitedError, BridgeTimeoutError, RemoteToolError
from .registry import CLOSURES_TOOL, DETAILS_TOOL, NEARBY_TOOL, ToolDispatcher

DEFAULT_SERVER_COMMAND: Sequence[str] = (
    sys.executable,
    "-m",
    "mcp_tools_hawker.mcp.server",
    "--transport",
    "stdio",
)

# Tool results can be long (closure lists); asyncio's default line limit is 64 KiB.
_STREAM_LIMIT = 4 * 1024 * 1024


class BridgeState(str, Enum):
    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    EXITED = "exited"


class StdioToolClient:
    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        *,
        cwd: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        request_timeout_s: float = 30.0,
        startup_timeout_s: float = 10.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.command = list(command or DEFAULT_SERVER_COMMAND)
        self.cwd = cwd
        self.env = dict(env) if env is not None else None
        self.request_timeout_s = request_timeout_s
        self.startup_timeout_s = startup_timeout_s
        self.log = logger or logging.getLogger("hawker-mcp.bridge")

        self._state = BridgeState.NOT_STARTED
        self._process: Optional[asyncio.subprocess.Process] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._next_id = 0
        self._start_lock = asyncio.Lock()
        self._tasks: List[asyncio.Task] = []
        self.server_info: Optional[Dict[str, Any]] = None

    @property
    def state(self) -> BridgeState:
        return self._state

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        async with self._start_lock:
            if self._state is BridgeState.RUNNING and self._process is not None:
                return

            self._state = BridgeState.STARTING
            self.log.info("Starting MCP server: %s", " ".join(self.command))
            try:
                process = await asyncio.create_subprocess_exec(
                    *self.command,
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=self.cwd,
                    env=self.env,
                    limit=_STREAM_LIMIT,
                )
            except OSError as exc:
                self._state = BridgeState.NOT_STARTED
                raise BridgeError(f"Failed to start MCP server: {exc}") from exc

            self._process = process
            self._tasks = [
                asyncio.create_task(self._read_stdout(process)),
                asyncio.create_task(self._read_stderr(process)),
            ]

            try:
                self.server_info = await self._request(
                    "initialize",
                    {
                        "protocolVersion": types.LATEST_PROTOCOL_VERSION,
                        "capabilities": {},
                        "clientInfo": {"name": "hawker-bridge", "version": __version__},
                    },
                    timeout=self.startup_timeout_s,
                )
                await self._notify("notifications/initialized")
            except BaseException:
                await self._terminate(process)
                raise

            if self._process is process:
                self._state = BridgeState.RUNNING

    async def stop(self) -> None:
        """Terminate the child; every pending request fails with BridgeExitedError."""
        process = self._process
        if process is None:
            return
        self.log.info("Stopping MCP server")
        await self._terminate(process)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=5.0)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
        # the stdout reader runs the exit bookkeeping once it sees EOF
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._handle_exit(process)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def list_tools(self) -> List[types.Tool]:
        result = await self.request("tools/list", {})
        return types.ListToolsResult.model_validate(result).tools

    async def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> types.CallToolResult:
        result = await self.request("tools/call", {"name": name, "arguments": dict(arguments or {})})
        return types.CallToolResult.model_validate(result)

    async def request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        await self.start()
        return await self._request(method, params or {}, timeout=self.request_timeout_s)

    # ------------------------------------------------------------------
    # Wire
    # ------------------------------------------------------------------

    async def _request(self, method: str, params: Dict[str, Any], timeout: float) -> Any:
        process = self._process
        if process is None or process.stdin is None:
            raise BridgeError("MCP server not started")

        self._next_id += 1
        request_id = self._next_id
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            await self._write(process, {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params})
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            raise BridgeTimeoutError(f"MCP request timeout: {method} (id={request_id}) after {timeout}s") from None
        finally:
            self._pending.pop(request_id, None)

    async def _notify(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        process = self._process
        if process is None:
            raise BridgeError("MCP server not started")
        message: Dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        await self._write(process, message)

    async def _write(self, process: asyncio.subprocess.Process, message: Dict[str, Any]) -> None:
        assert process.stdin is not None
        try:
            process.stdin.write((json.dumps(message) + "\n").encode("utf-8"))
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise BridgeExitedError("MCP server exited") from exc

    def _handle_message(self, message: Any) -> None:
        if not isinstance(message, dict) or message.get("id") is None:
            return
        future = self._pending.pop(message["id"], None)
        if future is None or future.done():
            self.log.debug("Dropping reply for unknown or expired id %s", message["id"])
            return

        error = message.get("error")
        if error:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            future.set_exception(
                RemoteToolError(
                    types.ErrorData(
                        code=int(error.get("code", types.INTERNAL_ERROR)),
                        message=error.get("message") or "MCP error",
                        data=error.get("data"),
                    )
                )
            )
        else:
            future.set_result(message.get("result"))

    async def _read_stdout(self, process: asyncio.subprocess.Process) -> None:
        assert process.stdout is not None
        while True:
            try:
                raw = await process.stdout.readline()
            except ValueError:
                # line exceeded _STREAM_LIMIT; the stream is unusable
                self.log.error("MCP server sent an oversized line")
                break
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except ValueError:
                self.log.warning("Failed to parse message: %s", line)
                continue
            self._handle_message(message)

        if process.returncode is None:
            try:
                await asyncio.wait_for(process.wait(), timeout=5.0)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
        self._handle_exit(process)

    async def _read_stderr(self, process: asyncio.subprocess.Process) -> None:
        assert process.stderr is not None
        while True:
            try:
                raw = await process.stderr.readline()
            except ValueError:
                continue
            if not raw:
                break
            self.log.info("[MCP Server] %s", raw.decode("utf-8", errors="replace").rstrip())

    def _handle_exit(self, process: asyncio.subprocess.Process) -> None:
        if process is not self._process:
            return
        self.log.warning("MCP server exited with code: %s", process.returncode)
        self._state = BridgeState.EXITED
        self._process = None

        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(BridgeExitedError("MCP server exited"))

        self._state = BridgeState.NOT_STARTED


class InProcessToolClient:
    """Same surface as StdioToolClient, dispatching in this process."""

    def __init__(self, dispatcher: ToolDispatcher) -> None:
        self.dispatcher = dispatcher

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    async def list_tools(self) -> List[types.Tool]:
        return self.dispatcher.list_tools()

    async def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> types.CallToolResult:
        # handlers block on HTTP; keep the event loop free
        return await asyncio.to_thread(self.dispatcher.call, name, dict(arguments or {}))


# ---------------------------------------------------------------------------
# Helpers for orchestrators: one call per tool, text out
# ---------------------------------------------------------------------------

def _first_text(result: types.CallToolResult) -> str:
    for block in result.content:
        if isinstance(block, types.TextContent):
            return block.text
    return ""


async def get_nearby_hawkers(
    client: Any,
    latitude: float,
    longitude: float,
    radius: Optional[float] = None,
    limit: Optional[int] = None,
) -> str:
    result = await client.call_tool(
        NEARBY_TOOL,
        {
            "latitude": latitude,
            "longitude": longitude,
            "radius": 2000 if radius is None else radius,
            "limit": 10 if limit is None else limit,
        },
    )
    return _first_text(result)


async def check_hawker_closures(client: Any, hawker_name: str) -> str:
    return _first_text(await client.call_tool(CLOSURES_TOOL, {"hawkerName": hawker_name}))


async def get_hawker_details(client: Any, hawker_name: str) -> str:
    return _first_text(await client.call_tool(DETAILS_TOOL, {"hawkerName": hawker_name}))
