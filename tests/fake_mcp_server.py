"""Scriptable stand-in for the hawker MCP server, used by the bridge tests.

Speaks the same line-delimited JSON-RPC. Tool names drive the behaviour:
  echo   -> replies with the arguments as text
  slow   -> replies after arguments["delay"] seconds (from another thread)
  hang   -> never replies
  fail   -> JSON-RPC error -32603
  crash  -> exits with code 3
anything else -> JSON-RPC error -32601
"""

import json
import os
import sys
import threading

_lock = threading.Lock()


def reply(message):
    with _lock:
        sys.stdout.write(json.dumps(message) + "\n")
        sys.stdout.flush()


def text_result(req_id, text):
    return {"jsonrpc": "2.0", "id": req_id, "result": {"content": [{"type": "text", "text": text}]}}


def error(req_id, code, message):
    return {"jsonrpc": "2.0", "id": req_id, "error": {"code": code, "message": message}}


def handle(message):
    if "id" not in message:
        return
    req_id = message["id"]
    method = message.get("method")
    params = message.get("params") or {}

    if method == "initialize":
        reply({
            "jsonrpc": "2.0",
            "id": req_id,
            "result": {
                "protocolVersion": params.get("protocolVersion", "2025-03-26"),
                "capabilities": {"tools": {}},
                "serverInfo": {"name": "fake-server", "version": "0.0.1"},
            },
        })
    elif method == "tools/list":
        reply({
            "jsonrpc": "2.0",
            "id": req_id,
            "result": {"tools": [{"name": "echo", "description": "Echo", "inputSchema": {"type": "object"}}]},
        })
    elif method == "tools/call":
        name = params.get("name")
        args = params.get("arguments") or {}
        if name == "echo":
            reply(text_result(req_id, json.dumps(args, sort_keys=True)))
        elif name == "slow":
            timer = threading.Timer(float(args.get("delay", 0.5)), reply, args=[text_result(req_id, "slow done")])
            timer.daemon = True
            timer.start()
        elif name == "hang":
            pass
        elif name == "fail":
            reply(error(req_id, -32603, "Tool execution failed: boom"))
        elif name == "crash":
            sys.stderr.write("fake server crashing\n")
            sys.stderr.flush()
            os._exit(3)
        else:
            reply(error(req_id, -32601, f"Unknown tool: {name}"))
    else:
        reply(error(req_id, -32601, f"Method not found: {method}"))


def main():
    sys.stderr.write("fake server ready\n")
    sys.stderr.flush()
    for line in sys.stdin:
        line = line.strip()
        if line:
            handle(json.loads(line))


if __name__ == "__main__":
    main()
