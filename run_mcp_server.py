"""Entrypoint for running the hawker MCP server.

Usage:
  python run_mcp_server.py                                  # stdio
  python run_mcp_server.py --transport streamable-http --port 8765

Or via an MCP host config pointing to this script.
"""
from mcp_tools_hawker.mcp.server import main

if __name__ == "__main__":
    main()
