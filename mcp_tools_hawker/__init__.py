"""mcp_tools_hawker package

Purpose:
- Find Singapore hawker centres near a GPS position, check scheduled
  closures and look up details, using data.gov.sg open data.
- Expose those services as MCP tools, so an LLM orchestrator can call them
  in-process or through a stdio child process.

Structure:
- core/: schemas, config, caching, errors
- services/: data.gov.sg gateway, ranking and per-tool text
- utils/: pure helpers (geo math)
- mcp/: tool registry/dispatcher, stdio (low-level SDK Server) + FastMCP servers, bridge client
"""

__version__ = "1.0.0"

from .core.schemas import ClosureRecord, HawkerCentre, RankedHawker  # noqa: E402,F401
