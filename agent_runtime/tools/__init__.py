"""
Tool server connectivity.

- connection: one MCP connection per server (stdio, sse, http transports)
- registry: per-run namespaced catalog and call routing over many servers
- presets: ready-made definitions for common servers
"""

from .connection import (
    InvocationResult,
    ToolSpec,
    TransportConnection,
    StdioConnection,
    EventStreamConnection,
    HttpConnection,
    create_connection,
)
from .registry import (
    NAMESPACE_SEPARATOR,
    ExecutableTool,
    ToolServerRegistry,
    make_tool_call,
    matches_glob,
    parse_tool_name,
)
from .presets import get_preset, list_presets

__all__ = [
    "InvocationResult",
    "ToolSpec",
    "TransportConnection",
    "StdioConnection",
    "EventStreamConnection",
    "HttpConnection",
    "create_connection",
    "NAMESPACE_SEPARATOR",
    "ExecutableTool",
    "ToolServerRegistry",
    "make_tool_call",
    "matches_glob",
    "parse_tool_name",
    "get_preset",
    "list_presets",
]
