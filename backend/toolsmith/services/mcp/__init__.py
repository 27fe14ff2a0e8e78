"""MCP server integration."""

from toolsmith.services.mcp.server import (
    ProtocolAdapter,
    RunStatus,
    ServerState,
    build_input_schema,
    format_result,
    serve_stdio,
)

__all__ = [
    "ProtocolAdapter",
    "RunStatus",
    "ServerState",
    "build_input_schema",
    "format_result",
    "serve_stdio",
]
