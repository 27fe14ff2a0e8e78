"""MCP protocol adapter.

Exposes every enabled tool as an MCP tool named after it, backed by
ExecutionCoordinator.invoke, and manages the run state of one MCP
session (stdio by default).
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from toolsmith.core.config import settings
from toolsmith.core.exceptions import ServerAlreadyRunningError
from toolsmith.core.logging import get_logger
from toolsmith.models.enums import ParameterType
from toolsmith.services.tool_service import ToolService

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from toolsmith.schemas.tool import ToolDescriptor
    from toolsmith.services.execution_service import ExecutionCoordinator

logger = get_logger(__name__)

JSON_SCHEMA_TYPES: dict[str, str] = {
    ParameterType.STRING.value: "string",
    ParameterType.INTEGER.value: "integer",
    ParameterType.NUMBER.value: "number",
    ParameterType.BOOLEAN.value: "boolean",
    ParameterType.OBJECT.value: "object",
}


class RunStatus(str, Enum):
    """Run state of the MCP server."""

    STOPPED = "stopped"
    RUNNING = "running"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


@dataclass
class ServerState:
    """Run state shared between the adapter and whoever owns its lifecycle.

    Transitions: ``stopped --start--> running --stop--> stopped``. A
    session that ends on its own also returns the state to stopped.
    """

    status: RunStatus = RunStatus.STOPPED
    started_at: datetime | None = None
    tool_names: list[str] = field(default_factory=list)

    @property
    def running(self) -> bool:
        return self.status is RunStatus.RUNNING

    @property
    def uptime_seconds(self) -> float | None:
        if not self.running or self.started_at is None:
            return None
        return (datetime.now(UTC) - self.started_at).total_seconds()

    def mark_running(self, tool_names: list[str]) -> None:
        self.status = RunStatus.RUNNING
        self.started_at = datetime.now(UTC)
        self.tool_names = list(tool_names)

    def mark_stopped(self) -> None:
        self.status = RunStatus.STOPPED
        self.started_at = None
        self.tool_names = []


def build_input_schema(tool: ToolDescriptor) -> dict[str, Any]:
    """Derive the JSON Schema of a tool's arguments from its parameters.

    Unknown or missing types map to ``string``; parameters not marked
    required are optional.
    """
    properties: dict[str, Any] = {}
    required: list[str] = []
    for param in tool.parameters:
        schema_type = JSON_SCHEMA_TYPES.get(param.type or "", "string")
        prop: dict[str, Any] = {"type": schema_type}
        if schema_type == "object":
            prop["additionalProperties"] = True
        if param.description:
            prop["description"] = param.description
        if param.default is not None:
            prop["default"] = param.default
        properties[param.name] = prop
        if param.required:
            required.append(param.name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def format_result(value: Any) -> str:
    """Render a tool value as text: strings as-is, anything else as pretty JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def text_result(text: str, is_error: bool = False) -> types.CallToolResult:
    """A tool result holding one text block."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=is_error,
    )


async def serve_stdio(server: Server[Any, Any]) -> None:
    """Serve one MCP session over stdin/stdout until the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


class ProtocolAdapter:
    """Registers enabled tools with an MCP server and runs its session.

    The session transport is injectable through ``serve``; it receives the
    configured low-level server and returns when the session ends.

    Example:
        >>> state = ServerState()
        >>> adapter = ProtocolAdapter(async_session, coordinator, state)
        >>> await adapter.start()
        ['get_weather', 'echo']
        >>> await adapter.stop()
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        coordinator: ExecutionCoordinator,
        state: ServerState,
        serve: Callable[[Server[Any, Any]], Awaitable[None]] = serve_stdio,
        name: str | None = None,
        version: str | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.coordinator = coordinator
        self.state = state
        self._serve = serve
        self.name = name or settings.MCP_SERVER_NAME
        self.version = version or settings.MCP_SERVER_VERSION
        self._tools: dict[str, ToolDescriptor] = {}
        self._task: asyncio.Task[None] | None = None
        # Serializes start, stop and restart
        self._lifecycle_lock = asyncio.Lock()

    @property
    def tools(self) -> dict[str, ToolDescriptor]:
        """Registered tools by name."""
        return dict(self._tools)

    async def start(self) -> list[str]:
        """Register enabled tools and open the session.

        Returns:
            Names of the registered tools.

        Raises:
            ServerAlreadyRunningError: If a session is already open.
        """
        async with self._lifecycle_lock:
            return await self._start()

    async def _start(self) -> list[str]:
        if self.state.running:
            raise ServerAlreadyRunningError()

        async with self.session_factory() as session:
            descriptors = await ToolService(session).list_enabled()

        registered: dict[str, ToolDescriptor] = {}
        for tool in descriptors:
            if tool.name in registered:
                logger.warning(f"Skipping tool '{tool.name}' ({tool.id}): name already registered")
                continue
            registered[tool.name] = tool
        self._tools = registered

        server = self._build_server()
        self.state.mark_running(list(registered))
        self._task = asyncio.create_task(self._run_session(server), name="mcp-session")
        logger.info(
            f"MCP server '{self.name}' started with {len(registered)} tool(s)",
            extra={"context": {"tools": list(registered)}},
        )
        return list(registered)

    async def stop(self) -> None:
        """Close the session. Stopping a stopped server does nothing."""
        async with self._lifecycle_lock:
            await self._stop()

    async def _stop(self) -> None:
        if not self.state.running:
            return

        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self._tools = {}
        self.state.mark_stopped()
        logger.info(f"MCP server '{self.name}' stopped")

    async def restart(self) -> list[str]:
        """Stop the session if one is open, then start a fresh one."""
        async with self._lifecycle_lock:
            await self._stop()
            return await self._start()

    async def wait_closed(self) -> None:
        """Wait until the current session ends."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})

    async def list_tools(self) -> list[types.Tool]:
        """MCP tool listing for the registered tools."""
        return [
            types.Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=build_input_schema(tool),
            )
            for tool in self._tools.values()
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        """Invoke a registered tool; every failure becomes an error result."""
        tool = self._tools.get(name)
        if tool is None:
            return text_result(f"Error: Unknown tool: {name}", is_error=True)

        try:
            value = await self.coordinator.invoke(tool.id, arguments or {})
        except Exception as e:
            logger.warning(f"MCP call to '{name}' failed: {e}")
            return text_result(f"Error: {e}", is_error=True)

        return text_result(format_result(value))

    def _build_server(self) -> Server[Any, Any]:
        server: Server[Any, Any] = Server(self.name, version=self.version)

        @server.list_tools()
        async def handle_list_tools() -> list[types.Tool]:
            return await self.list_tools()

        @server.call_tool()
        async def handle_call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
            return await self.call_tool(name, arguments)

        return server

    async def _run_session(self, server: Server[Any, Any]) -> None:
        try:
            await self._serve(server)
        except Exception:
            logger.exception(f"MCP server '{self.name}' session failed")
        finally:
            if self._task is asyncio.current_task():
                self._task = None
                self._tools = {}
                self.state.mark_stopped()
                logger.info(f"MCP server '{self.name}' session ended")


__all__ = [
    "JSON_SCHEMA_TYPES",
    "ProtocolAdapter",
    "RunStatus",
    "ServerState",
    "build_input_schema",
    "format_result",
    "serve_stdio",
    "text_result",
]
