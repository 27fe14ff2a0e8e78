"""Tests for the MCP protocol adapter."""

import asyncio
import json

import httpx
import mcp.types as types
import pytest

from toolsmith.core.exceptions import ServerAlreadyRunningError
from toolsmith.services.execution_service import ExecutionCoordinator
from toolsmith.services.executors import CliToolExecutor, HttpToolExecutor
from toolsmith.services.mcp import (
    ProtocolAdapter,
    RunStatus,
    ServerState,
    build_input_schema,
    format_result,
)
from toolsmith.services.tool_service import ToolService


class TestBuildInputSchema:
    """Test JSON Schema derivation."""

    def test_types_required_and_defaults(self, make_descriptor, http_tool_data):
        """Declared types map to JSON types; required names are listed."""
        tool = make_descriptor(
            http_tool_data(
                parameters=[
                    {"name": "city", "type": "string", "required": True, "description": "City"},
                    {"name": "days", "type": "integer", "default": 3},
                    {"name": "metric", "type": "boolean"},
                    {"name": "filters", "type": "object"},
                ]
            )
        )

        schema = build_input_schema(tool)

        assert schema["type"] == "object"
        assert schema["required"] == ["city"]
        assert schema["properties"]["city"] == {"type": "string", "description": "City"}
        assert schema["properties"]["days"] == {"type": "integer", "default": 3}
        assert schema["properties"]["metric"] == {"type": "boolean"}
        assert schema["properties"]["filters"] == {
            "type": "object",
            "additionalProperties": True,
        }

    def test_no_required_key_when_all_optional(self, make_descriptor, http_tool_data):
        """The required list is omitted when nothing is required."""
        tool = make_descriptor(http_tool_data(parameters=[{"name": "q"}]))
        assert "required" not in build_input_schema(tool)


class TestFormatResult:
    """Test result rendering."""

    def test_strings_pass_through(self):
        """Text values are returned as-is."""
        assert format_result("hello") == "hello"

    def test_other_values_are_pretty_json(self):
        """Structured values are indented JSON."""
        assert format_result({"a": 1}) == json.dumps({"a": 1}, indent=2)
        assert format_result(21) == "21"


class TestServerState:
    """Test the explicit run-state object."""

    def test_transitions(self):
        """stopped -> running -> stopped."""
        state = ServerState()
        assert state.status is RunStatus.STOPPED
        assert state.uptime_seconds is None

        state.mark_running(["a"])
        assert state.running is True
        assert state.tool_names == ["a"]
        assert state.uptime_seconds is not None

        state.mark_stopped()
        assert state.running is False
        assert state.started_at is None
        assert state.tool_names == []


class TestProtocolAdapter:
    """Test adapter lifecycle and tool calls."""

    @pytest.mark.asyncio
    async def test_start_registers_enabled_tools(
        self, adapter, create_tool, http_tool_data, cli_tool_data
    ):
        """Only enabled tools are registered."""
        await create_tool(http_tool_data())
        await create_tool(cli_tool_data(enabled=False))

        names = await adapter.start()

        assert names == ["get_weather"]
        assert adapter.state.running is True
        assert adapter.state.tool_names == ["get_weather"]
        listed = await adapter.list_tools()
        assert [tool.name for tool in listed] == ["get_weather"]
        assert listed[0].inputSchema["required"] == ["city"]

    @pytest.mark.asyncio
    async def test_start_twice_raises(self, adapter):
        """A running server cannot be started again."""
        await adapter.start()

        with pytest.raises(ServerAlreadyRunningError):
            await adapter.start()

    @pytest.mark.asyncio
    async def test_concurrent_starts_open_one_session(self, async_session_maker, coordinator):
        """Of two overlapping starts exactly one succeeds."""
        opened: list[object] = []

        async def idle(server):
            opened.append(server)
            await asyncio.Event().wait()

        adapter = ProtocolAdapter(async_session_maker, coordinator, ServerState(), serve=idle)
        try:
            results = await asyncio.gather(
                adapter.start(), adapter.start(), return_exceptions=True
            )
            await asyncio.sleep(0.05)

            errors = [r for r in results if isinstance(r, ServerAlreadyRunningError)]
            assert len(errors) == 1
            assert len(opened) == 1
        finally:
            await adapter.stop()

        assert adapter.state.running is False

    @pytest.mark.asyncio
    async def test_restart_reopens_session(self, adapter):
        """Restart works whether or not the server is running."""
        assert await adapter.restart() == []
        first_task = adapter._task

        await adapter.restart()

        assert adapter.state.running is True
        assert adapter._task is not first_task
        assert first_task.cancelled()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, adapter):
        """Stopping a stopped server does nothing."""
        await adapter.stop()
        await adapter.start()
        await adapter.stop()
        await adapter.stop()

        assert adapter.state.running is False
        assert adapter.tools == {}

    @pytest.mark.asyncio
    async def test_independent_adapters(self, async_session_maker, coordinator):
        """Each adapter owns its own state."""

        async def idle(server):
            await asyncio.Event().wait()

        first = ProtocolAdapter(async_session_maker, coordinator, ServerState(), serve=idle)
        second = ProtocolAdapter(async_session_maker, coordinator, ServerState(), serve=idle)

        await first.start()
        try:
            assert first.state.running is True
            assert second.state.running is False
        finally:
            await first.stop()

    @pytest.mark.asyncio
    async def test_duplicate_names_register_once(
        self, adapter, make_descriptor, http_tool_data, monkeypatch
    ):
        """Descriptors sharing a name are registered once, first wins."""
        first = make_descriptor(http_tool_data())
        second = make_descriptor(http_tool_data())

        async def list_enabled(self):
            return [first, second]

        monkeypatch.setattr(ToolService, "list_enabled", list_enabled)

        names = await adapter.start()

        assert names == ["get_weather"]
        assert adapter.tools["get_weather"].id == first.id

    @pytest.mark.asyncio
    async def test_session_end_resets_state(self, async_session_maker, coordinator):
        """A session that ends on its own returns the state to stopped."""

        async def short_session(server):
            return None

        adapter = ProtocolAdapter(
            async_session_maker, coordinator, ServerState(), serve=short_session
        )
        await adapter.start()
        await adapter.wait_closed()

        assert adapter.state.running is False

    @pytest.mark.asyncio
    async def test_call_unknown_tool(self, adapter):
        """Unknown names produce an error result."""
        await adapter.start()

        result = await adapter.call_tool("nope", {})

        assert result.isError is True
        assert result.content[0].text == "Error: Unknown tool: nope"

    @pytest.mark.asyncio
    async def test_call_tool_success_and_failure(
        self, async_session_maker, cipher, create_tool, http_tool_data
    ):
        """Values are rendered as text; failures become error results."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("city") == "Atlantis":
                return httpx.Response(404)
            return httpx.Response(200, json={"data": {"temp": {"c": 21}}})

        coordinator = ExecutionCoordinator(
            async_session_maker,
            cipher,
            executors={
                "http": HttpToolExecutor(
                    client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
                ),
                "cli": CliToolExecutor(),
            },
        )

        async def idle(server):
            await asyncio.Event().wait()

        adapter = ProtocolAdapter(async_session_maker, coordinator, ServerState(), serve=idle)
        await create_tool(http_tool_data())
        await adapter.start()
        try:
            ok = await adapter.call_tool("get_weather", {"city": "Paris"})
            failed = await adapter.call_tool("get_weather", {"city": "Atlantis"})
        finally:
            await adapter.stop()

        assert isinstance(ok, types.CallToolResult)
        assert ok.isError is False
        assert json.loads(ok.content[0].text) == {"c": 21}
        assert failed.isError is True
        assert failed.content[0].text == "Error: HTTP 404: Not Found"
