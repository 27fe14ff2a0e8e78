"""Tests for ToolService."""

from uuid import uuid4

import pytest

from toolsmith.core.exceptions import (
    DuplicateToolNameError,
    InvalidToolConfigError,
    ToolNotFoundError,
)
from toolsmith.models.tool import Tool
from toolsmith.schemas.tool import ToolCreate, ToolUpdate
from toolsmith.services.tool_service import ToolService


class TestToolServiceCreate:
    """Test tool creation."""

    @pytest.mark.asyncio
    async def test_create_http_tool(self, db_session, http_tool_data):
        """A created tool stores its normalized definition."""
        tool = await ToolService(db_session).create(ToolCreate.model_validate(http_tool_data()))

        assert tool.id is not None
        assert tool.name == "get_weather"
        assert tool.executor_type == "http"
        assert tool.enabled is True
        assert tool.executor_config["url"] == "https://api.example.com/weather?city={city}"
        assert tool.executor_config["method"] == "GET"
        assert tool.parameters[0]["location"] == "query"
        assert tool.auth == {"type": "none"}

    @pytest.mark.asyncio
    async def test_create_fills_default_locations(self, db_session, cli_tool_data):
        """CLI parameters without a location default to argument."""
        tool = await ToolService(db_session).create(ToolCreate.model_validate(cli_tool_data()))

        assert tool.parameters[0]["location"] == "argument"

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, db_session, http_tool_data):
        """Names are unique across tools."""
        service = ToolService(db_session)
        await service.create(ToolCreate.model_validate(http_tool_data()))

        with pytest.raises(DuplicateToolNameError):
            await service.create(ToolCreate.model_validate(http_tool_data()))


class TestToolServiceRead:
    """Test tool reads."""

    @pytest.mark.asyncio
    async def test_get_descriptor(self, db_session, http_tool_data):
        """Descriptors are validated from the stored row."""
        service = ToolService(db_session)
        tool = await service.create(ToolCreate.model_validate(http_tool_data()))

        descriptor = await service.get_descriptor(tool.id)

        assert descriptor.id == tool.id
        assert descriptor.http_config.response_path == "$.data.temp"
        assert descriptor.parameters[0].name == "city"

    @pytest.mark.asyncio
    async def test_get_descriptor_not_found(self, db_session):
        """Unknown IDs raise ToolNotFoundError."""
        missing = uuid4()
        with pytest.raises(ToolNotFoundError, match=str(missing)):
            await ToolService(db_session).get_descriptor(missing)

    @pytest.mark.asyncio
    async def test_get_descriptor_invalid_row(self, db_session):
        """A stored row that no longer validates raises InvalidToolConfigError."""
        tool = Tool(
            name="broken",
            executor_type="http",
            executor_config={"method": "GET"},
            parameters=[],
            auth={},
        )
        db_session.add(tool)
        await db_session.commit()

        with pytest.raises(InvalidToolConfigError, match="url") as exc_info:
            await ToolService(db_session).get_descriptor(tool.id)

        assert exc_info.value.executor_type == "http"

    @pytest.mark.asyncio
    async def test_list_and_count_with_filters(self, db_session, http_tool_data, cli_tool_data):
        """Listing filters by executor type and enabled status."""
        service = ToolService(db_session)
        await service.create(ToolCreate.model_validate(http_tool_data()))
        await service.create(ToolCreate.model_validate(cli_tool_data()))
        await service.create(ToolCreate.model_validate(cli_tool_data(name="off", enabled=False)))

        assert await service.count() == 3
        assert await service.count(executor_type="cli") == 2
        assert await service.count(enabled=False) == 1
        assert [t.name for t in await service.list(executor_type="http")] == ["get_weather"]
        assert len(await service.list(skip=1, limit=1)) == 1

    @pytest.mark.asyncio
    async def test_list_enabled(self, db_session, http_tool_data, cli_tool_data):
        """Only enabled tools are returned as descriptors."""
        service = ToolService(db_session)
        await service.create(ToolCreate.model_validate(http_tool_data()))
        await service.create(ToolCreate.model_validate(cli_tool_data(enabled=False)))

        descriptors = await service.list_enabled()

        assert [d.name for d in descriptors] == ["get_weather"]

    @pytest.mark.asyncio
    async def test_list_enabled_skips_invalid_rows(self, db_session, http_tool_data):
        """A stored row that no longer validates is skipped."""
        service = ToolService(db_session)
        await service.create(ToolCreate.model_validate(http_tool_data()))
        db_session.add(
            Tool(
                name="broken",
                executor_type="http",
                executor_config={"method": "GET"},
                parameters=[],
                auth={},
            )
        )
        await db_session.flush()

        assert [d.name for d in await service.list_enabled()] == ["get_weather"]


class TestToolServiceUpdate:
    """Test tool updates."""

    @pytest.mark.asyncio
    async def test_partial_update(self, db_session, http_tool_data):
        """Unset fields keep their stored values."""
        service = ToolService(db_session)
        tool = await service.create(ToolCreate.model_validate(http_tool_data()))

        updated = await service.update(tool.id, ToolUpdate(description="Now in Kelvin"))

        assert updated.description == "Now in Kelvin"
        assert updated.executor_config["url"] == "https://api.example.com/weather?city={city}"

    @pytest.mark.asyncio
    async def test_change_executor_type_requires_matching_config(
        self, db_session, http_tool_data
    ):
        """Switching kinds with the old config is rejected."""
        service = ToolService(db_session)
        tool = await service.create(ToolCreate.model_validate(http_tool_data()))

        with pytest.raises(InvalidToolConfigError):
            await service.update(tool.id, ToolUpdate(executor_type="cli"))

    @pytest.mark.asyncio
    async def test_change_executor_type_with_config(self, db_session, http_tool_data):
        """Switching kinds with a matching config and parameters succeeds."""
        service = ToolService(db_session)
        tool = await service.create(ToolCreate.model_validate(http_tool_data()))

        updated = await service.update(
            tool.id,
            ToolUpdate(
                executor_type="cli",
                executor_config={"command": "curl wttr.in/{city}"},
                parameters=[{"name": "city"}],
            ),
        )

        assert updated.executor_type == "cli"
        assert updated.parameters[0]["location"] == "argument"

    @pytest.mark.asyncio
    async def test_invalid_location_rejected(self, db_session, cli_tool_data):
        """HTTP-only locations are rejected for CLI tools."""
        service = ToolService(db_session)
        tool = await service.create(ToolCreate.model_validate(cli_tool_data()))

        with pytest.raises(InvalidToolConfigError, match="location 'query'"):
            await service.update(
                tool.id, ToolUpdate(parameters=[{"name": "msg", "location": "query"}])
            )

    @pytest.mark.asyncio
    async def test_rename_to_taken_name(self, db_session, http_tool_data, cli_tool_data):
        """Renaming onto another tool's name is rejected."""
        service = ToolService(db_session)
        await service.create(ToolCreate.model_validate(http_tool_data()))
        tool = await service.create(ToolCreate.model_validate(cli_tool_data()))

        with pytest.raises(DuplicateToolNameError):
            await service.update(tool.id, ToolUpdate(name="get_weather"))

    @pytest.mark.asyncio
    async def test_update_not_found(self, db_session):
        """Updating an unknown tool raises ToolNotFoundError."""
        with pytest.raises(ToolNotFoundError):
            await ToolService(db_session).update(uuid4(), ToolUpdate(enabled=False))


class TestToolServiceDeleteAndDuplicate:
    """Test deletion and duplication."""

    @pytest.mark.asyncio
    async def test_delete(self, db_session, http_tool_data):
        """Deleted tools are gone."""
        service = ToolService(db_session)
        tool = await service.create(ToolCreate.model_validate(http_tool_data()))

        await service.delete(tool.id)

        assert await service.get(tool.id) is None
        with pytest.raises(ToolNotFoundError):
            await service.delete(tool.id)

    @pytest.mark.asyncio
    async def test_duplicate_names(self, db_session, http_tool_data):
        """Copies take the first free _copy name."""
        service = ToolService(db_session)
        tool = await service.create(ToolCreate.model_validate(http_tool_data()))

        first = await service.duplicate(tool.id)
        second = await service.duplicate(tool.id)

        assert first.name == "get_weather_copy"
        assert second.name == "get_weather_copy_2"
        assert first.id != tool.id
        assert first.executor_config == tool.executor_config
        assert first.parameters == tool.parameters
