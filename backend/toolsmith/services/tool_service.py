"""Tool service layer.

This module provides the descriptor store: CRUD and duplication for the
API, plus validated ToolDescriptor reads for the execution engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from toolsmith.core.exceptions import (
    DuplicateToolNameError,
    InvalidToolConfigError,
    ToolNotFoundError,
)
from toolsmith.core.logging import get_logger
from toolsmith.models.tool import Tool
from toolsmith.schemas.tool import ToolDefinition, ToolDescriptor

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from toolsmith.schemas.tool import ToolUpdate

logger = get_logger(__name__)

# Fields of the stored row that make up a definition
DEFINITION_FIELDS = (
    "name",
    "description",
    "enabled",
    "executor_type",
    "executor_config",
    "parameters",
    "auth",
)


def validation_messages(error: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into ``loc: msg`` strings."""
    messages: list[str] = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        messages.append(f"{location}: {err['msg']}" if location else err["msg"])
    return messages


class ToolService:
    """Service for tool CRUD operations."""

    def __init__(self, db: AsyncSession) -> None:
        """Initialize tool service."""
        self.db = db

    # -------------------------------------------------------------------------
    # Engine reads
    # -------------------------------------------------------------------------

    async def get_descriptor(self, tool_id: UUID) -> ToolDescriptor:
        """Get a validated descriptor by ID.

        Raises:
            ToolNotFoundError: If no tool has this ID.
            InvalidToolConfigError: If the stored row no longer validates.
        """
        tool = await self.get_or_raise(tool_id)
        try:
            return ToolDescriptor.model_validate(tool)
        except ValidationError as e:
            raise InvalidToolConfigError(tool.executor_type, validation_messages(e)) from e

    async def list_enabled(self) -> list[ToolDescriptor]:
        """Validated descriptors of all enabled tools, oldest first.

        Rows that no longer validate are skipped with a warning.
        """
        result = await self.db.execute(
            select(Tool).where(Tool.enabled.is_(True)).order_by(Tool.created_at, Tool.name)
        )
        descriptors: list[ToolDescriptor] = []
        for tool in result.scalars().all():
            try:
                descriptors.append(ToolDescriptor.model_validate(tool))
            except ValidationError as e:
                logger.warning(
                    f"Skipping tool '{tool.name}' with invalid stored definition: "
                    + "; ".join(validation_messages(e))
                )
        return descriptors

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def create(self, data: ToolDefinition) -> Tool:
        """Create a new tool.

        Args:
            data: Validated definition (ToolCreate).

        Returns:
            Created Tool instance.

        Raises:
            DuplicateToolNameError: If the name is taken.
        """
        await self._ensure_name_available(data.name)

        tool = Tool()
        self._apply_definition(tool, data)
        self.db.add(tool)
        await self._flush(data.name)
        await self.db.refresh(tool)
        logger.info(f"Created {tool.executor_type} tool '{tool.name}' ({tool.id})")
        return tool

    async def get(self, tool_id: UUID) -> Tool | None:
        """Get a tool by ID.

        Args:
            tool_id: UUID of the tool to retrieve.

        Returns:
            The Tool if found, None otherwise.
        """
        return await self.db.get(Tool, tool_id)

    async def get_or_raise(self, tool_id: UUID) -> Tool:
        """Get a tool by ID.

        Raises:
            ToolNotFoundError: If no tool has this ID.
        """
        tool = await self.get(tool_id)
        if tool is None:
            raise ToolNotFoundError(tool_id)
        return tool

    async def list(
        self,
        skip: int = 0,
        limit: int = 20,
        executor_type: str | None = None,
        enabled: bool | None = None,
    ) -> list[Tool]:
        """List tools with pagination and filtering.

        Args:
            skip: Number of records to skip.
            limit: Maximum number of records to return.
            executor_type: Optional filter by executor type.
            enabled: Optional filter by enabled status.

        Returns:
            List of Tool records, newest first.
        """
        query = select(Tool)

        if executor_type is not None:
            query = query.where(Tool.executor_type == executor_type)

        if enabled is not None:
            query = query.where(Tool.enabled.is_(enabled))

        query = query.order_by(Tool.created_at.desc(), Tool.name).offset(skip).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count(
        self,
        executor_type: str | None = None,
        enabled: bool | None = None,
    ) -> int:
        """Count tools with optional filtering."""
        query = select(func.count()).select_from(Tool)

        if executor_type is not None:
            query = query.where(Tool.executor_type == executor_type)

        if enabled is not None:
            query = query.where(Tool.enabled.is_(enabled))

        result = await self.db.scalar(query)
        return result or 0

    async def update(self, tool_id: UUID, data: ToolUpdate) -> Tool:
        """Update a tool.

        The supplied fields are merged over the stored definition and the
        result is validated as a whole, so changing ``executor_type``
        requires a matching ``executor_config`` in the same update.

        Raises:
            ToolNotFoundError: If tool not found.
            InvalidToolConfigError: If the merged definition is invalid.
            DuplicateToolNameError: If the new name is taken.
        """
        tool = await self.get_or_raise(tool_id)

        merged: dict[str, Any] = {field: getattr(tool, field) for field in DEFINITION_FIELDS}
        merged.update(data.model_dump(exclude_unset=True))

        try:
            definition = ToolDefinition.model_validate(merged)
        except ValidationError as e:
            raise InvalidToolConfigError(
                merged.get("executor_type"), validation_messages(e)
            ) from e

        if definition.name != tool.name:
            await self._ensure_name_available(definition.name, exclude_id=tool.id)

        self._apply_definition(tool, definition)
        await self._flush(definition.name)
        await self.db.refresh(tool)
        return tool

    async def delete(self, tool_id: UUID) -> None:
        """Delete a tool.

        Execution logs of the tool are kept.

        Raises:
            ToolNotFoundError: If tool not found.
        """
        tool = await self.get_or_raise(tool_id)
        await self.db.delete(tool)
        await self.db.flush()
        logger.info(f"Deleted tool '{tool.name}' ({tool_id})")

    async def duplicate(self, tool_id: UUID) -> Tool:
        """Copy a tool under the first free name ``<name>_copy``, ``<name>_copy_2``, ...

        Raises:
            ToolNotFoundError: If tool not found.
        """
        original = await self.get_or_raise(tool_id)

        base_name = f"{original.name}_copy"
        name = base_name
        counter = 1
        while await self._name_taken(name):
            counter += 1
            name = f"{base_name}_{counter}"

        data = ToolDefinition.model_validate(
            {**{field: getattr(original, field) for field in DEFINITION_FIELDS}, "name": name}
        )
        return await self.create(data)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _apply_definition(self, tool: Tool, data: ToolDefinition) -> None:
        tool.name = data.name
        tool.description = data.description
        tool.enabled = data.enabled
        tool.executor_type = data.executor_type
        tool.executor_config = data.executor_config.model_dump(mode="json")
        tool.parameters = [param.model_dump(mode="json") for param in data.parameters]
        tool.auth = data.auth.model_dump(mode="json", exclude_none=True)

    async def _name_taken(self, name: str, exclude_id: UUID | None = None) -> bool:
        query = select(Tool.id).where(Tool.name == name)
        if exclude_id is not None:
            query = query.where(Tool.id != exclude_id)
        return await self.db.scalar(query) is not None

    async def _ensure_name_available(self, name: str, exclude_id: UUID | None = None) -> None:
        if await self._name_taken(name, exclude_id):
            raise DuplicateToolNameError(name)

    async def _flush(self, name: str) -> None:
        """Flush pending changes, mapping a unique-name race to DuplicateToolNameError."""
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise DuplicateToolNameError(name) from e


__all__ = [
    "DEFINITION_FIELDS",
    "ToolService",
    "validation_messages",
]
