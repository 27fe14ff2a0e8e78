"""Tool API Router.

This module provides REST API endpoints for managing tool descriptors.
Supports CRUD operations, filtering, duplication and test execution.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, Query, status

from toolsmith.api.deps import (  # noqa: TC001 - Required at runtime for FastAPI
    Coordinator,
    DBSession,
    Pagination,
)
from toolsmith.core.exceptions import (
    DuplicateToolNameError,
    InvalidToolConfigError,
    ToolNotFoundError,
    UnsupportedExecutorError,
)
from toolsmith.models.enums import ExecutorKind
from toolsmith.schemas.base import PaginatedResponse
from toolsmith.schemas.execution import ExecutionOutcome
from toolsmith.schemas.tool import (
    ToolCreate,
    ToolResponse,
    ToolTestRequest,
    ToolUpdate,
)
from toolsmith.services.tool_service import ToolService

router = APIRouter()

ToolIdPath = Annotated[UUID, Path(description="Tool ID")]


# =============================================================================
# Tool Endpoints
# =============================================================================


@router.get(
    "/",
    response_model=PaginatedResponse[ToolResponse],
    summary="List tools",
    description="Retrieve a paginated list of tools with optional filtering.",
)
async def list_tools(
    db: DBSession,
    pagination: Pagination,
    executor_type: Annotated[
        ExecutorKind | None,
        Query(description="Filter by executor type"),
    ] = None,
    enabled: Annotated[
        bool | None,
        Query(description="Filter by enabled status"),
    ] = None,
) -> PaginatedResponse[ToolResponse]:
    """List tools with pagination and optional filtering.

    Args:
        db: Database session.
        pagination: Pagination parameters (skip, limit).
        executor_type: Optional filter by executor type.
        enabled: Optional filter by enabled status.

    Returns:
        Paginated list of tools.
    """
    kind = executor_type.value if executor_type is not None else None
    tool_service = ToolService(db)
    tools = await tool_service.list(
        skip=pagination.skip,
        limit=pagination.limit,
        executor_type=kind,
        enabled=enabled,
    )
    total = await tool_service.count(executor_type=kind, enabled=enabled)

    return PaginatedResponse.create(
        items=[ToolResponse.model_validate(tool) for tool in tools],
        total=total,
        page=pagination.page,
        size=pagination.limit,
    )


@router.post(
    "/",
    response_model=ToolResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create tool",
    description="Create a new tool with the provided configuration.",
)
async def create_tool(
    db: DBSession,
    tool_in: ToolCreate,
) -> ToolResponse:
    """Create a new tool.

    Raises:
        HTTPException: 409 if the name is taken.
    """
    try:
        tool = await ToolService(db).create(tool_in)
        return ToolResponse.model_validate(tool)
    except DuplicateToolNameError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from e


@router.get(
    "/{tool_id}",
    response_model=ToolResponse,
    summary="Get tool",
    description="Retrieve a tool by its ID.",
)
async def get_tool(
    db: DBSession,
    tool_id: ToolIdPath,
) -> ToolResponse:
    """Get a tool by ID.

    Raises:
        HTTPException: 404 if tool not found.
    """
    try:
        tool = await ToolService(db).get_or_raise(tool_id)
        return ToolResponse.model_validate(tool)
    except ToolNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e


@router.put(
    "/{tool_id}",
    response_model=ToolResponse,
    summary="Update tool",
    description="Update an existing tool. The merged definition is validated as a whole.",
)
async def update_tool(
    db: DBSession,
    tool_id: ToolIdPath,
    tool_in: ToolUpdate,
) -> ToolResponse:
    """Update an existing tool.

    Raises:
        HTTPException: 404 if tool not found.
        HTTPException: 409 if the new name is taken.
        HTTPException: 422 if the merged definition is invalid.
    """
    try:
        tool = await ToolService(db).update(tool_id, tool_in)
        return ToolResponse.model_validate(tool)
    except ToolNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
    except DuplicateToolNameError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from e
    except InvalidToolConfigError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e


@router.delete(
    "/{tool_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete tool",
    description="Delete a tool. Its execution logs are kept.",
)
async def delete_tool(
    db: DBSession,
    tool_id: ToolIdPath,
) -> None:
    """Delete a tool.

    Raises:
        HTTPException: 404 if tool not found.
    """
    try:
        await ToolService(db).delete(tool_id)
    except ToolNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e


@router.post(
    "/{tool_id}/duplicate",
    response_model=ToolResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate tool",
    description="Copy a tool under the first free '<name>_copy' name.",
)
async def duplicate_tool(
    db: DBSession,
    tool_id: ToolIdPath,
) -> ToolResponse:
    """Duplicate a tool.

    Raises:
        HTTPException: 404 if tool not found.
    """
    try:
        tool = await ToolService(db).duplicate(tool_id)
        return ToolResponse.model_validate(tool)
    except ToolNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e


@router.post(
    "/{tool_id}/test",
    response_model=ExecutionOutcome,
    summary="Test tool execution",
    description=(
        "Run a tool with sample parameters and return the full outcome, "
        "including the request and response snapshots. A failed run is "
        "still a 200 response with success=false."
    ),
)
async def test_tool(
    coordinator: Coordinator,
    tool_id: ToolIdPath,
    test_request: ToolTestRequest,
) -> ExecutionOutcome:
    """Test execute a tool.

    Raises:
        HTTPException: 404 if tool not found.
        HTTPException: 400 if the executor type is not supported.
        HTTPException: 422 if the stored definition no longer validates.
    """
    try:
        return await coordinator.test(tool_id, test_request.params)
    except ToolNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
    except UnsupportedExecutorError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except InvalidToolConfigError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e


__all__ = [
    "router",
]
