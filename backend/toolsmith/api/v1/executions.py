"""Execution API Router.

This module defines the API endpoints for the execution log: listing and
inspecting recorded tool runs, aggregate statistics, and clearing.
"""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from toolsmith.api.deps import (  # noqa: TC001 - Required at runtime for FastAPI
    DBSession,
    Pagination,
)
from toolsmith.models.enums import (  # noqa: TC001 - Required at runtime for FastAPI
    ExecutionSource,
)
from toolsmith.schemas.base import MessageResponse, PaginatedResponse
from toolsmith.schemas.execution import ExecutionLogResponse, ExecutionStatistics
from toolsmith.services.execution_log_service import ExecutionLogService

router = APIRouter()


# =============================================================================
# Path Parameter Dependencies
# =============================================================================


LogIdPath = Annotated[
    int,
    Path(
        ...,
        ge=1,
        description="Identifier of the execution log entry",
        examples=[42],
    ),
]


# =============================================================================
# Query Parameter Dependencies
# =============================================================================


def get_log_filters(
    source: Annotated[
        ExecutionSource | None,
        Query(description="Filter by source (test, live)"),
    ] = None,
    success: Annotated[
        bool | None,
        Query(description="Filter by outcome"),
    ] = None,
    tool_id: Annotated[
        UUID | None,
        Query(description="Filter by tool ID"),
    ] = None,
) -> dict[str, Any]:
    """Get log list filter parameters.

    Args:
        source: Filter by source.
        success: Filter by outcome.
        tool_id: Filter by tool ID.

    Returns:
        Dictionary of filter parameters.
    """
    filters: dict[str, Any] = {}
    if source is not None:
        filters["source"] = source
    if success is not None:
        filters["success"] = success
    if tool_id is not None:
        filters["tool_id"] = tool_id
    return filters


LogFilters = Annotated[dict[str, Any], Depends(get_log_filters)]


# =============================================================================
# Execution Log Endpoints
# =============================================================================


@router.get(
    "/logs",
    response_model=PaginatedResponse[ExecutionLogResponse],
    summary="List execution logs",
    description="Retrieve recorded tool runs, newest first.",
)
async def list_execution_logs(
    db: DBSession,
    pagination: Pagination,
    filters: LogFilters,
) -> PaginatedResponse[ExecutionLogResponse]:
    """List execution log entries.

    Args:
        db: Database session.
        pagination: Pagination parameters.
        filters: Source, outcome and tool filters.

    Returns:
        Paginated list of log entries.
    """
    logs = await ExecutionLogService.list(
        db,
        skip=pagination.skip,
        limit=pagination.limit,
        **filters,
    )
    total = await ExecutionLogService.count(db, **filters)

    return PaginatedResponse.create(
        items=[ExecutionLogResponse.model_validate(log) for log in logs],
        total=total,
        page=pagination.page,
        size=pagination.limit,
    )


@router.get(
    "/logs/statistics",
    response_model=ExecutionStatistics,
    summary="Get execution statistics",
    description="Aggregate counters over the retained log entries.",
)
async def get_execution_statistics(db: DBSession) -> ExecutionStatistics:
    """Get execution statistics."""
    return await ExecutionLogService.statistics(db)


@router.get(
    "/logs/{log_id}",
    response_model=ExecutionLogResponse,
    summary="Get execution log",
    description="Retrieve one log entry with its request and response snapshots.",
)
async def get_execution_log(
    db: DBSession,
    log_id: LogIdPath,
) -> ExecutionLogResponse:
    """Get a log entry by ID.

    Raises:
        HTTPException: 404 if the entry does not exist.
    """
    log = await ExecutionLogService.get(db, log_id)
    if log is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Execution log not found: {log_id}",
        )
    return ExecutionLogResponse.model_validate(log)


@router.delete(
    "/logs",
    response_model=MessageResponse,
    summary="Clear execution logs",
    description="Delete every execution log entry.",
)
async def clear_execution_logs(db: DBSession) -> MessageResponse:
    """Delete all execution log entries."""
    removed = await ExecutionLogService.clear(db)
    return MessageResponse(message=f"Deleted {removed} execution log(s)")


__all__ = [
    "router",
]
