"""MCP Server API Router.

Endpoints for controlling the MCP server run state, its persisted
configuration, and exporting client configuration documents.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, status

from toolsmith.api.deps import (  # noqa: TC001 - Required at runtime for FastAPI
    Adapter,
    DBSession,
)
from toolsmith.core.exceptions import ServerAlreadyRunningError
from toolsmith.models.enums import (  # noqa: TC001 - Required at runtime for FastAPI
    ExportFormat,
)
from toolsmith.schemas.server import (
    ServerConfigResponse,
    ServerConfigUpdate,
    ServerExportResponse,
    ServerStatusResponse,
)
from toolsmith.services.mcp import ProtocolAdapter, ServerState
from toolsmith.services.server_config_service import ServerConfigService

router = APIRouter()

ExportFormatPath = Annotated[ExportFormat, Path(description="Target MCP client")]


def status_response(state: ServerState) -> ServerStatusResponse:
    """Snapshot of the run state."""
    return ServerStatusResponse(
        running=state.running,
        started_at=state.started_at,
        uptime_seconds=state.uptime_seconds,
        tools=state.tool_names,
    )


async def _start(adapter: ProtocolAdapter) -> ServerStatusResponse:
    try:
        await adapter.start()
    except ServerAlreadyRunningError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from e
    return status_response(adapter.state)


# =============================================================================
# Run State Endpoints
# =============================================================================


@router.get(
    "/status",
    response_model=ServerStatusResponse,
    summary="Get server status",
    description="Whether the MCP server is running, since when, and which tools it exposes.",
)
async def get_server_status(adapter: Adapter) -> ServerStatusResponse:
    """Get the MCP server status."""
    return status_response(adapter.state)


@router.post(
    "/start",
    response_model=ServerStatusResponse,
    summary="Start server",
    description="Register every enabled tool and open the MCP session.",
)
async def start_server(adapter: Adapter) -> ServerStatusResponse:
    """Start the MCP server.

    Raises:
        HTTPException: 409 if the server is already running.
    """
    return await _start(adapter)


@router.post(
    "/stop",
    response_model=ServerStatusResponse,
    summary="Stop server",
    description="Close the MCP session. Stopping a stopped server succeeds.",
)
async def stop_server(adapter: Adapter) -> ServerStatusResponse:
    """Stop the MCP server."""
    await adapter.stop()
    return status_response(adapter.state)


@router.post(
    "/restart",
    response_model=ServerStatusResponse,
    summary="Restart server",
    description="Stop the server if it runs, then start it with the current tools.",
)
async def restart_server(adapter: Adapter) -> ServerStatusResponse:
    """Restart the MCP server."""
    await adapter.restart()
    return status_response(adapter.state)


# =============================================================================
# Configuration Endpoints
# =============================================================================


@router.get(
    "/config",
    response_model=ServerConfigResponse,
    summary="Get server configuration",
)
async def get_server_config(db: DBSession) -> ServerConfigResponse:
    """Get the persisted server configuration."""
    config = await ServerConfigService(db).get()
    return ServerConfigResponse.model_validate(config)


@router.put(
    "/config",
    response_model=ServerConfigResponse,
    summary="Update server configuration",
)
async def update_server_config(
    db: DBSession,
    config_in: ServerConfigUpdate,
) -> ServerConfigResponse:
    """Update the persisted server configuration."""
    config = await ServerConfigService(db).update(config_in)
    return ServerConfigResponse.model_validate(config)


@router.get(
    "/export/{fmt}",
    response_model=ServerExportResponse,
    summary="Export client configuration",
    description=(
        "Build the configuration document an MCP client (claude, cursor, "
        "vscode) needs to launch this server, and where that client reads it."
    ),
)
async def export_server_config(
    db: DBSession,
    fmt: ExportFormatPath,
) -> ServerExportResponse:
    """Export the client configuration for one MCP client."""
    return await ServerConfigService(db).export(fmt)


__all__ = [
    "router",
    "status_response",
]
