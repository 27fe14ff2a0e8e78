"""MCP server schemas."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Required at runtime for Pydantic
from typing import Any

from pydantic import Field

from toolsmith.models.enums import ExportFormat
from toolsmith.schemas.base import BaseSchema


class ServerStatusResponse(BaseSchema):
    """Run state of the MCP server."""

    running: bool = Field(..., description="Whether a session is open")
    started_at: datetime | None = Field(default=None)
    uptime_seconds: float | None = Field(default=None)
    tools: list[str] = Field(default_factory=list, description="Registered tool names")


class ServerConfigResponse(BaseSchema):
    """Persisted MCP server configuration."""

    name: str = Field(..., description="Server name used in exported client configs")
    transport: str = Field(default="stdio")
    auto_start: bool = Field(..., description="Start the server with the API")


class ServerConfigUpdate(BaseSchema):
    """Schema for updating the server configuration."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    auto_start: bool | None = None


class ServerExportResponse(BaseSchema):
    """Client configuration snippet that launches this server."""

    format: ExportFormat
    path: str = Field(..., description="Conventional location of the client config file")
    config: dict[str, Any] = Field(..., description="JSON document to merge into that file")


__all__ = [
    "ServerConfigResponse",
    "ServerConfigUpdate",
    "ServerExportResponse",
    "ServerStatusResponse",
]
