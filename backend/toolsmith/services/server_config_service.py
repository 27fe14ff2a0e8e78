"""MCP server configuration and client config export."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from toolsmith.models.enums import ExportFormat
from toolsmith.models.server_config import DEFAULT_SERVER_CONFIG_ID, ServerConfig
from toolsmith.schemas.server import ServerExportResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from toolsmith.schemas.server import ServerConfigUpdate


def launch_command() -> dict[str, Any]:
    """Command an MCP client runs to start this server over stdio."""
    return {"command": sys.executable, "args": ["-m", "toolsmith", "mcp"]}


def export_path(
    fmt: ExportFormat | str,
    home: Path | None = None,
    platform: str | None = None,
) -> Path:
    """Conventional location of a client's MCP configuration file."""
    fmt = ExportFormat(fmt)
    home = home or Path.home()
    platform = platform or sys.platform

    if fmt is ExportFormat.CLAUDE:
        if platform == "darwin":
            return home / "Library" / "Application Support" / "Claude" / "claude_desktop_config.json"
        if platform == "win32":
            return home / "AppData" / "Roaming" / "Claude" / "claude_desktop_config.json"
        return home / ".config" / "claude" / "claude_desktop_config.json"
    if fmt is ExportFormat.CURSOR:
        return home / ".cursor" / "mcp.json"
    return home / ".vscode" / "mcp.json"


def export_config(fmt: ExportFormat | str, server_name: str) -> dict[str, Any]:
    """Client configuration document that registers this server.

    Example:
        >>> export_config("claude", "toolsmith")["mcpServers"]["toolsmith"]["args"]
        ['-m', 'toolsmith', 'mcp']
    """
    fmt = ExportFormat(fmt)
    entry = launch_command()

    if fmt is ExportFormat.CURSOR:
        return {"mcpServers": {server_name: {**entry, "enabled": True}}}
    if fmt is ExportFormat.VSCODE:
        return {"mcp.servers": {server_name: entry}}
    return {"mcpServers": {server_name: entry}}


class ServerConfigService:
    """Service for the single persisted server configuration row."""

    def __init__(self, db: AsyncSession) -> None:
        """Initialize server config service."""
        self.db = db

    async def get(self) -> ServerConfig:
        """Get the configuration, creating the default row on first use."""
        config = await self.db.get(ServerConfig, DEFAULT_SERVER_CONFIG_ID)
        if config is None:
            config = ServerConfig(id=DEFAULT_SERVER_CONFIG_ID)
            self.db.add(config)
            await self.db.flush()
            await self.db.refresh(config)
        return config

    async def update(self, data: ServerConfigUpdate) -> ServerConfig:
        """Apply a partial update."""
        config = await self.get()
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(config, field, value)
        await self.db.flush()
        await self.db.refresh(config)
        return config

    async def export(self, fmt: ExportFormat | str) -> ServerExportResponse:
        """Client configuration for ``fmt`` plus where that client reads it."""
        config = await self.get()
        return ServerExportResponse(
            format=ExportFormat(fmt),
            path=str(export_path(fmt)),
            config=export_config(fmt, config.name),
        )


__all__ = [
    "ServerConfigService",
    "export_config",
    "export_path",
    "launch_command",
]
