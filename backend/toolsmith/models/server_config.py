"""MCP server configuration model.

A single row (id ``default``) holds the server name advertised to MCP
clients and whether the API process starts the server on boot.
"""

from __future__ import annotations

from sqlalchemy import Boolean, String, false
from sqlalchemy.orm import Mapped, mapped_column

from toolsmith.models.base import Base, TimestampMixin

DEFAULT_SERVER_CONFIG_ID = "default"


class ServerConfig(TimestampMixin, Base):
    """ServerConfig model.

    Attributes:
        id: Row identifier, always ``default``
        name: Server name used as the key in exported client configs
        transport: Session transport, only ``stdio`` is served
        auto_start: Start the MCP server when the API starts
    """

    __tablename__ = "server_config"

    id: Mapped[str] = mapped_column(
        String(50),
        primary_key=True,
        default=DEFAULT_SERVER_CONFIG_ID,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="toolsmith",
    )

    transport: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="stdio",
    )

    auto_start: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    def __repr__(self) -> str:
        """Return string representation of the server config."""
        return f"<ServerConfig(name='{self.name}', auto_start={self.auto_start})>"


__all__ = ["DEFAULT_SERVER_CONFIG_ID", "ServerConfig"]
