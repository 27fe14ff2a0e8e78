"""Tool model for persisted tool descriptors.

This module defines the Tool model: one callable action backed by an
HTTP request template or a command template, with its parameters and
authentication stored as JSON documents.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, String, Text, true
from sqlalchemy.orm import Mapped, mapped_column

from toolsmith.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class Tool(UUIDMixin, TimestampMixin, Base):
    """Tool model for HTTP and CLI tools.

    Attributes:
        id: UUID primary key (from UUIDMixin)
        name: Unique tool name, also the MCP tool name
        description: Description shown to MCP clients
        enabled: Whether the tool is exposed by the MCP server
        executor_type: Executor kind (http, cli)
        executor_config: JSON configuration matching executor_type
        parameters: JSON list of parameter specs
        auth: JSON auth spec holding secret references
        created_at: Timestamp of creation (from TimestampMixin)
        updated_at: Timestamp of last update (from TimestampMixin)
    """

    __tablename__ = "tools"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default="",
    )

    enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
        index=True,
    )

    executor_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    executor_config: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )

    parameters: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )

    auth: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )

    def __repr__(self) -> str:
        """Return string representation of the tool."""
        return f"<Tool(id={self.id}, name='{self.name}', type={self.executor_type})>"


__all__ = ["Tool"]
