"""Execution log model.

Every tool run, interactive test or live MCP call, leaves one row here.
The table is capped: ExecutionLogService prunes it to the configured
retention after each append.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from toolsmith.models.base import GUID, Base, JSONType


class ExecutionLog(Base):
    """ExecutionLog model for recorded tool runs.

    The integer primary key is monotonic, so ``id`` order is insertion
    order; retention relies on it rather than on timestamps.

    Attributes:
        id: Autoincrement primary key
        tool_id: UUID of the tool that ran (not a foreign key, logs
            outlive deleted tools)
        tool_name: Tool name at execution time
        executor_type: Executor kind (http, cli)
        source: Execution source (test, live)
        timestamp: When the run finished
        success: Whether the run succeeded
        duration_ms: Wall-clock duration in milliseconds
        request: HTTP request or CLI command snapshot
        response: HTTP response or CLI output snapshot
        input_size: Serialized request size in bytes
        output_size: Serialized response size in bytes
        error: Error message for failed runs
    """

    __tablename__ = "execution_logs"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    tool_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        nullable=False,
        index=True,
    )

    tool_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    executor_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    source: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        index=True,
    )

    success: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
    )

    duration_ms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    request: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
    )

    response: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
    )

    input_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    output_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    error: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        """Return string representation of the log entry."""
        return (
            f"<ExecutionLog(id={self.id}, tool='{self.tool_name}', "
            f"source={self.source}, success={self.success})>"
        )


__all__ = ["ExecutionLog"]
