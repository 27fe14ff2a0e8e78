"""Pydantic schemas for tool execution outcomes and logs.

An ExecutionOutcome has the same shape for interactive tests and live
MCP calls. HTTP runs fill ``request``/``response``; CLI runs fill
``command``/``output``.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Required at runtime for Pydantic
from typing import Any
from uuid import UUID  # noqa: TC003 - Required at runtime for Pydantic

from pydantic import ConfigDict, Field

from toolsmith.models.enums import ExecutionSource, ExecutorKind
from toolsmith.schemas.base import BaseSchema

# =============================================================================
# Snapshot Schemas
# =============================================================================


class SnapshotSchema(BaseSchema):
    """Captured data is kept byte-for-byte, whitespace included."""

    model_config = ConfigDict(str_strip_whitespace=False)


class HttpRequestSnapshot(SnapshotSchema):
    """Request as sent, with credential values redacted."""

    method: str = Field(..., examples=["GET"])
    url: str = Field(..., examples=["https://api.example.com/weather?city=Paris"])
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | None = Field(default=None, description="Request body, if any")


class HttpResponseSnapshot(SnapshotSchema):
    """Response as received. Status 0 means no server was reached."""

    status: int = Field(..., examples=[200, 0])
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = Field(default=None, description="Parsed JSON or raw text")


class CommandSnapshot(SnapshotSchema):
    """Command as spawned."""

    raw: str = Field(..., description="Interpolated command", examples=["echo 'it'\\''s ok'"])
    working_dir: str | None = Field(default=None)
    env: dict[str, str] | None = Field(
        default=None,
        description="Configured and parameter environment, secrets masked",
    )


class CommandOutput(SnapshotSchema):
    """Captured process output."""

    stdout: str = Field(default="")
    stderr: str = Field(default="")
    exit_code: int = Field(default=0)


# =============================================================================
# Outcome Schemas
# =============================================================================


class ExecutionOutcome(SnapshotSchema):
    """Normalized success or failure record of one tool run."""

    success: bool = Field(..., description="Whether the run succeeded")
    duration_ms: int = Field(..., ge=0, description="Wall-clock duration in milliseconds")
    executor_type: ExecutorKind = Field(..., description="Executor that ran the tool")
    request: HttpRequestSnapshot | None = None
    response: HttpResponseSnapshot | None = None
    command: CommandSnapshot | None = None
    output: CommandOutput | None = None
    error: str | None = Field(default=None, description="Error message for failed runs")


class ExecutionLogRecord(BaseSchema):
    """Outcome tagged with its tool and source, as handed to the log sink."""

    tool_id: UUID
    tool_name: str
    source: ExecutionSource
    outcome: ExecutionOutcome


# =============================================================================
# Log API Schemas
# =============================================================================


class ExecutionLogResponse(BaseSchema):
    """Schema for execution log in API responses."""

    id: int = Field(..., description="Log entry ID")
    tool_id: UUID = Field(..., description="ID of the tool that ran")
    tool_name: str = Field(..., description="Tool name at execution time")
    executor_type: ExecutorKind = Field(..., description="Executor type")
    source: ExecutionSource = Field(..., description="Execution source (test, live)")
    timestamp: datetime = Field(..., description="When the run finished")
    success: bool = Field(..., description="Whether the run succeeded")
    duration_ms: int = Field(..., description="Duration in milliseconds")
    request: dict[str, Any] | None = Field(default=None, description="Request snapshot")
    response: dict[str, Any] | None = Field(default=None, description="Response snapshot")
    input_size: int = Field(..., description="Request snapshot size in bytes")
    output_size: int = Field(..., description="Response snapshot size in bytes")
    error: str | None = Field(default=None, description="Error message")


class ExecutionStatistics(BaseSchema):
    """Aggregate counters over the retained execution logs."""

    total: int = Field(..., ge=0)
    success_count: int = Field(..., ge=0)
    failure_count: int = Field(..., ge=0)
    live_count: int = Field(..., ge=0)
    test_count: int = Field(..., ge=0)
    average_duration_ms: float = Field(..., ge=0)


__all__ = [
    "CommandOutput",
    "CommandSnapshot",
    "ExecutionLogRecord",
    "ExecutionLogResponse",
    "ExecutionOutcome",
    "ExecutionStatistics",
    "HttpRequestSnapshot",
    "HttpResponseSnapshot",
    "SnapshotSchema",
]
