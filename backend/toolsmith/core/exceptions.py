"""Common exception classes.

This module defines the exceptions shared by the tool store, the
execution engine and the MCP adapter. API routers translate them into
HTTP status codes; the engine raises them, it never swallows them.
"""

from __future__ import annotations

from typing import Any

# =============================================================================
# Base
# =============================================================================


class AppError(Exception):
    """Application base exception."""


# =============================================================================
# Tool store
# =============================================================================


class ToolNotFoundError(AppError):
    """Raised when a tool id does not match any stored descriptor."""

    def __init__(self, tool_id: Any) -> None:
        self.tool_id = tool_id
        super().__init__(f"Tool not found: {tool_id}")


class DuplicateToolNameError(AppError):
    """Raised when a tool name is already taken by another descriptor."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A tool named '{name}' already exists")


class InvalidToolConfigError(AppError):
    """Raised when a tool definition fails validation.

    Attributes:
        executor_type: Executor kind of the rejected definition
        errors: Human readable validation messages

    Example:
        >>> raise InvalidToolConfigError(
        ...     executor_type="http",
        ...     errors=["executor_config.url: Field required"],
        ... )
    """

    def __init__(self, executor_type: str | None, errors: list[str]) -> None:
        self.executor_type = executor_type
        self.errors = errors

        message = f"Invalid '{executor_type or 'unknown'}' tool definition: " + "; ".join(
            errors
        )
        super().__init__(message)


# =============================================================================
# Execution
# =============================================================================


class UnsupportedExecutorError(AppError):
    """Raised when no executor is registered for a tool's executor type."""

    def __init__(self, executor_type: str, supported: list[str]) -> None:
        self.executor_type = executor_type
        self.supported = supported
        super().__init__(
            f"Unsupported executor: {executor_type}. "
            f"Supported executors: {', '.join(supported)}"
        )


class ToolExecutionError(AppError):
    """Raised by live invocation when a tool run ends in failure.

    The message is user facing: it is what the MCP client sees.
    """


class ExecutionTimeoutError(AppError):
    """Raised when an operation does not finish before its deadline."""

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"Operation timed out after {timeout_ms}ms")


class OutputLimitExceededError(AppError):
    """Raised when a process writes more output than the configured cap."""

    def __init__(self, stream: str, limit: int) -> None:
        self.stream = stream
        self.limit = limit
        super().__init__(f"{stream} exceeded the output limit of {limit} bytes")


# =============================================================================
# Secrets
# =============================================================================


class SecretDecryptionError(AppError):
    """Raised when a stored secret cannot be decrypted with the active key."""


# =============================================================================
# MCP server
# =============================================================================


class ServerAlreadyRunningError(AppError):
    """Raised when starting an MCP server that is already running."""

    def __init__(self) -> None:
        super().__init__("Server is already running")


__all__ = [
    "AppError",
    "DuplicateToolNameError",
    "ExecutionTimeoutError",
    "InvalidToolConfigError",
    "OutputLimitExceededError",
    "SecretDecryptionError",
    "ServerAlreadyRunningError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "UnsupportedExecutorError",
]
