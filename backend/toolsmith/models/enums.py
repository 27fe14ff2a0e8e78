"""Domain enum definitions for Toolsmith.

This module defines all enum types used across the application for
type-safe representation of domain-specific values.
"""

from enum import Enum


class ExecutorKind(str, Enum):
    """Execution substrate backing a tool."""

    HTTP = "http"
    CLI = "cli"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class HttpMethod(str, Enum):
    """HTTP methods a tool may issue."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class ParameterType(str, Enum):
    """Declared type of a tool parameter."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class ParameterLocation(str, Enum):
    """Where a parameter value is placed when a tool runs.

    HTTP tools use QUERY, PATH, BODY and HEADER. CLI tools use ARGUMENT
    (interpolated into the command) and ENV (exported to the process);
    PATH is also accepted for CLI tools and behaves like ARGUMENT.
    """

    QUERY = "query"
    PATH = "path"
    BODY = "body"
    HEADER = "header"
    ARGUMENT = "argument"
    ENV = "env"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class AuthType(str, Enum):
    """Authentication applied to HTTP tools.

    OAUTH2 is reserved and currently applies nothing.
    """

    NONE = "none"
    API_KEY = "api_key"
    BEARER = "bearer"
    BASIC = "basic"
    OAUTH2 = "oauth2"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class ExecutionSource(str, Enum):
    """Origin of a tool execution."""

    TEST = "test"
    LIVE = "live"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class ExportFormat(str, Enum):
    """MCP client whose configuration file format is exported."""

    CLAUDE = "claude"
    CURSOR = "cursor"
    VSCODE = "vscode"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


LOCATIONS_BY_KIND: dict[str, frozenset[str]] = {
    ExecutorKind.HTTP.value: frozenset(
        {
            ParameterLocation.QUERY.value,
            ParameterLocation.PATH.value,
            ParameterLocation.BODY.value,
            ParameterLocation.HEADER.value,
        }
    ),
    ExecutorKind.CLI.value: frozenset(
        {
            ParameterLocation.ARGUMENT.value,
            ParameterLocation.ENV.value,
            ParameterLocation.PATH.value,
        }
    ),
}

DEFAULT_LOCATION_BY_KIND: dict[str, str] = {
    ExecutorKind.HTTP.value: ParameterLocation.QUERY.value,
    ExecutorKind.CLI.value: ParameterLocation.ARGUMENT.value,
}


__all__ = [
    "DEFAULT_LOCATION_BY_KIND",
    "LOCATIONS_BY_KIND",
    "AuthType",
    "ExecutionSource",
    "ExecutorKind",
    "ExportFormat",
    "HttpMethod",
    "ParameterLocation",
    "ParameterType",
]
