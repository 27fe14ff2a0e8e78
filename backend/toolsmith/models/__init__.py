"""SQLAlchemy models.

This package contains all database models.
"""

from toolsmith.models.base import GUID, Base, JSONType, TimestampMixin, UUIDMixin
from toolsmith.models.enums import (
    AuthType,
    ExecutionSource,
    ExecutorKind,
    ExportFormat,
    HttpMethod,
    ParameterLocation,
    ParameterType,
)
from toolsmith.models.execution import ExecutionLog
from toolsmith.models.secret import Secret
from toolsmith.models.server_config import DEFAULT_SERVER_CONFIG_ID, ServerConfig
from toolsmith.models.tool import Tool

__all__ = [
    # Base classes
    "Base",
    "GUID",
    "JSONType",
    "UUIDMixin",
    "TimestampMixin",
    # Enums
    "AuthType",
    "ExecutionSource",
    "ExecutorKind",
    "ExportFormat",
    "HttpMethod",
    "ParameterLocation",
    "ParameterType",
    # Models
    "DEFAULT_SERVER_CONFIG_ID",
    "ExecutionLog",
    "Secret",
    "ServerConfig",
    "Tool",
]
