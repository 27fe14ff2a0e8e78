"""Pydantic schemas for API request/response validation."""

from toolsmith.schemas.base import (
    BaseSchema,
    MessageResponse,
    PaginatedResponse,
)
from toolsmith.schemas.execution import (
    CommandOutput,
    CommandSnapshot,
    ExecutionLogRecord,
    ExecutionLogResponse,
    ExecutionOutcome,
    ExecutionStatistics,
    HttpRequestSnapshot,
    HttpResponseSnapshot,
)
from toolsmith.schemas.secret import SecretListResponse, SecretStatus, SecretStoreRequest
from toolsmith.schemas.server import (
    ServerConfigResponse,
    ServerConfigUpdate,
    ServerExportResponse,
    ServerStatusResponse,
)
from toolsmith.schemas.tool import (
    ApiKeyAuth,
    AuthSpec,
    BasicAuth,
    BearerAuth,
    CliConfig,
    HttpConfig,
    ParameterSpec,
    ToolCreate,
    ToolDefinition,
    ToolDescriptor,
    ToolResponse,
    ToolTestRequest,
    ToolUpdate,
)

__all__ = [
    # Base
    "BaseSchema",
    "MessageResponse",
    "PaginatedResponse",
    # Tool
    "ApiKeyAuth",
    "AuthSpec",
    "BasicAuth",
    "BearerAuth",
    "CliConfig",
    "HttpConfig",
    "ParameterSpec",
    "ToolCreate",
    "ToolDefinition",
    "ToolDescriptor",
    "ToolResponse",
    "ToolTestRequest",
    "ToolUpdate",
    # Execution
    "CommandOutput",
    "CommandSnapshot",
    "ExecutionLogRecord",
    "ExecutionLogResponse",
    "ExecutionOutcome",
    "ExecutionStatistics",
    "HttpRequestSnapshot",
    "HttpResponseSnapshot",
    # Secret
    "SecretListResponse",
    "SecretStatus",
    "SecretStoreRequest",
    # Server
    "ServerConfigResponse",
    "ServerConfigUpdate",
    "ServerExportResponse",
    "ServerStatusResponse",
]
