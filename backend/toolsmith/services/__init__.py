"""Business logic services.

This package contains service classes that implement business logic.
"""

from toolsmith.services.execution_log_service import ExecutionLogService
from toolsmith.services.execution_service import ExecutionCoordinator
from toolsmith.services.secret_service import SecretResolver, SecretStore
from toolsmith.services.server_config_service import ServerConfigService
from toolsmith.services.tool_service import ToolService

__all__ = [
    "ExecutionCoordinator",
    "ExecutionLogService",
    "SecretResolver",
    "SecretStore",
    "ServerConfigService",
    "ToolService",
]
