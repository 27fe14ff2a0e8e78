"""Tool execution engine with pluggable executors."""

from __future__ import annotations

from toolsmith.models.enums import ExecutorKind
from toolsmith.services.executors.base import (
    ExecutionResult,
    ToolExecutor,
    ToolExecutorFactory,
    run_with_deadline,
)
from toolsmith.services.executors.binding import ParameterBinder
from toolsmith.services.executors.cli_executor import CliToolExecutor
from toolsmith.services.executors.http_executor import HttpToolExecutor

# Register executors
ToolExecutorFactory.register(ExecutorKind.HTTP.value, HttpToolExecutor)
ToolExecutorFactory.register(ExecutorKind.CLI.value, CliToolExecutor)

__all__ = [
    "CliToolExecutor",
    "ExecutionResult",
    "HttpToolExecutor",
    "ParameterBinder",
    "ToolExecutor",
    "ToolExecutorFactory",
    "run_with_deadline",
]
