"""Base executor interface, factory and deadline helper."""

from __future__ import annotations

import asyncio
import inspect
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from toolsmith.core.exceptions import (
    ExecutionTimeoutError,
    ToolExecutionError,
    UnsupportedExecutorError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from toolsmith.models.enums import ExecutorKind
    from toolsmith.schemas.execution import ExecutionOutcome
    from toolsmith.schemas.tool import ToolDescriptor
    from toolsmith.services.secret_service import SecretResolver

R = TypeVar("R")


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one run plus the value handed to live callers."""

    outcome: ExecutionOutcome
    value: Any = None


async def run_with_deadline(
    awaitable: Awaitable[R],
    timeout_ms: int,
    on_expire: Callable[[], Any] | None = None,
) -> R:
    """Await ``awaitable`` for at most ``timeout_ms`` milliseconds.

    On expiry the awaitable is cancelled, ``on_expire`` is called (and
    awaited if it returns an awaitable) and ExecutionTimeoutError is raised.

    Raises:
        ExecutionTimeoutError: If the deadline passes first.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000)
    except TimeoutError as e:
        if on_expire is not None:
            cleanup = on_expire()
            if inspect.isawaitable(cleanup):
                await cleanup
        raise ExecutionTimeoutError(timeout_ms) from e


def elapsed_ms(started: float) -> int:
    """Milliseconds since a ``time.perf_counter()`` reading."""
    return int((time.perf_counter() - started) * 1000)


class ToolExecutor(ABC):
    """Abstract base class for tool executors.

    Subclasses implement ``run``, which never raises for run failures: it
    returns a failed outcome instead. ``execute`` and ``test`` are the two
    entry points built on it.
    """

    kind: str

    @abstractmethod
    async def run(
        self,
        tool: ToolDescriptor,
        params: Mapping[str, Any],
        secrets: SecretResolver,
    ) -> ExecutionResult:
        """Run the tool once and return its outcome and extracted value."""
        ...

    async def execute(
        self,
        tool: ToolDescriptor,
        params: Mapping[str, Any],
        secrets: SecretResolver,
    ) -> Any:
        """Run the tool and return its value.

        Raises:
            ToolExecutionError: If the run failed.
        """
        result = await self.run(tool, params, secrets)
        if not result.outcome.success:
            raise ToolExecutionError(result.outcome.error or "Tool execution failed")
        return result.value

    async def test(
        self,
        tool: ToolDescriptor,
        params: Mapping[str, Any],
        secrets: SecretResolver,
    ) -> ExecutionOutcome:
        """Run the tool and return the full outcome, successful or not."""
        result = await self.run(tool, params, secrets)
        return result.outcome

    async def aclose(self) -> None:
        """Release resources held by the executor."""
        return None


class ToolExecutorFactory:
    """Factory for creating type-specific tool executors."""

    _executors: dict[str, type[ToolExecutor]] = {}

    @classmethod
    def register(cls, kind: str, executor_class: type[ToolExecutor]) -> None:
        """Register an executor for an executor type."""
        if kind in cls._executors:
            raise ValueError(f"Executor for {kind} already registered")

        cls._executors[kind] = executor_class

    @classmethod
    def create(cls, kind: ExecutorKind | str, **kwargs: Any) -> ToolExecutor:
        """Create an executor instance for the given executor type.

        Raises:
            UnsupportedExecutorError: If no executor is registered for it.
        """
        type_str = getattr(kind, "value", kind)

        if type_str not in cls._executors:
            raise UnsupportedExecutorError(type_str, cls.supported_types())

        executor_class = cls._executors[type_str]
        return executor_class(**kwargs)

    @classmethod
    def supported_types(cls) -> list[str]:
        """Get list of supported executor types."""
        return list(cls._executors.keys())


__all__ = [
    "ExecutionResult",
    "ToolExecutor",
    "ToolExecutorFactory",
    "elapsed_ms",
    "run_with_deadline",
]
