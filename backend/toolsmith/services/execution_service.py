"""Tool execution coordinator.

The coordinator is the single entry point for running tools. It loads the
descriptor and a secret snapshot, dispatches to the executor registered
for the tool's executor type, and records exactly one log entry per call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from toolsmith.core.config import settings
from toolsmith.core.exceptions import ToolExecutionError, UnsupportedExecutorError
from toolsmith.core.logging import get_logger
from toolsmith.models.enums import ExecutionSource
from toolsmith.schemas.execution import ExecutionLogRecord
from toolsmith.services.execution_log_service import ExecutionLogService
from toolsmith.services.executors import ToolExecutorFactory
from toolsmith.services.secret_service import SecretStore
from toolsmith.services.tool_service import ToolService

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from toolsmith.schemas.execution import ExecutionOutcome
    from toolsmith.schemas.tool import ToolDescriptor
    from toolsmith.services.executors import ExecutionResult, ToolExecutor
    from toolsmith.services.secret_service import SecretResolver
    from toolsmith.utils.crypto import SecretCipher

logger = get_logger(__name__)


class ExecutionCoordinator:
    """Runs tools and forwards every outcome to the execution log.

    Each call uses its own sessions: one to read the descriptor and the
    secret snapshot, one to write the log entry. A failure to write the log
    is logged and never replaces the run's own result.

    Example:
        >>> coordinator = ExecutionCoordinator(async_session, cipher)
        >>> outcome = await coordinator.test(tool_id, {"city": "Paris"})
        >>> value = await coordinator.invoke(tool_id, {"city": "Paris"})
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cipher: SecretCipher,
        executors: Mapping[str, ToolExecutor] | None = None,
        log_retention: int | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            session_factory: Factory for database sessions.
            cipher: Cipher used to decrypt the secret snapshot.
            executors: Executor per executor type. Defaults to one instance
                of every registered executor.
            log_retention: Log rows to keep. Defaults to EXECUTION_LOG_RETENTION.
        """
        self.session_factory = session_factory
        self.cipher = cipher
        self.executors: dict[str, ToolExecutor] = (
            dict(executors)
            if executors is not None
            else {
                kind: ToolExecutorFactory.create(kind)
                for kind in ToolExecutorFactory.supported_types()
            }
        )
        self.log_retention = log_retention or settings.EXECUTION_LOG_RETENTION

    async def test(self, tool_id: UUID, params: Mapping[str, Any]) -> ExecutionOutcome:
        """Run a tool interactively and return its full outcome.

        Raises:
            ToolNotFoundError: If no tool has this ID.
            UnsupportedExecutorError: If the executor type has no executor.
        """
        tool, secrets = await self._load(tool_id)
        result = await self._run(tool, params, secrets, ExecutionSource.TEST)
        return result.outcome

    async def invoke(self, tool_id: UUID, params: Mapping[str, Any]) -> Any:
        """Run a tool for a live caller and return its value.

        Raises:
            ToolNotFoundError: If no tool has this ID.
            UnsupportedExecutorError: If the executor type has no executor.
            ToolExecutionError: If the run failed.
        """
        tool, secrets = await self._load(tool_id)
        result = await self._run(tool, params, secrets, ExecutionSource.LIVE)
        if not result.outcome.success:
            raise ToolExecutionError(result.outcome.error or "Tool execution failed")
        return result.value

    async def aclose(self) -> None:
        """Release executor resources such as HTTP connection pools."""
        for executor in self.executors.values():
            await executor.aclose()

    def executor_for(self, executor_type: str) -> ToolExecutor:
        """Executor registered for an executor type.

        Raises:
            UnsupportedExecutorError: If none is registered.
        """
        executor = self.executors.get(executor_type)
        if executor is None:
            raise UnsupportedExecutorError(executor_type, sorted(self.executors))
        return executor

    async def _load(self, tool_id: UUID) -> tuple[ToolDescriptor, SecretResolver]:
        async with self.session_factory() as session:
            tool = await ToolService(session).get_descriptor(tool_id)
            secrets = await SecretStore(session, self.cipher).snapshot()
        return tool, secrets

    async def _run(
        self,
        tool: ToolDescriptor,
        params: Mapping[str, Any],
        secrets: SecretResolver,
        source: ExecutionSource,
    ) -> ExecutionResult:
        executor = self.executor_for(tool.executor_type)
        result = await executor.run(tool, params, secrets)

        outcome = result.outcome
        logger.info(
            f"Tool '{tool.name}' ({source.value}) "
            f"{'succeeded' if outcome.success else 'failed'} in {outcome.duration_ms}ms",
            extra={
                "context": {
                    "tool_id": str(tool.id),
                    "executor_type": tool.executor_type,
                    "source": source.value,
                    "success": outcome.success,
                    "duration_ms": outcome.duration_ms,
                }
            },
        )

        await self._record(
            ExecutionLogRecord(
                tool_id=tool.id,
                tool_name=tool.name,
                source=source,
                outcome=outcome,
            )
        )
        return result

    async def _record(self, record: ExecutionLogRecord) -> None:
        """Append a log entry in its own transaction; failures are only logged."""
        try:
            async with self.session_factory() as session:
                await ExecutionLogService.append(session, record, self.log_retention)
                await session.commit()
        except Exception:
            logger.exception(f"Failed to record execution of tool '{record.tool_name}'")


__all__ = ["ExecutionCoordinator"]
