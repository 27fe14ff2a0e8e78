"""Execution log sink.

Every tool run is appended here as one ExecutionLog row. The table is
capped: after each append, rows beyond the newest ``retention`` are
deleted. Pruning keys on the autoincrement id, so concurrent writers
converge on the same newest rows.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from sqlalchemy import case, delete, func, select

from toolsmith.core.config import settings
from toolsmith.models.enums import ExecutionSource
from toolsmith.models.execution import ExecutionLog
from toolsmith.schemas.execution import ExecutionStatistics

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from toolsmith.schemas.execution import ExecutionLogRecord


def _payload_size(payload: dict[str, Any] | None) -> int:
    """Size in bytes of a snapshot serialized as JSON."""
    if payload is None:
        return 0
    return len(json.dumps(payload, ensure_ascii=False, default=str).encode("utf-8"))


class ExecutionLogService:
    """Service for managing ExecutionLog records."""

    @staticmethod
    async def append(
        db: AsyncSession,
        record: ExecutionLogRecord,
        retention: int | None = None,
    ) -> ExecutionLog:
        """Store one execution record and prune the table.

        Args:
            db: Database session.
            record: Outcome tagged with its tool and source.
            retention: Rows to keep. Defaults to EXECUTION_LOG_RETENTION.

        Returns:
            The created ExecutionLog instance.
        """
        outcome = record.outcome
        request = outcome.request or outcome.command
        response = outcome.response or outcome.output
        request_data = request.model_dump(mode="json") if request is not None else None
        response_data = response.model_dump(mode="json") if response is not None else None

        log = ExecutionLog(
            tool_id=record.tool_id,
            tool_name=record.tool_name,
            executor_type=outcome.executor_type,
            source=record.source,
            success=outcome.success,
            duration_ms=outcome.duration_ms,
            request=request_data,
            response=response_data,
            input_size=_payload_size(request_data),
            output_size=_payload_size(response_data),
            error=outcome.error,
        )
        db.add(log)
        await db.flush()
        await db.refresh(log)

        await ExecutionLogService.prune(db, retention)
        return log

    @staticmethod
    async def prune(db: AsyncSession, retention: int | None = None) -> int:
        """Delete all but the newest ``retention`` rows.

        Idempotent: running it again without new rows deletes nothing.

        Returns:
            Number of rows deleted.
        """
        keep = retention if retention is not None else settings.EXECUTION_LOG_RETENTION
        newest = select(ExecutionLog.id).order_by(ExecutionLog.id.desc()).limit(keep)
        result = await db.execute(
            delete(ExecutionLog)
            .where(ExecutionLog.id.not_in(newest))
            .execution_options(synchronize_session=False)
        )
        await db.flush()
        return result.rowcount or 0

    @staticmethod
    async def get(db: AsyncSession, log_id: int) -> ExecutionLog | None:
        """Get one log entry by ID."""
        return await db.get(ExecutionLog, log_id)

    @staticmethod
    async def list(
        db: AsyncSession,
        skip: int = 0,
        limit: int = 50,
        source: ExecutionSource | str | None = None,
        success: bool | None = None,
        tool_id: uuid.UUID | None = None,
    ) -> list[ExecutionLog]:
        """List log entries, newest first.

        Args:
            db: Database session.
            skip: Number of records to skip.
            limit: Maximum number of records to return.
            source: Optional filter by source (test, live).
            success: Optional filter by outcome.
            tool_id: Optional filter by tool.

        Returns:
            List of ExecutionLog records.
        """
        query = ExecutionLogService._filtered(select(ExecutionLog), source, success, tool_id)
        query = query.order_by(ExecutionLog.id.desc()).offset(skip).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def count(
        db: AsyncSession,
        source: ExecutionSource | str | None = None,
        success: bool | None = None,
        tool_id: uuid.UUID | None = None,
    ) -> int:
        """Count log entries matching the filters."""
        query = ExecutionLogService._filtered(
            select(func.count(ExecutionLog.id)), source, success, tool_id
        )
        result = await db.scalar(query)
        return result or 0

    @staticmethod
    async def statistics(db: AsyncSession) -> ExecutionStatistics:
        """Aggregate counters over the retained log entries."""
        result = await db.execute(
            select(
                func.count(ExecutionLog.id),
                func.sum(case((ExecutionLog.success.is_(True), 1), else_=0)),
                func.sum(case((ExecutionLog.source == ExecutionSource.LIVE.value, 1), else_=0)),
                func.avg(ExecutionLog.duration_ms),
            )
        )
        total, success_count, live_count, average = result.one()
        total = total or 0
        success_count = success_count or 0
        live_count = live_count or 0

        return ExecutionStatistics(
            total=total,
            success_count=success_count,
            failure_count=total - success_count,
            live_count=live_count,
            test_count=total - live_count,
            average_duration_ms=round(float(average or 0), 2),
        )

    @staticmethod
    async def clear(db: AsyncSession) -> int:
        """Delete every log entry.

        Returns:
            Number of rows deleted.
        """
        result = await db.execute(delete(ExecutionLog))
        await db.flush()
        return result.rowcount or 0

    @staticmethod
    def _filtered(
        query: Any,
        source: ExecutionSource | str | None,
        success: bool | None,
        tool_id: uuid.UUID | None,
    ) -> Any:
        if source is not None:
            query = query.where(ExecutionLog.source == getattr(source, "value", source))
        if success is not None:
            query = query.where(ExecutionLog.success.is_(success))
        if tool_id is not None:
            query = query.where(ExecutionLog.tool_id == tool_id)
        return query


__all__ = ["ExecutionLogService"]
