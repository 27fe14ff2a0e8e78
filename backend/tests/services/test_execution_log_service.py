"""Tests for ExecutionLogService."""

from uuid import uuid4

import pytest

from toolsmith.schemas.execution import (
    CommandOutput,
    CommandSnapshot,
    ExecutionLogRecord,
    ExecutionOutcome,
    HttpRequestSnapshot,
    HttpResponseSnapshot,
)
from toolsmith.services.execution_log_service import ExecutionLogService


def http_record(success: bool = True, source: str = "test", duration_ms: int = 10, tool_id=None):
    return ExecutionLogRecord(
        tool_id=tool_id or uuid4(),
        tool_name="get_weather",
        source=source,
        outcome=ExecutionOutcome(
            success=success,
            duration_ms=duration_ms,
            executor_type="http",
            request=HttpRequestSnapshot(method="GET", url="https://api.example.com/"),
            response=HttpResponseSnapshot(status=200 if success else 500, body={"ok": success}),
            error=None if success else "HTTP 500: Internal Server Error",
        ),
    )


class TestAppend:
    """Test appending log entries."""

    @pytest.mark.asyncio
    async def test_http_snapshots_are_stored(self, db_session):
        """Request and response snapshots are stored with their sizes."""
        log = await ExecutionLogService.append(db_session, http_record())

        assert log.id is not None
        assert log.executor_type == "http"
        assert log.source == "test"
        assert log.request["url"] == "https://api.example.com/"
        assert log.response["status"] == 200
        assert log.input_size > 0
        assert log.output_size > 0
        assert log.timestamp is not None

    @pytest.mark.asyncio
    async def test_cli_snapshots_are_stored(self, db_session):
        """Command and output snapshots fill the request and response columns."""
        record = ExecutionLogRecord(
            tool_id=uuid4(),
            tool_name="echo",
            source="live",
            outcome=ExecutionOutcome(
                success=True,
                duration_ms=3,
                executor_type="cli",
                command=CommandSnapshot(raw="echo hi"),
                output=CommandOutput(stdout="hi", exit_code=0),
            ),
        )

        log = await ExecutionLogService.append(db_session, record)

        assert log.request["raw"] == "echo hi"
        assert log.response["stdout"] == "hi"
        assert log.error is None


class TestRetention:
    """Test the capped log."""

    @pytest.mark.asyncio
    async def test_prune_keeps_newest(self, db_session):
        """Only the newest entries survive appends past the cap."""
        for index in range(5):
            await ExecutionLogService.append(
                db_session, http_record(duration_ms=index), retention=3
            )

        logs = await ExecutionLogService.list(db_session)

        assert [log.duration_ms for log in logs] == [4, 3, 2]
        assert await ExecutionLogService.count(db_session) == 3

    @pytest.mark.asyncio
    async def test_prune_is_idempotent(self, db_session):
        """Pruning again without new rows deletes nothing."""
        for _ in range(4):
            await ExecutionLogService.append(db_session, http_record(), retention=10)

        assert await ExecutionLogService.prune(db_session, 2) == 2
        assert await ExecutionLogService.prune(db_session, 2) == 0


class TestQueries:
    """Test listing, statistics and clearing."""

    @pytest.mark.asyncio
    async def test_filters(self, db_session):
        """Listing filters by source, outcome and tool."""
        tool_id = uuid4()
        await ExecutionLogService.append(db_session, http_record(source="live", tool_id=tool_id))
        await ExecutionLogService.append(db_session, http_record(success=False))
        await ExecutionLogService.append(db_session, http_record())

        assert await ExecutionLogService.count(db_session, source="live") == 1
        assert await ExecutionLogService.count(db_session, success=False) == 1
        assert await ExecutionLogService.count(db_session, tool_id=tool_id) == 1
        assert len(await ExecutionLogService.list(db_session, source="test", success=True)) == 1

    @pytest.mark.asyncio
    async def test_statistics(self, db_session):
        """Counters and the average duration cover all retained entries."""
        await ExecutionLogService.append(db_session, http_record(duration_ms=10))
        await ExecutionLogService.append(db_session, http_record(source="live", duration_ms=20))
        await ExecutionLogService.append(db_session, http_record(success=False, duration_ms=30))

        stats = await ExecutionLogService.statistics(db_session)

        assert stats.total == 3
        assert stats.success_count == 2
        assert stats.failure_count == 1
        assert stats.live_count == 1
        assert stats.test_count == 2
        assert stats.average_duration_ms == 20.0

    @pytest.mark.asyncio
    async def test_statistics_empty(self, db_session):
        """An empty log has zero counters."""
        stats = await ExecutionLogService.statistics(db_session)

        assert stats.total == 0
        assert stats.average_duration_ms == 0

    @pytest.mark.asyncio
    async def test_clear(self, db_session):
        """Clearing removes every entry."""
        await ExecutionLogService.append(db_session, http_record())
        await ExecutionLogService.append(db_session, http_record())

        assert await ExecutionLogService.clear(db_session) == 2
        assert await ExecutionLogService.count(db_session) == 0
