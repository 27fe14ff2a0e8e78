"""CLI tool executor for local commands."""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
import shlex
import signal
import time
from typing import TYPE_CHECKING, Any

from toolsmith.core.config import settings
from toolsmith.core.exceptions import ExecutionTimeoutError, OutputLimitExceededError
from toolsmith.core.logging import get_logger
from toolsmith.models.enums import ExecutorKind
from toolsmith.schemas.execution import CommandOutput, CommandSnapshot, ExecutionOutcome
from toolsmith.services.executors.base import (
    ExecutionResult,
    ToolExecutor,
    elapsed_ms,
    run_with_deadline,
)
from toolsmith.services.executors.binding import ParameterBinder
from toolsmith.utils.crypto import REDACTED

if TYPE_CHECKING:
    from collections.abc import Mapping

    from toolsmith.schemas.tool import CliConfig, ToolDescriptor
    from toolsmith.services.secret_service import SecretResolver

logger = get_logger(__name__)

# Exit code reported when the process could not be started
SPAWN_FAILURE_EXIT_CODE = 127

_READ_CHUNK_SIZE = 64 * 1024


class CliToolExecutor(ToolExecutor):
    """Executor for CLI-type tools.

    Commands run in their own session so that a timeout or an output
    overflow can kill the whole process group, including anything the
    shell started.
    """

    kind = ExecutorKind.CLI.value

    def __init__(
        self,
        default_timeout_ms: int | None = None,
        max_output_bytes: int | None = None,
    ) -> None:
        """Initialize CLI executor.

        Args:
            default_timeout_ms: Timeout for tools that do not set one.
            max_output_bytes: Cap applied to stdout and stderr separately.
        """
        self.default_timeout_ms = default_timeout_ms or settings.CLI_DEFAULT_TIMEOUT_MS
        self.max_output_bytes = max_output_bytes or settings.CLI_MAX_OUTPUT_BYTES

    async def run(
        self,
        tool: ToolDescriptor,
        params: Mapping[str, Any],
        secrets: SecretResolver,
    ) -> ExecutionResult:
        """Run the command and capture its output."""
        config = tool.cli_config
        timeout_ms = config.timeout or self.default_timeout_ms

        binder = ParameterBinder(tool.parameters, params)
        command = binder.interpolate_command(config.command)
        env, env_view = self._build_environment(config, binder, secrets)
        snapshot = CommandSnapshot(
            raw=command,
            working_dir=config.working_dir,
            env=env_view or None,
        )

        start_time = time.perf_counter()
        try:
            proc = await self._spawn(command, config, env)
        except (OSError, ValueError) as e:
            logger.warning(f"CLI tool '{tool.name}' could not be started: {e}")
            return self._result(
                snapshot,
                start_time,
                stdout=b"",
                stderr=str(e).encode("utf-8"),
                exit_code=SPAWN_FAILURE_EXIT_CODE,
                reason=str(e),
            )

        stdout = bytearray()
        stderr = bytearray()
        reason: str | None = None
        try:
            await run_with_deadline(
                self._communicate(proc, stdout, stderr),
                timeout_ms,
                on_expire=lambda: self._kill(proc),
            )
        except ExecutionTimeoutError:
            reason = f"Command timed out after {timeout_ms}ms"
        except OutputLimitExceededError as e:
            await self._kill(proc)
            reason = str(e)

        exit_code = proc.returncode if proc.returncode is not None else -1
        return self._result(
            snapshot,
            start_time,
            stdout=bytes(stdout),
            stderr=bytes(stderr),
            exit_code=exit_code,
            reason=reason,
        )

    async def _spawn(
        self,
        command: str,
        config: CliConfig,
        env: dict[str, str],
    ) -> asyncio.subprocess.Process:
        """Start the process under /bin/sh or directly from split words."""
        options: dict[str, Any] = {
            "stdin": asyncio.subprocess.DEVNULL,
            "stdout": asyncio.subprocess.PIPE,
            "stderr": asyncio.subprocess.PIPE,
            "cwd": config.working_dir or os.getcwd(),
            "env": env,
            "start_new_session": True,
        }
        if config.shell:
            return await asyncio.create_subprocess_shell(command, **options)

        argv = shlex.split(command)
        if not argv:
            raise ValueError("Command is empty")
        return await asyncio.create_subprocess_exec(*argv, **options)

    async def _communicate(
        self,
        proc: asyncio.subprocess.Process,
        stdout: bytearray,
        stderr: bytearray,
    ) -> int:
        """Drain both pipes into the given buffers and wait for exit.

        Output read before a timeout stays in the buffers.
        """
        await asyncio.gather(
            self._read_capped(proc.stdout, stdout, "stdout"),
            self._read_capped(proc.stderr, stderr, "stderr"),
        )
        return await proc.wait()

    async def _read_capped(
        self,
        stream: asyncio.StreamReader,
        buffer: bytearray,
        name: str,
    ) -> None:
        while chunk := await stream.read(_READ_CHUNK_SIZE):
            buffer.extend(chunk)
            if len(buffer) > self.max_output_bytes:
                del buffer[self.max_output_bytes :]
                raise OutputLimitExceededError(name, self.max_output_bytes)

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        """Kill the process group and reap the process.

        The group is killed even when the leader has already exited, since
        background children it started may still be running.
        """
        with contextlib.suppress(ProcessLookupError):
            if hasattr(os, "killpg"):
                os.killpg(proc.pid, signal.SIGKILL)
            elif proc.returncode is None:
                proc.kill()
        await proc.wait()

    def _build_environment(
        self,
        config: CliConfig,
        binder: ParameterBinder,
        secrets: SecretResolver,
    ) -> tuple[dict[str, str], dict[str, str]]:
        """Build the process environment and its masked view.

        The environment is the ambient one plus config env plus parameter
        env, each value passed through the secret resolver. The view holds
        only the config and parameter entries, with secret values masked.
        """
        env = dict(os.environ)
        view: dict[str, str] = {}
        for name, value in {**config.env, **binder.environment_entries()}.items():
            resolved = secrets.resolve(value)
            if resolved is None:
                env[name] = value
                view[name] = value
            else:
                env[name] = resolved
                view[name] = REDACTED
        return env, view

    def _result(
        self,
        snapshot: CommandSnapshot,
        start_time: float,
        *,
        stdout: bytes,
        stderr: bytes,
        exit_code: int,
        reason: str | None,
    ) -> ExecutionResult:
        duration_ms = elapsed_ms(start_time)
        out_text = stdout.decode("utf-8", errors="replace").strip()
        err_text = stderr.decode("utf-8", errors="replace").strip()
        output = CommandOutput(stdout=out_text, stderr=err_text, exit_code=exit_code)

        if reason is not None or exit_code != 0:
            detail = reason or err_text or f"Process exited with code {exit_code}"
            if reason and err_text and err_text != reason:
                detail = f"{reason}: {err_text}"
            return ExecutionResult(
                outcome=ExecutionOutcome(
                    success=False,
                    duration_ms=duration_ms,
                    executor_type=ExecutorKind.CLI,
                    command=snapshot,
                    output=output,
                    error=f"Command failed after {duration_ms}ms "
                    f"(exit code: {exit_code}): {detail}",
                )
            )

        return ExecutionResult(
            outcome=ExecutionOutcome(
                success=True,
                duration_ms=duration_ms,
                executor_type=ExecutorKind.CLI,
                command=snapshot,
                output=output,
            ),
            value=self._parse_output(out_text),
        )

    @staticmethod
    def _parse_output(text: str) -> Any:
        """Parse trimmed stdout as JSON, falling back to the text itself."""
        try:
            return json.loads(text)
        except ValueError:
            return text


__all__ = ["SPAWN_FAILURE_EXIT_CODE", "CliToolExecutor"]
