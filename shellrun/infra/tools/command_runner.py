"""Run a shell command and classify its outcome.

This module provides:
- RunOptions: immutable description of one invocation
- RunResult: captured stdout/stderr and exit code of a successful run
- CommandRunner: per-runner defaults plus the async run() operation
- run() / run_sync(): module-level convenience functions

A run races the spawned process against a timer. Both settle the same
single-assignment future; whichever settles first decides the outcome and the
other becomes a no-op. On timeout the spawn task is cancelled, which makes the
spawner terminate the process group. The timeout error is raised right away;
termination continues in the background and can be awaited with
CommandRunner.wait_terminated().

Classification:
- a termination indicator is a failure unless tolerate_exit_code is set
- non-empty stderr is a failure unless tolerate_stderr is set
- a timeout is always a failure
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from shellrun.core.errors import CommandError, CommandTimeoutError, failure_type
from shellrun.core.formatting import (
    format_failure_message,
    format_reason,
    format_timeout_message,
)
from shellrun.infra.tools.spawner import DEFAULT_KILL_GRACE_SECONDS, AsyncioSpawner
from shellrun.logging.console import PlainStyler, get_styler

if TYPE_CHECKING:
    from shellrun.core.protocols import SpawnerPort, SpawnResult, StylerPort
    from shellrun.infra.io.config import ShellRunConfig

logger = logging.getLogger(__name__)

# Default timeout for a command (milliseconds)
DEFAULT_TIMEOUT_MS = 25_000

# Conventional exit status for a timed-out command (same as timeout(1))
TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True)
class RunOptions:
    """One invocation's settings.

    Attributes:
        cwd: Working directory the command runs in.
        timeout_ms: Time allowed before the run fails, in milliseconds.
        tolerate_stderr: Accept non-empty stderr.
        tolerate_exit_code: Accept abnormal termination.
    """

    cwd: Path
    timeout_ms: float = DEFAULT_TIMEOUT_MS
    tolerate_stderr: bool = False
    tolerate_exit_code: bool = False

    def __post_init__(self) -> None:
        if not (math.isfinite(self.timeout_ms) and self.timeout_ms > 0):
            raise ValueError(
                f"timeout_ms must be a positive number, got {self.timeout_ms}"
            )


@dataclass(frozen=True)
class RunResult:
    """Outcome of a successful run.

    stderr may be non-empty and exit_code non-zero when the corresponding
    tolerance flag was set.
    """

    stdout: str
    stderr: str
    exit_code: int


def _settle(
    future: asyncio.Future[RunResult],
    result: RunResult | None = None,
    exc: BaseException | None = None,
) -> None:
    """Settle future once; later settlements are ignored."""
    if future.done():
        return
    if exc is not None:
        future.set_exception(exc)
    else:
        future.set_result(result)  # type: ignore[arg-type]


def validate_command(cmd: str) -> None:
    """Raise ValueError unless cmd has something for the shell to run."""
    if not cmd or not cmd.strip():
        raise ValueError("cmd must be a non-empty string")


class CommandRunner:
    """Runs shell commands with shared defaults.

    Example:
        runner = CommandRunner(cwd=repo_path, timeout_ms=5000)
        result = await runner.run("git rev-parse HEAD")
        result = await runner.run("make lint", tolerate_exit_code=True)
    """

    def __init__(
        self,
        cwd: Path | str | None = None,
        timeout_ms: float = DEFAULT_TIMEOUT_MS,
        tolerate_stderr: bool = False,
        tolerate_exit_code: bool = False,
        spawner: SpawnerPort | None = None,
        styler: StylerPort | None = None,
        kill_on_timeout: bool = True,
        kill_grace_seconds: float = DEFAULT_KILL_GRACE_SECONDS,
    ) -> None:
        """Initialize the runner.

        Args:
            cwd: Default working directory. None means the process's current
                directory at the time of each call.
            timeout_ms: Default timeout in milliseconds.
            tolerate_stderr: Default for accepting non-empty stderr.
            tolerate_exit_code: Default for accepting abnormal termination.
            spawner: Process launcher. Defaults to AsyncioSpawner.
            styler: Emphasis for failure messages. Defaults to plain text.
            kill_on_timeout: Terminate the process group on timeout (only
                used when no spawner is given).
            kill_grace_seconds: Wait between SIGTERM and SIGKILL (only used
                when no spawner is given).
        """
        self.cwd = Path(cwd) if cwd is not None else None
        self.timeout_ms = timeout_ms
        self.tolerate_stderr = tolerate_stderr
        self.tolerate_exit_code = tolerate_exit_code
        self.kill_on_timeout = kill_on_timeout
        self.spawner: SpawnerPort = spawner or AsyncioSpawner(
            kill_on_cancel=kill_on_timeout,
            kill_grace_seconds=kill_grace_seconds,
        )
        self.styler: StylerPort = styler or PlainStyler()
        # Cancelled spawn tasks still terminating their process group
        self._terminating: set[asyncio.Future[SpawnResult]] = set()

    @classmethod
    def from_config(
        cls,
        config: ShellRunConfig,
        cwd: Path | str | None = None,
        **kwargs: object,
    ) -> CommandRunner:
        """Create a runner whose defaults come from a ShellRunConfig."""
        return cls(
            cwd=cwd,
            timeout_ms=config.timeout_ms,
            styler=get_styler(config.color),
            kill_on_timeout=config.kill_on_timeout,
            kill_grace_seconds=config.kill_grace_seconds,
            **kwargs,  # type: ignore[arg-type]
        )

    def options(
        self,
        cwd: Path | str | None = None,
        timeout_ms: float | None = None,
        tolerate_stderr: bool | None = None,
        tolerate_exit_code: bool | None = None,
    ) -> RunOptions:
        """Resolve per-call overrides against the runner defaults."""
        if cwd is None:
            cwd = self.cwd if self.cwd is not None else Path.cwd()
        return RunOptions(
            cwd=Path(cwd),
            timeout_ms=timeout_ms if timeout_ms is not None else self.timeout_ms,
            tolerate_stderr=(
                tolerate_stderr
                if tolerate_stderr is not None
                else self.tolerate_stderr
            ),
            tolerate_exit_code=(
                tolerate_exit_code
                if tolerate_exit_code is not None
                else self.tolerate_exit_code
            ),
        )

    async def run(
        self,
        cmd: str,
        *,
        cwd: Path | str | None = None,
        timeout_ms: float | None = None,
        tolerate_stderr: bool | None = None,
        tolerate_exit_code: bool | None = None,
    ) -> RunResult:
        """Run cmd through the shell and wait for its classified outcome.

        Args:
            cmd: Command text, passed verbatim to the shell.
            cwd: Override working directory for this command.
            timeout_ms: Override timeout in milliseconds.
            tolerate_stderr: Override stderr tolerance.
            tolerate_exit_code: Override exit-code tolerance.

        Returns:
            RunResult with stdout, stderr and exit code.

        Raises:
            ValueError: If cmd is empty or the timeout is not positive.
            CommandTimeoutError: If the command outlived its timeout.
            ExitCodeError: Abnormal termination, not tolerated.
            StderrError: Non-empty stderr, not tolerated.
            CombinedError: Both of the above.
        """
        validate_command(cmd)
        options = self.options(cwd, timeout_ms, tolerate_stderr, tolerate_exit_code)
        return await self.execute(cmd, options)

    async def wait_terminated(self) -> None:
        """Wait until every process abandoned by a timeout has been reaped."""
        if self._terminating:
            await asyncio.wait(set(self._terminating))

    async def execute(self, cmd: str, options: RunOptions) -> RunResult:
        """Run an already validated command with fully resolved options."""
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[RunResult] = loop.create_future()

        def on_timeout() -> None:
            logger.debug(
                "Command timed out: cmd=%s cwd=%s timeout_ms=%s",
                cmd,
                options.cwd,
                options.timeout_ms,
            )
            message = format_timeout_message(
                cmd, str(options.cwd), options.timeout_ms, self.styler
            )
            _settle(
                outcome,
                exc=CommandTimeoutError(
                    message,
                    command=cmd,
                    cwd=str(options.cwd),
                    timeout_ms=options.timeout_ms,
                ),
            )

        def on_spawned(task: asyncio.Future[SpawnResult]) -> None:
            timer.cancel()
            if task.cancelled():
                return
            exc = task.exception()
            if exc is not None:
                _settle(outcome, exc=exc)
                return
            try:
                result = self._classify(cmd, options, task.result())
            except CommandError as err:
                _settle(outcome, exc=err)
            else:
                _settle(outcome, result=result)

        logger.debug(
            "Command started: cmd=%s cwd=%s timeout_ms=%s",
            cmd,
            options.cwd,
            options.timeout_ms,
        )
        timer = loop.call_later(options.timeout_ms / 1000, on_timeout)
        spawn_task = asyncio.ensure_future(self.spawner.spawn(cmd, options.cwd))
        spawn_task.add_done_callback(on_spawned)
        try:
            return await outcome
        finally:
            timer.cancel()
            if not spawn_task.done():
                spawn_task.cancel()
                self._terminating.add(spawn_task)
                spawn_task.add_done_callback(self._terminating.discard)

    def _classify(
        self, cmd: str, options: RunOptions, spawned: SpawnResult
    ) -> RunResult:
        """Turn a finished process into a RunResult or raise the matching error."""
        termination = spawned.termination
        is_failure_exit_code = termination is not None and not options.tolerate_exit_code
        is_failure_stderr = bool(spawned.stderr) and not options.tolerate_stderr
        exit_code = spawned.exit_code

        logger.debug(
            "Command finished: cmd=%s exit_code=%s stderr_bytes=%s",
            cmd,
            exit_code,
            len(spawned.stderr),
        )
        if not (is_failure_exit_code or is_failure_stderr):
            return RunResult(
                stdout=spawned.stdout, stderr=spawned.stderr, exit_code=exit_code
            )

        reason = format_reason(exit_code, is_failure_exit_code, is_failure_stderr)
        # A failed spawn has no output; show its generic message instead
        stderr_body = spawned.stderr
        if not stderr_body.strip() and termination is not None:
            stderr_body = termination.message
        message = format_failure_message(
            cmd, str(options.cwd), reason, spawned.stdout, stderr_body, self.styler
        )
        error_cls = failure_type(is_failure_exit_code, is_failure_stderr)
        raise error_cls(
            message,
            command=cmd,
            cwd=str(options.cwd),
            stdout=spawned.stdout,
            stderr=spawned.stderr,
            exit_code=exit_code,
            reason=reason,
        )


async def run(
    cmd: str,
    *,
    cwd: Path | str | None = None,
    timeout_ms: float = DEFAULT_TIMEOUT_MS,
    tolerate_stderr: bool = False,
    tolerate_exit_code: bool = False,
    styler: StylerPort | None = None,
) -> RunResult:
    """Run a command with a one-off runner.

    Args:
        cmd: Command text, passed verbatim to the shell.
        cwd: Working directory (default: current directory at call time).
        timeout_ms: Timeout in milliseconds (default: 25000).
        tolerate_stderr: Accept non-empty stderr.
        tolerate_exit_code: Accept abnormal termination.
        styler: Emphasis for failure messages (default: plain text).

    Returns:
        RunResult with stdout, stderr and exit code.
    """
    runner = CommandRunner(
        cwd=cwd,
        timeout_ms=timeout_ms,
        tolerate_stderr=tolerate_stderr,
        tolerate_exit_code=tolerate_exit_code,
        styler=styler,
    )
    return await runner.run(cmd)


def run_sync(
    cmd: str,
    *,
    cwd: Path | str | None = None,
    timeout_ms: float = DEFAULT_TIMEOUT_MS,
    tolerate_stderr: bool = False,
    tolerate_exit_code: bool = False,
    styler: StylerPort | None = None,
) -> RunResult:
    """Blocking variant of run() for synchronous scripts.

    Must not be called from inside a running event loop.
    """
    return asyncio.run(
        run(
            cmd,
            cwd=cwd,
            timeout_ms=timeout_ms,
            tolerate_stderr=tolerate_stderr,
            tolerate_exit_code=tolerate_exit_code,
            styler=styler,
        )
    )
