"""Integration tests for CommandRunner - real shell commands.

Tests cover:
- Output capture and exit codes
- Tolerance flags for stderr and exit codes
- Timeout handling with process-group termination
- Spawn failures and concurrent runs
"""

from __future__ import annotations

import asyncio
import shutil
import sys
import time
from typing import TYPE_CHECKING

import pytest

from shellrun import (
    CombinedError,
    CommandError,
    CommandRunner,
    CommandTimeoutError,
    ExitCodeError,
    RunResult,
    StderrError,
    run,
    run_sync,
)

if TYPE_CHECKING:
    from pathlib import Path


pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell commands"),
]


class TestRun:
    """Test the module-level run() coroutine."""

    @pytest.mark.asyncio
    async def test_echo(self) -> None:
        result = await run("echo hello")
        assert result == RunResult(stdout="hello\n", stderr="", exit_code=0)

    @pytest.mark.asyncio
    async def test_runs_in_cwd(self, tmp_path: Path) -> None:
        (tmp_path / "marker.txt").write_text("x")
        result = await run("ls", cwd=tmp_path)
        assert "marker.txt" in result.stdout

    @pytest.mark.asyncio
    async def test_shell_features_are_available(self, tmp_path: Path) -> None:
        result = await run("echo a && echo b | tr b c", cwd=tmp_path)
        assert result.stdout == "a\nc\n"

    @pytest.mark.asyncio
    async def test_tolerated_exit_code(self) -> None:
        result = await run("echo hello; exit 42", tolerate_exit_code=True)
        assert result.exit_code == 42
        assert "hello" in result.stdout

    @pytest.mark.asyncio
    async def test_exit_code_failure(self) -> None:
        with pytest.raises(ExitCodeError) as excinfo:
            await run("exit 3")
        assert excinfo.value.exit_code == 3
        assert "exit code 3" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_stderr_failure(self) -> None:
        with pytest.raises(StderrError) as excinfo:
            await run("echo oops >&2")
        assert not isinstance(excinfo.value, ExitCodeError)
        assert excinfo.value.stderr == "oops\n"
        assert "oops" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_tolerated_stderr(self) -> None:
        result = await run("echo out; echo warn >&2", tolerate_stderr=True)
        assert result == RunResult(stdout="out\n", stderr="warn\n", exit_code=0)

    @pytest.mark.asyncio
    async def test_combined_failure(self) -> None:
        with pytest.raises(CombinedError) as excinfo:
            await run("echo bad >&2; exit 7")
        assert excinfo.value.reason == "exit code 7 and stderr"

    @pytest.mark.asyncio
    async def test_nonexistent_command(self) -> None:
        with pytest.raises(CommandError) as excinfo:
            await run("this-command-does-not-exist-shellrun")
        assert excinfo.value.exit_code == 127

    @pytest.mark.asyncio
    async def test_nonexistent_cwd(self, tmp_path: Path) -> None:
        with pytest.raises(ExitCodeError) as excinfo:
            await run("ls", cwd=tmp_path / "missing")
        assert excinfo.value.exit_code == 127
        assert "missing" in str(excinfo.value)

    @pytest.mark.asyncio
    @pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
    async def test_git_unknown_revision(self, tmp_path: Path) -> None:
        await run("git init -q", cwd=tmp_path, tolerate_stderr=True)
        result = await run(
            "git show deadbeef",
            cwd=tmp_path,
            tolerate_exit_code=True,
            tolerate_stderr=True,
        )
        assert "unknown revision" in result.stderr
        assert result.exit_code == 128


class TestTimeout:
    """Timeouts against real processes."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tolerate", [False, True])
    async def test_timeout(self, tolerate: bool) -> None:
        start = time.monotonic()
        with pytest.raises(CommandTimeoutError) as excinfo:
            await run(
                "sleep 60",
                timeout_ms=100,
                tolerate_exit_code=tolerate,
                tolerate_stderr=tolerate,
            )
        elapsed = time.monotonic() - start

        assert elapsed < 2.0, f"Timeout took {elapsed}s"
        assert "timed out after 0.1 seconds" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_timeout_kills_process_group(self, tmp_path: Path) -> None:
        """Children of the shell are terminated too."""
        cmd = f'(sleep 0.3; echo "child survived" > "{tmp_path}/child.txt") & sleep 10'
        runner = CommandRunner(cwd=tmp_path, timeout_ms=100)

        with pytest.raises(CommandTimeoutError):
            await runner.run(cmd)

        await asyncio.sleep(0.5)
        assert not (tmp_path / "child.txt").exists(), "Child should have been killed"

    @pytest.mark.asyncio
    async def test_sigterm_ignoring_command_times_out_promptly(self) -> None:
        """The error does not wait out the SIGTERM grace period."""
        runner = CommandRunner(timeout_ms=100)

        start = time.monotonic()
        with pytest.raises(CommandTimeoutError):
            await runner.run("trap '' TERM; sleep 10")
        elapsed = time.monotonic() - start

        assert elapsed < 0.5, f"Timeout error arrived after {elapsed:.2f}s"

        start = time.monotonic()
        await runner.wait_terminated()
        assert time.monotonic() - start < 5.0

    @pytest.mark.asyncio
    async def test_sigkill_after_grace_period(self, tmp_path: Path) -> None:
        cmd = f"trap '' TERM; sleep 0.6; echo survived > \"{tmp_path}/survivor.txt\""
        runner = CommandRunner(cwd=tmp_path, timeout_ms=100, kill_grace_seconds=0.1)

        with pytest.raises(CommandTimeoutError):
            await runner.run(cmd)
        await runner.wait_terminated()

        await asyncio.sleep(0.8)
        assert not (tmp_path / "survivor.txt").exists(), "Process ignored SIGKILL"

    @pytest.mark.asyncio
    async def test_no_kill_leaves_process_running(self, tmp_path: Path) -> None:
        cmd = f'sleep 0.3; echo "survived" > "{tmp_path}/survivor.txt"'
        runner = CommandRunner(cwd=tmp_path, timeout_ms=50, kill_on_timeout=False)

        with pytest.raises(CommandTimeoutError):
            await runner.run(cmd)

        await asyncio.sleep(0.8)
        assert (tmp_path / "survivor.txt").exists(), "Process should keep running"


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_runs_do_not_interfere(self, tmp_path: Path) -> None:
        results = await asyncio.gather(
            run("sleep 0.2; echo slow", cwd=tmp_path),
            run("echo fast", cwd=tmp_path),
            run("exit 9", cwd=tmp_path),
            run("sleep 5", cwd=tmp_path, timeout_ms=100),
            return_exceptions=True,
        )

        assert results[0] == RunResult("slow\n", "", 0)
        assert results[1] == RunResult("fast\n", "", 0)
        assert isinstance(results[2], ExitCodeError)
        assert results[2].exit_code == 9
        assert isinstance(results[3], CommandTimeoutError)


class TestRunSync:
    def test_run_sync(self, tmp_path: Path) -> None:
        result = run_sync("echo sync", cwd=tmp_path)
        assert result.stdout == "sync\n"

    def test_run_sync_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ExitCodeError):
            run_sync("false", cwd=tmp_path)
