"""Asyncio-based process spawner.

Launches a command through the system shell in its own process group and
collects stdout/stderr. When the awaiting task is cancelled (the runner does
this on timeout) the whole process group is terminated: SIGTERM first, then
SIGKILL once the grace period has elapsed.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from typing import TYPE_CHECKING

from shellrun.core.protocols import SpawnResult, Termination

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# Seconds between SIGTERM and SIGKILL when terminating a cancelled command
DEFAULT_KILL_GRACE_SECONDS = 2.0

# Reported when the shell itself could not be started (missing cwd, etc.)
SPAWN_FAILURE_EXIT_CODE = 127


def decode_output(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def termination_for(returncode: int | None, command: str) -> Termination | None:
    """Map a process return code to a termination indicator.

    Negative return codes (killed by signal N) are reported as 128 + N, the
    same status a shell would report.
    """
    if returncode is None or returncode == 0:
        return None
    exit_code = 128 - returncode if returncode < 0 else returncode
    return Termination(exit_code=exit_code, message=f"Command failed: {command}")


class AsyncioSpawner:
    """SpawnerPort implementation on top of asyncio.create_subprocess_shell."""

    def __init__(
        self,
        kill_on_cancel: bool = True,
        kill_grace_seconds: float = DEFAULT_KILL_GRACE_SECONDS,
        use_process_group: bool = True,
    ) -> None:
        """Initialize the spawner.

        Args:
            kill_on_cancel: Terminate the process when the spawn is cancelled.
                If False the process is left running.
            kill_grace_seconds: Wait between SIGTERM and SIGKILL.
            use_process_group: Start the shell in a new session so that
                termination reaches its children too (POSIX only).
        """
        self.kill_on_cancel = kill_on_cancel
        self.kill_grace_seconds = kill_grace_seconds
        self.use_process_group = use_process_group and sys.platform != "win32"

    async def spawn(self, command: str, cwd: Path) -> SpawnResult:
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=self.use_process_group,
            )
        except OSError as exc:
            logger.debug("Spawn failed: cmd=%s cwd=%s error=%s", command, cwd, exc)
            return SpawnResult(
                stdout="",
                stderr="",
                termination=Termination(SPAWN_FAILURE_EXIT_CODE, str(exc)),
            )

        logger.debug("Spawned: cmd=%s pid=%s", command, proc.pid)
        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if self.kill_on_cancel:
                await self._terminate(proc)
            else:
                logger.debug("Leaving cancelled process running: pid=%s", proc.pid)
            raise

        return SpawnResult(
            stdout=decode_output(stdout),
            stderr=decode_output(stderr),
            termination=termination_for(proc.returncode, command),
        )

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        """SIGTERM the process (group), escalating to SIGKILL after the grace period."""
        if proc.returncode is not None:
            return
        self._send(proc, force=False)
        try:
            await asyncio.wait_for(proc.wait(), timeout=self.kill_grace_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Process ignored SIGTERM for %.1fs, sending SIGKILL: pid=%s",
                self.kill_grace_seconds,
                proc.pid,
            )
            self._send(proc, force=True)
            await proc.wait()
        except asyncio.CancelledError:
            # Event loop shutting down mid-grace; do not leave the group behind
            self._send(proc, force=True)
            raise
        logger.debug("Terminated: pid=%s returncode=%s", proc.pid, proc.returncode)

    def _send(self, proc: asyncio.subprocess.Process, *, force: bool) -> None:
        try:
            if self.use_process_group:
                # start_new_session makes the shell its own group leader
                sig = signal.SIGKILL if force else signal.SIGTERM
                os.killpg(proc.pid, sig)
            elif force:
                proc.kill()
            else:
                proc.terminate()
        except ProcessLookupError:
            # Already exited
            pass
        except PermissionError as exc:
            logger.warning("Cannot signal process group %s: %s", proc.pid, exc)
