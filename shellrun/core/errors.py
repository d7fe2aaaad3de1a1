"""Failure types raised by the command runner.

Every failure carries the raw data it was built from (command, cwd, captured
streams, exit code) so callers can branch on the type or its fields instead of
parsing the message. The message itself is produced by
shellrun.core.formatting and passed in at construction.

Hierarchy:
    CommandError
    ├── CommandTimeoutError
    ├── ExitCodeError
    │   └── CombinedError
    └── StderrError
        └── CombinedError
"""

from __future__ import annotations

__all__ = [
    "CombinedError",
    "CommandError",
    "CommandTimeoutError",
    "ExitCodeError",
    "StderrError",
    "failure_type",
]


class CommandError(Exception):
    """Base class for every failure of a single command invocation."""

    def __init__(
        self,
        message: str,
        *,
        command: str,
        cwd: str,
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        reason: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command
        self.cwd = cwd
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        self.reason = reason


class CommandTimeoutError(CommandError):
    """The command did not finish within its timeout.

    Raised regardless of the tolerance flags. Streams are empty because
    nothing is collected from a process that lost the race.
    """

    def __init__(
        self, message: str, *, command: str, cwd: str, timeout_ms: float
    ) -> None:
        super().__init__(message, command=command, cwd=cwd, reason="timeout")
        self.timeout_ms = timeout_ms


class ExitCodeError(CommandError):
    """Abnormal termination while exit codes were not tolerated."""


class StderrError(CommandError):
    """Non-empty stderr while stderr output was not tolerated."""


class CombinedError(ExitCodeError, StderrError):
    """Both an abnormal termination and non-empty stderr."""


def failure_type(
    is_failure_exit_code: bool, is_failure_stderr: bool
) -> type[CommandError]:
    """Pick the exception class for a classified outcome.

    Raises:
        ValueError: If neither condition holds (the outcome is a success).
    """
    if is_failure_exit_code and is_failure_stderr:
        return CombinedError
    if is_failure_exit_code:
        return ExitCodeError
    if is_failure_stderr:
        return StderrError
    raise ValueError("outcome is not a failure")
