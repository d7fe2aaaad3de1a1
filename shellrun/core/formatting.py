"""Diagnostic message construction for failed commands.

Pure functions: they only build strings. Emphasis is delegated to a
StylerPort, so passing an identity styler yields plain text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shellrun.core.protocols import StylerPort

EMPTY_PLACEHOLDER = "(empty)"

BANNER_FAILED = "========= COMMAND FAILED =========="
BANNER_STDOUT = "============= STDOUT =============="
BANNER_STDERR = "============= STDERR =============="
BANNER_END = "==================================="


def format_stream(text: str) -> str:
    """Return text trimmed of surrounding whitespace, or a placeholder if blank."""
    stripped = text.strip()
    return stripped if stripped else EMPTY_PLACEHOLDER


def format_reason(
    exit_code: int, is_failure_exit_code: bool, is_failure_stderr: bool
) -> str:
    """Build the reason token, e.g. "exit code 2", "stderr" or both joined."""
    reasons: list[str] = []
    if is_failure_exit_code:
        reasons.append(f"exit code {exit_code}")
    if is_failure_stderr:
        reasons.append("stderr")
    return " and ".join(reasons)


def format_failure_message(
    command: str,
    cwd: str,
    reason: str,
    stdout: str,
    stderr: str,
    styler: StylerPort,
) -> str:
    """Render the multi-line diagnostic for an exit-code and/or stderr failure.

    Args:
        command: Command text as it was passed to the shell.
        cwd: Working directory the command ran in.
        reason: Output of format_reason().
        stdout: Raw captured stdout.
        stderr: Raw captured stderr.
        styler: Emphasis applied to the command, cwd and reason tokens.

    Returns:
        Message meant to be read by a human operator.
    """
    return "\n".join(
        [
            BANNER_FAILED,
            f"Command: {styler.command(command)}",
            f"cwd: {styler.cwd(cwd)}",
            f"Reason: {styler.error(reason)}",
            BANNER_STDOUT,
            format_stream(stdout),
            BANNER_STDERR,
            format_stream(stderr),
            BANNER_END,
        ]
    )


def format_timeout_message(
    command: str, cwd: str, timeout_ms: float, styler: StylerPort
) -> str:
    seconds = timeout_ms / 1000
    return (
        f"Command {styler.command(command)} ({styler.cwd(cwd)}) "
        f"timed out after {seconds:g} seconds."
    )
