"""Configuration dataclass for shellrun.

Provides ShellRunConfig for centralized configuration. Programmatic users
construct it directly; the CLI builds it from environment variables via
from_env().

Environment Variables:
    SHELLRUN_TIMEOUT_MS: Default command timeout in milliseconds (default: 25000)
    SHELLRUN_KILL_GRACE_SECONDS: Wait between SIGTERM and SIGKILL (default: 2.0)
    SHELLRUN_KILL_ON_TIMEOUT: Terminate timed-out commands (default: 1)
    SHELLRUN_COLOR: 1 forces ANSI emphasis, 0 disables it, unset auto-detects
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from shellrun.infra.tools.command_runner import DEFAULT_TIMEOUT_MS
from shellrun.infra.tools.spawner import DEFAULT_KILL_GRACE_SECONDS

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def parse_bool(raw: str | None, *, source: str) -> bool | None:
    """Parse a boolean env value; None/blank means unset."""
    if raw is None or not raw.strip():
        return None
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{source}: expected a boolean, got {raw!r}")


def parse_float(raw: str | None, *, source: str, default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{source}: expected a number, got {raw!r}") from exc


@dataclass(frozen=True)
class ShellRunConfig:
    """Runtime defaults for the command runner.

    Attributes:
        timeout_ms: Default timeout in milliseconds.
        kill_grace_seconds: Seconds between SIGTERM and SIGKILL on timeout.
        kill_on_timeout: Terminate the process group when a command times out.
        color: Force ANSI emphasis on (True) or off (False); None auto-detects.
    """

    timeout_ms: float = DEFAULT_TIMEOUT_MS
    kill_grace_seconds: float = DEFAULT_KILL_GRACE_SECONDS
    kill_on_timeout: bool = True
    color: bool | None = None

    @classmethod
    def from_env(cls) -> ShellRunConfig:
        """Build a config from SHELLRUN_* environment variables.

        Raises:
            ValueError: If a variable is set to an unparseable value.
        """
        kill_on_timeout = parse_bool(
            os.environ.get("SHELLRUN_KILL_ON_TIMEOUT"),
            source="SHELLRUN_KILL_ON_TIMEOUT",
        )
        return cls(
            timeout_ms=parse_float(
                os.environ.get("SHELLRUN_TIMEOUT_MS"),
                source="SHELLRUN_TIMEOUT_MS",
                default=DEFAULT_TIMEOUT_MS,
            ),
            kill_grace_seconds=parse_float(
                os.environ.get("SHELLRUN_KILL_GRACE_SECONDS"),
                source="SHELLRUN_KILL_GRACE_SECONDS",
                default=DEFAULT_KILL_GRACE_SECONDS,
            ),
            kill_on_timeout=True if kill_on_timeout is None else kill_on_timeout,
            color=parse_bool(os.environ.get("SHELLRUN_COLOR"), source="SHELLRUN_COLOR"),
        )

    def validate(self) -> list[str]:
        """Return a list of configuration problems (empty when valid)."""
        errors: list[str] = []
        if not (math.isfinite(self.timeout_ms) and self.timeout_ms > 0):
            errors.append(
                f"timeout_ms must be a positive number, got {self.timeout_ms}"
            )
        grace = self.kill_grace_seconds
        if not (math.isfinite(grace) and grace >= 0):
            errors.append(
                f"kill_grace_seconds must be a non-negative number, got {grace}"
            )
        return errors
