"""Protocol definitions for the command runner's collaborators.

The runner itself only decides *how to classify* a finished process. Launching
the process and decorating the diagnostic text are delegated to the two
collaborators defined here, so the classification logic can be exercised with
fakes and without a terminal.

Design principles:
- Protocols use structural typing (typing.Protocol) for flexibility
- Methods match exactly what CommandRunner actually calls
- Result types are small frozen dataclasses shared by every implementation
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path


# =============================================================================
# Spawn results
# =============================================================================


@dataclass(frozen=True)
class Termination:
    """Abnormal end of a process.

    Present only when the process exited non-zero, was killed by a signal, or
    could not be spawned at all.

    Attributes:
        exit_code: Non-zero exit status (128 + N for signal N).
        message: Generic description, e.g. the OS error for a failed spawn.
    """

    exit_code: int
    message: str = ""


@dataclass(frozen=True)
class SpawnResult:
    """Captured output of one finished process."""

    stdout: str
    stderr: str
    termination: Termination | None = None

    @property
    def exit_code(self) -> int:
        if self.termination is None:
            return 0
        return self.termination.exit_code


# =============================================================================
# Collaborator Protocols
# =============================================================================


@runtime_checkable
class SpawnerPort(Protocol):
    """Protocol for launching a shell command and collecting its output.

    The canonical implementation is AsyncioSpawner in
    shellrun/infra/tools/spawner.py.

    Implementations must be cancellable: when the awaiting task is cancelled
    (the runner does this on timeout) they are responsible for whatever
    cleanup of the child process they support, and must then re-raise
    asyncio.CancelledError.
    """

    async def spawn(self, command: str, cwd: Path) -> SpawnResult:
        """Run command through the shell in cwd.

        Args:
            command: Command text passed verbatim to the shell.
            cwd: Working directory for the process.

        Returns:
            SpawnResult with decoded stdout/stderr and the termination
            indicator (None on a clean exit).
        """
        ...


@runtime_checkable
class StylerPort(Protocol):
    """Protocol for cosmetic emphasis of diagnostic message tokens.

    Implementations may only add decoration (e.g. ANSI escapes) around the
    text; the text itself must come through unchanged.
    """

    def command(self, text: str) -> str: ...

    def cwd(self, text: str) -> str: ...

    def error(self, text: str) -> str: ...
