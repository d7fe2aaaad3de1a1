"""shellrun: run a shell command and get its output, exit code or a descriptive failure."""

from shellrun.core.errors import (
    CombinedError,
    CommandError,
    CommandTimeoutError,
    ExitCodeError,
    StderrError,
)
from shellrun.infra.tools.command_runner import (
    DEFAULT_TIMEOUT_MS,
    CommandRunner,
    RunOptions,
    RunResult,
    run,
    run_sync,
)

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "CombinedError",
    "CommandError",
    "CommandRunner",
    "CommandTimeoutError",
    "ExitCodeError",
    "RunOptions",
    "RunResult",
    "StderrError",
    "__version__",
    "run",
    "run_sync",
]
