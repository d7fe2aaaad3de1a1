"""Console output helpers for shellrun.

ANSI colors for the CLI's status lines and the stylers used to emphasize
tokens inside failure messages.
"""

from __future__ import annotations

import os
import sys
from datetime import datetime
from typing import TextIO

# Global verbose setting (can be modified at runtime)
_verbose_enabled: bool = False


def set_verbose(enabled: bool) -> None:
    """Enable or disable verbose output globally."""
    global _verbose_enabled
    _verbose_enabled = enabled


def is_verbose_enabled() -> bool:
    """Check if verbose output is currently enabled."""
    return _verbose_enabled


class Colors:
    """ANSI color codes for terminal output (bright variants)."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    RED = "\033[91m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"
    MUTED = "\033[90m"


def colorize(text: str, *codes: str) -> str:
    """Wrap text in the given ANSI codes followed by a reset."""
    if not codes:
        return text
    return f"{''.join(codes)}{text}{Colors.RESET}"


class PlainStyler:
    """Identity styler: leaves every token untouched."""

    def command(self, text: str) -> str:
        return text

    def cwd(self, text: str) -> str:
        return text

    def error(self, text: str) -> str:
        return text


class AnsiStyler:
    """Bold blue command, bold yellow cwd, bold red error tokens."""

    def command(self, text: str) -> str:
        return colorize(text, Colors.BOLD, Colors.BLUE)

    def cwd(self, text: str) -> str:
        return colorize(text, Colors.BOLD, Colors.YELLOW)

    def error(self, text: str) -> str:
        return colorize(text, Colors.BOLD, Colors.RED)


def supports_color(stream: TextIO | None = None) -> bool:
    """Whether ANSI emphasis should be used for the given stream.

    NO_COLOR (any value) disables color; otherwise color is used only when
    the stream is a TTY.
    """
    if "NO_COLOR" in os.environ:
        return False
    stream = stream if stream is not None else sys.stderr
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def get_styler(color: bool | None = None) -> AnsiStyler | PlainStyler:
    """Return AnsiStyler or PlainStyler; color=None means auto-detect."""
    if color is None:
        color = supports_color()
    return AnsiStyler() if color else PlainStyler()


def log(
    icon: str,
    message: str,
    color: str = Colors.RESET,
    dim: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Timestamped status line, printed to stderr by default."""
    style = Colors.MUTED if dim else ""
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(
        f"{Colors.GRAY}{timestamp}{Colors.RESET} {style}{color}{icon} {message}{Colors.RESET}",
        file=stream if stream is not None else sys.stderr,
    )
