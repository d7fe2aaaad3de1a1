"""Console output helpers."""

from shellrun.logging.console import (
    AnsiStyler,
    Colors,
    PlainStyler,
    get_styler,
    log,
    set_verbose,
)

__all__ = [
    "AnsiStyler",
    "Colors",
    "PlainStyler",
    "get_styler",
    "log",
    "set_verbose",
]
