"""Configuration loading."""

from shellrun.infra.io.config import DEFAULT_TIMEOUT_MS, ShellRunConfig

__all__ = ["DEFAULT_TIMEOUT_MS", "ShellRunConfig"]
