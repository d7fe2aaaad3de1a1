"""Command-line interface."""

from shellrun.cli.cli import app, bootstrap

__all__ = ["app", "bootstrap"]
