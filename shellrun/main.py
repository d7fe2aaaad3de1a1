#!/usr/bin/env python3
"""
shellrun: run a shell command with a timeout and tolerance flags.

This module is a thin shim that exposes the CLI app from shellrun.cli.

Usage:
    shellrun [OPTIONS] COMMAND
"""

from .cli import app, bootstrap

bootstrap()

if __name__ == "__main__":
    app()
