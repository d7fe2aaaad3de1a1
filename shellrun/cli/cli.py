#!/usr/bin/env python3
"""
shellrun CLI: run one shell command with a timeout and tolerance flags.

Usage:
    shellrun [OPTIONS] COMMAND

Exit status:
    the command's exit code on success (non-zero only when tolerated)
    1   the command failed (non-zero exit or stderr output, not tolerated)
    2   invalid configuration or arguments
    124 the command timed out
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer

from shellrun.core.errors import CommandError, CommandTimeoutError
from shellrun.infra.io.config import ShellRunConfig
from shellrun.infra.tools.command_runner import (
    TIMEOUT_EXIT_CODE,
    CommandRunner,
    RunOptions,
    validate_command,
)
from shellrun.infra.tools.env import load_env, load_user_env
from shellrun.logging.console import Colors, is_verbose_enabled, log, set_verbose

# Bootstrap state: tracks whether bootstrap() has been called
_bootstrapped = False

CONFIG_ERROR_EXIT_CODE = 2


def bootstrap() -> None:
    """Initialize environment.

    Idempotent. Loads environment variables from ~/.config/shellrun/.env so
    that ShellRunConfig.from_env() sees them.
    """
    global _bootstrapped

    if _bootstrapped:
        return

    load_user_env()

    _bootstrapped = True


def _load_config(color: bool | None) -> ShellRunConfig:
    """Build config from env, applying CLI overrides; exits 2 on bad values."""
    try:
        config = ShellRunConfig.from_env()
    except ValueError as exc:
        log("✗", str(exc), Colors.RED)
        raise typer.Exit(CONFIG_ERROR_EXIT_CODE) from exc
    if color is not None:
        config = replace(config, color=color)
    errors = config.validate()
    if errors:
        for error in errors:
            log("✗", error, Colors.RED)
        raise typer.Exit(CONFIG_ERROR_EXIT_CODE)
    return config


app = typer.Typer(
    name="shellrun",
    help="Run a shell command; fail on non-zero exit, stderr output or timeout",
    add_completion=False,
)


@app.command()
def run(
    command: Annotated[
        str,
        typer.Argument(help="Command line, passed verbatim to the shell"),
    ],
    cwd: Annotated[
        Path | None,
        typer.Option(
            "--cwd",
            "-C",
            help="Working directory, whose .env is also loaded (default: cwd)",
        ),
    ] = None,
    timeout_ms: Annotated[
        float | None,
        typer.Option(
            "--timeout-ms",
            "-t",
            help="Timeout in milliseconds (default: SHELLRUN_TIMEOUT_MS or 25000)",
        ),
    ] = None,
    tolerate_stderr: Annotated[
        bool,
        typer.Option(
            "--tolerate-stderr",
            help="Do not fail when the command writes to stderr",
        ),
    ] = False,
    tolerate_exit_code: Annotated[
        bool,
        typer.Option(
            "--tolerate-exit-code",
            help="Do not fail on a non-zero exit code; exit with it instead",
        ),
    ] = False,
    color: Annotated[
        bool | None,
        typer.Option(
            "--color/--no-color",
            help="Force ANSI emphasis in failure messages (default: auto)",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log command lifecycle to stderr",
        ),
    ] = False,
) -> None:
    """Run COMMAND and relay its output."""
    bootstrap()
    if cwd is not None:
        load_env(cwd)
    set_verbose(verbose)
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )

    config = _load_config(color)
    runner = CommandRunner.from_config(config, cwd=cwd)
    try:
        validate_command(command)
        options = runner.options(
            timeout_ms=timeout_ms,
            tolerate_stderr=tolerate_stderr,
            tolerate_exit_code=tolerate_exit_code,
        )
    except ValueError as exc:
        log("✗", str(exc), Colors.RED)
        raise typer.Exit(CONFIG_ERROR_EXIT_CODE) from exc

    if is_verbose_enabled():
        log("▸", command, Colors.CYAN)
    exit_code = asyncio.run(_run_command(runner, command, options, config))
    raise typer.Exit(exit_code)


async def _run_command(
    runner: CommandRunner,
    command: str,
    options: RunOptions,
    config: ShellRunConfig,
) -> int:
    """Run one command, relay its output and return the CLI exit status.

    A timed-out command is reported first, then terminated before returning.
    """
    try:
        result = await runner.execute(command, options)
    except CommandTimeoutError as exc:
        typer.echo(str(exc), err=True, color=config.color)
        await runner.wait_terminated()
        return TIMEOUT_EXIT_CODE
    except CommandError as exc:
        typer.echo(str(exc), err=True, color=config.color)
        return 1

    if result.stdout:
        typer.echo(result.stdout, nl=False)
    if result.stderr:
        typer.echo(result.stderr, err=True, nl=False)
    if is_verbose_enabled():
        log("✓", f"exit code {result.exit_code}", Colors.GREEN, dim=True)
    return result.exit_code
