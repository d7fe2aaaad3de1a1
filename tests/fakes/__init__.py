"""In-memory fake implementations for testing.

Fakes implement the real protocol contracts (SpawnerPort, StylerPort) so
interface mismatches surface at test time, and they behave deterministically
without call-order dependencies.

Available fakes:
- FakeSpawner: Returns a canned SpawnResult, optionally after a delay
- HangingSpawner: Never finishes; records whether it was cancelled
- LingeringSpawner: Never finishes; winds down slowly once cancelled
- BracketStyler: Marks emphasized tokens with visible brackets

Usage:
    from tests.fakes import FakeSpawner

    async def test_something():
        spawner = FakeSpawner(SpawnResult("out", "", None))
        runner = CommandRunner(spawner=spawner)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from shellrun.core.protocols import SpawnResult, Termination


@dataclass
class FakeSpawner:
    """SpawnerPort returning a fixed result.

    Attributes:
        result: What every spawn() returns.
        delay: Seconds to sleep before returning.
        calls: (command, cwd) of every spawn() call, in order.
    """

    result: SpawnResult = field(default_factory=lambda: SpawnResult("", ""))
    delay: float = 0.0
    calls: list[tuple[str, Path]] = field(default_factory=list)

    async def spawn(self, command: str, cwd: Path) -> SpawnResult:
        self.calls.append((command, cwd))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.result

    @classmethod
    def exiting(cls, exit_code: int, stdout: str = "", stderr: str = "") -> FakeSpawner:
        termination = Termination(exit_code, "Command failed") if exit_code else None
        return cls(SpawnResult(stdout, stderr, termination))


@dataclass
class HangingSpawner:
    """SpawnerPort that never completes on its own."""

    started: bool = False
    cancelled: bool = False

    async def spawn(self, command: str, cwd: Path) -> SpawnResult:
        self.started = True
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        raise AssertionError("unreachable")


@dataclass
class LingeringSpawner:
    """SpawnerPort that takes `linger` seconds to wind down after cancellation.

    Stands in for a process that ignores SIGTERM until the grace period ends.
    """

    linger: float = 0.3
    terminated: bool = False

    async def spawn(self, command: str, cwd: Path) -> SpawnResult:
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            await asyncio.sleep(self.linger)
            self.terminated = True
            raise
        raise AssertionError("unreachable")


@dataclass
class FailingSpawner:
    """SpawnerPort whose spawn() raises an unexpected exception."""

    error: Exception

    async def spawn(self, command: str, cwd: Path) -> SpawnResult:
        raise self.error


class BracketStyler:
    """StylerPort that wraps tokens as <cmd:...>, <cwd:...>, <err:...>."""

    def command(self, text: str) -> str:
        return f"<cmd:{text}>"

    def cwd(self, text: str) -> str:
        return f"<cwd:{text}>"

    def error(self, text: str) -> str:
        return f"<err:{text}>"
