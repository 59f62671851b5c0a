"""Run external commands from argv, never through a shell."""
from __future__ import annotations

import os
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

EXIT_TIMEOUT = 124
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


@dataclass(frozen=True, slots=True)
class Command:
    """An argv-style command with an optional working directory and environment."""

    argv: Tuple[str, ...]
    cwd: Optional[Path] = None
    env: Mapping[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if isinstance(self.argv, (str, bytes)):
            raise TypeError("Command argv must be a sequence of arguments, not a string")
        argv = tuple(str(part) for part in self.argv)
        if not argv:
            raise ValueError("Command argv must not be empty")
        object.__setattr__(self, "argv", argv)

    def describe(self) -> str:
        return shlex.join(self.argv)


@dataclass(frozen=True, slots=True)
class CallableTask:
    """A Python callable used in place of an external command."""

    func: Callable[[], int]
    name: str = ""

    def describe(self) -> str:
        return self.name or getattr(self.func, "__name__", repr(self.func))


CommandRunner = Callable[[Command], int]
Runnable = Union[Command, CallableTask, Sequence[str], Callable[[], int]]


def _run(command: Command, *, quiet: bool) -> int:
    env: Optional[Dict[str, str]] = None
    if command.env:
        env = dict(os.environ)
        env.update(command.env)
    output = subprocess.DEVNULL if quiet else None
    try:
        completed = subprocess.run(
            list(command.argv),
            cwd=str(command.cwd) if command.cwd else None,
            env=env,
            stdout=output,
            stderr=output,
            timeout=command.timeout,
            check=False,
        )
    except FileNotFoundError:
        return EXIT_NOT_FOUND
    except PermissionError:
        return EXIT_NOT_EXECUTABLE
    except subprocess.TimeoutExpired:
        return EXIT_TIMEOUT
    return completed.returncode


def run_command(command: Command) -> int:
    """Run *command* to completion and return its exit status.

    A missing executable returns 127 and a non-executable one 126, matching
    shell conventions. When ``command.timeout`` is set, an attempt that runs
    longer is killed and reported as 124.
    """

    return _run(command, quiet=False)


def run_quiet(command: Command) -> int:
    """Like :func:`run_command` but discards the command's output."""

    return _run(command, quiet=True)


def as_task(runnable: Runnable, runner: CommandRunner) -> Tuple[Callable[[], int], str]:
    """Normalise *runnable* into a zero-argument callable and a display string."""

    if isinstance(runnable, Command):
        return (lambda: runner(runnable)), runnable.describe()
    if isinstance(runnable, CallableTask):
        return runnable.func, runnable.describe()
    if isinstance(runnable, (str, bytes)):
        raise TypeError("Pass commands as an argv sequence; strings are not shell-parsed")
    if callable(runnable):
        task = CallableTask(runnable)
        return task.func, task.describe()
    command = Command(tuple(runnable))
    return (lambda: runner(command)), command.describe()


__all__ = [
    "CallableTask",
    "Command",
    "CommandRunner",
    "EXIT_NOT_EXECUTABLE",
    "EXIT_NOT_FOUND",
    "EXIT_TIMEOUT",
    "Runnable",
    "as_task",
    "run_command",
    "run_quiet",
]
