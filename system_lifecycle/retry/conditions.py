"""Named conditions polled by :meth:`RetryCoordinator.retry_until`.

A condition is referenced either directly as a callable or by name. Names are
resolved through a :class:`PredicateRegistry`, falling back to an executable of
the same name on ``PATH`` that is run with no arguments. Names are never
handed to a shell: anything that is not a bare identifier is refused before
resolution.
"""
from __future__ import annotations

import re
import shutil
from typing import Callable, Dict, Iterator, Optional, Tuple, Union

from ..core.process import Command, CommandRunner, run_quiet

Predicate = Callable[[], bool]
PredicateRef = Union[str, Predicate]

NETWORK_PROBE_HOSTS = ("8.8.8.8", "1.1.1.1")

_FORBIDDEN_CHARS = re.compile(r"[\s;|&$`()<>\"'!]")
SERVICE_NAME_PATTERN = re.compile(r"[a-zA-Z0-9@._-]+")


class PredicateError(ValueError):
    """Raised when a condition reference is malformed or cannot be resolved."""


class PredicateRegistry:
    def __init__(self) -> None:
        self._predicates: Dict[str, Predicate] = {}

    def register(self, name: str, predicate: Predicate) -> None:
        validate_predicate_name(name)
        self._predicates[name] = predicate

    def get(self, name: str) -> Optional[Predicate]:
        return self._predicates.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._predicates

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._predicates))


def validate_predicate_name(name: str) -> None:
    if not name:
        raise PredicateError("Invalid condition '': must be a simple function or command name")
    if _FORBIDDEN_CHARS.search(name):
        raise PredicateError(
            f"Invalid condition '{name}': must be a simple function or command name; "
            "shell expressions are not allowed"
        )


def resolve_predicate(
    ref: PredicateRef,
    *,
    registry: PredicateRegistry,
    runner: CommandRunner = run_quiet,
) -> Tuple[Predicate, str]:
    """Return a callable for *ref* and a name to log it under."""

    if callable(ref):
        return ref, getattr(ref, "__name__", repr(ref))
    if not isinstance(ref, str):
        raise PredicateError(f"Condition must be a callable or a name, got {type(ref).__name__}")
    validate_predicate_name(ref)
    registered = registry.get(ref)
    if registered is not None:
        return registered, ref
    executable = shutil.which(ref)
    if executable is None:
        raise PredicateError(f"Condition '{ref}' is not a registered condition or a command")
    command = Command((executable,))
    return (lambda: runner(command) == 0), ref


def network_available(runner: CommandRunner = run_quiet, hosts: Tuple[str, ...] = NETWORK_PROBE_HOSTS) -> bool:
    """Send one ping with a two second timeout to each host until one answers."""

    for host in hosts:
        if runner(Command(("ping", "-c", "1", "-W", "2", host))) == 0:
            return True
    return False


def is_valid_service_name(name: str) -> bool:
    return bool(name) and SERVICE_NAME_PATTERN.fullmatch(name) is not None


def service_active(name: str, runner: CommandRunner = run_quiet) -> bool:
    if not is_valid_service_name(name):
        raise PredicateError(f"Invalid service name '{name}'")
    return runner(Command(("systemctl", "is-active", "--quiet", name))) == 0


def default_registry(runner: CommandRunner = run_quiet) -> PredicateRegistry:
    registry = PredicateRegistry()
    registry.register("network_available", lambda: network_available(runner))
    return registry


__all__ = [
    "NETWORK_PROBE_HOSTS",
    "Predicate",
    "PredicateError",
    "PredicateRef",
    "PredicateRegistry",
    "SERVICE_NAME_PATTERN",
    "default_registry",
    "is_valid_service_name",
    "network_available",
    "resolve_predicate",
    "service_active",
    "validate_predicate_name",
]
