"""Shared plumbing: settings, paths, logging and external collaborators."""
from __future__ import annotations

from .logging_utils import LifecycleLogger, configure_logging, get_logger
from .process import CallableTask, Command, run_command
from .status import Status

__all__ = [
    "CallableTask",
    "Command",
    "LifecycleLogger",
    "Status",
    "configure_logging",
    "get_logger",
    "run_command",
]
