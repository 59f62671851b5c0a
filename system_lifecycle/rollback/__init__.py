"""Restore points and single-path backups for system configuration."""
from __future__ import annotations

from .api import RollbackService
from .errors import RestorePointError, RollbackError
from .types import (
    BackupOutcome,
    CleanupSummary,
    ComponentState,
    CreateResult,
    RestorePoint,
    RestorePointSummary,
    RestoreResult,
    RollbackSettings,
)

__all__ = [
    "BackupOutcome",
    "CleanupSummary",
    "ComponentState",
    "CreateResult",
    "RestorePoint",
    "RestorePointError",
    "RestorePointSummary",
    "RestoreResult",
    "RollbackError",
    "RollbackService",
    "RollbackSettings",
]
