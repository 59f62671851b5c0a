"""Error hierarchy for rollback operations."""
from __future__ import annotations


class RollbackError(RuntimeError):
    """Base exception for rollback related failures."""


class RestorePointError(RollbackError):
    """Raised when a restore point cannot be created or read."""


__all__ = ["RestorePointError", "RollbackError"]
