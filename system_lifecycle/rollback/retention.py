"""Prune old restore points, keeping the most recently modified ones."""
from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..core.logging_utils import EventLogger
from ..core.paths import get_restore_points_dir
from .types import CleanupSummary, RollbackSettings


@dataclass(slots=True)
class _RestorePointDir:
    path: Path
    mtime: float


def _load_restore_points(base: Path) -> List[_RestorePointDir]:
    items: List[_RestorePointDir] = []
    if not base.is_dir():
        return items
    for child in base.iterdir():
        if not child.is_dir() or child.is_symlink():
            continue
        try:
            mtime = child.stat().st_mtime
        except OSError:
            continue
        items.append(_RestorePointDir(path=child, mtime=mtime))
    items.sort(key=lambda item: (item.mtime, item.path.name), reverse=True)
    return items


def cleanup_restore_points(keep: int, *, settings: RollbackSettings, logger: EventLogger) -> CleanupSummary:
    base = get_restore_points_dir(settings.root)
    if not base.is_dir():
        return CleanupSummary(removed=[], kept=[])
    items = _load_restore_points(base)

    keep = max(keep, 0)
    logger.info(f"Cleaning up old restore points (keeping {keep} most recent)...")
    removed: List[str] = []
    for item in items[keep:]:
        logger.info(f"Removing old restore point: {item.path}")
        shutil.rmtree(item.path, ignore_errors=True)
        removed.append(item.path.name)

    kept = [item.path.name for item in items[:keep]]
    logger.success("Cleanup completed")
    return CleanupSummary(removed=removed, kept=kept)


__all__ = ["cleanup_restore_points"]
