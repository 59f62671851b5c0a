"""Single file and directory backups kept outside of restore points."""
from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..core.archive import ArchiveError, create_archive
from ..core.logging_utils import EventLogger
from ..core.paths import get_directory_backups_dir, get_file_backups_dir, safe_label, sanitize_path_label
from ..core.status import Status
from .types import TIMESTAMP_FORMAT, BackupOutcome, RollbackSettings


def _label(label: Optional[str], now: Callable[[], datetime]) -> str:
    return safe_label(label) if label else now().strftime(TIMESTAMP_FORMAT)


def backup_file(
    path: str | Path,
    *,
    settings: RollbackSettings,
    logger: EventLogger,
    label: Optional[str] = None,
    now: Callable[[], datetime] = datetime.now,
) -> BackupOutcome:
    """Copy *path* to ``files/<basename>.<label>.bak``; a missing file is not an error."""

    source = Path(path)
    if not source.is_file():
        logger.warning(f"File does not exist, nothing to backup: {source}")
        return BackupOutcome(status=Status.SUCCESS, source=source)

    target = get_file_backups_dir(settings.root) / f"{source.name}.{_label(label, now)}.bak"
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
    except OSError as exc:
        reason = f"Failed to backup file: {source}: {exc}"
        logger.error(reason)
        return BackupOutcome(status=Status.FAILED, source=source, reason=reason)
    logger.success(f"Backed up: {source} -> {target}")
    return BackupOutcome(status=Status.SUCCESS, source=source, backup_path=target)


def backup_directory(
    path: str | Path,
    *,
    settings: RollbackSettings,
    logger: EventLogger,
    label: Optional[str] = None,
    now: Callable[[], datetime] = datetime.now,
) -> BackupOutcome:
    """Archive *path* to ``directories/<sanitized path>.<label>.tar.gz``; a missing directory is not an error."""

    source = Path(path)
    if not source.is_dir():
        logger.warning(f"Directory does not exist, nothing to backup: {source}")
        return BackupOutcome(status=Status.SUCCESS, source=source)

    target = get_directory_backups_dir(settings.root) / f"{sanitize_path_label(path)}.{_label(label, now)}.tar.gz"
    try:
        report = create_archive(target, [source], root=settings.system_root, exclude=(settings.root,))
    except ArchiveError as exc:
        reason = f"Failed to backup directory: {source}: {exc}"
        logger.error(reason)
        return BackupOutcome(status=Status.FAILED, source=source, reason=reason)
    if report.skipped:
        logger.warning(f"Skipped {len(report.skipped)} unreadable entries under {source}")
    logger.success(f"Backed up: {source} -> {target}")
    return BackupOutcome(status=Status.SUCCESS, source=source, backup_path=target)


__all__ = ["backup_directory", "backup_file"]
