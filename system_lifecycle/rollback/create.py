"""Create restore points: timestamped tar.gz snapshots of system configuration."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..core import host
from ..core.archive import ArchiveError, create_archive
from ..core.logging_utils import EventLogger
from ..core.paths import get_restore_points_dir, safe_label, sanitize_path_label
from ..core.status import Status
from .metadata import write_metadata
from .types import (
    METADATA_FILENAME,
    SYSTEM_COMPONENTS,
    TIMESTAMP_FORMAT,
    CreateResult,
    RestorePoint,
    RollbackSettings,
)

_COMPONENT_LABELS = {
    "etc": "/etc",
    "apt-sources": "APT sources",
    "keyrings": "GPG keyrings",
}


def _allocate_directory(base: Path, restore_id: str) -> Tuple[str, Path]:
    """Create ``base/restore_id``, appending ``-1``, ``-2``... if it is taken."""

    base.mkdir(parents=True, exist_ok=True)
    candidate = base / restore_id
    suffix = 0
    while True:
        try:
            candidate.mkdir(exist_ok=False)
        except FileExistsError:
            suffix += 1
            candidate = base / f"{restore_id}-{suffix}"
            continue
        return candidate.name, candidate


def _archive_component(
    label: str,
    archive_path: Path,
    source: Path,
    *,
    system_root: Path,
    storage_root: Path,
    logger: EventLogger,
    warnings: List[str],
) -> Optional[Path]:
    logger.info(f"Backing up {label}...")
    try:
        report = create_archive(archive_path, [source], root=system_root, exclude=(storage_root,))
    except ArchiveError as exc:
        message = f"Failed to backup {label} (non-critical): {exc}"
        logger.warning(message)
        warnings.append(message)
        return None
    if report.skipped:
        message = f"Backed up {label}, skipping {len(report.skipped)} unreadable entries"
        logger.warning(message)
        warnings.append(message)
    else:
        logger.success(f"Backed up {label}")
    return archive_path


def create_restore_point(
    name: str,
    *,
    settings: RollbackSettings,
    logger: EventLogger,
    extra_dirs: Iterable[str | Path] = (),
    now: Callable[[], datetime] = datetime.now,
    hostname: Callable[[], str] = host.hostname,
    os_description: Callable[[], str] = host.os_description,
) -> CreateResult:
    """Snapshot ``/etc``, APT sources, keyrings and *extra_dirs* under a new restore point.

    Individual archive failures are logged as warnings and do not fail the
    restore point; only failing to create its directory does.
    """

    if not name or safe_label(name) != name:
        reason = f"Invalid restore point name '{name}': use letters, digits, '.', '_' or '-'"
        logger.error(reason)
        return CreateResult(status=Status.REJECTED, reason=reason)

    moment = now()
    timestamp = moment.strftime(TIMESTAMP_FORMAT)
    logger.info(f"Creating restore point: {name}")
    try:
        restore_id, directory = _allocate_directory(
            get_restore_points_dir(settings.root), f"{name}-{timestamp}"
        )
    except OSError as exc:
        reason = f"Failed to create restore point directory under {settings.root}: {exc}"
        logger.error(reason)
        return CreateResult(status=Status.FAILED, reason=reason)

    warnings: List[str] = []
    components: Dict[str, Path] = {}
    for key, (archive_name, relative) in SYSTEM_COMPONENTS.items():
        archived = _archive_component(
            _COMPONENT_LABELS[key],
            directory / archive_name,
            settings.system_root / relative,
            system_root=settings.system_root,
            storage_root=settings.root,
            logger=logger,
            warnings=warnings,
        )
        if archived is not None:
            components[key] = archived

    for extra in extra_dirs:
        extra_path = Path(extra)
        if not extra_path.is_dir():
            logger.info(f"Skipping {extra}: not a directory")
            continue
        key = sanitize_path_label(extra)
        archived = _archive_component(
            str(extra),
            directory / f"{key}.tar.gz",
            extra_path,
            system_root=settings.system_root,
            storage_root=settings.root,
            logger=logger,
            warnings=warnings,
        )
        if archived is not None:
            components[key] = archived

    metadata = {
        "name": name,
        "timestamp": timestamp,
        "created": moment.astimezone().isoformat(timespec="seconds"),
        "hostname": hostname(),
        "os": os_description(),
    }
    restore_point = RestorePoint(
        id=restore_id,
        name=name,
        timestamp=timestamp,
        path=directory,
        components=components,
        metadata=metadata,
    )
    try:
        write_metadata(directory / METADATA_FILENAME, metadata)
    except OSError as exc:
        reason = f"Failed to write restore point metadata: {exc}"
        logger.error(reason)
        return CreateResult(
            status=Status.PARTIAL_FAILURE,
            restore_point=restore_point,
            warnings=warnings,
            reason=reason,
        )

    logger.success(f"Restore point created: {directory}")
    return CreateResult(status=Status.SUCCESS, restore_point=restore_point, warnings=warnings)


__all__ = ["create_restore_point"]
