"""Restore system configuration from a restore point, one component at a time."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..core.archive import ArchiveError, extract_archive
from ..core.logging_utils import EventLogger
from ..core.paths import get_restore_points_dir
from ..core.process import Command, CommandRunner, run_quiet
from ..core.status import Status
from .types import (
    RESTORE_TARGETS,
    SYSTEM_COMPONENTS,
    ComponentResult,
    ComponentState,
    RestoreResult,
    RollbackSettings,
)

# restore target -> (component key, label)
_COMPONENTS: Dict[str, Tuple[str, str]] = {
    "etc": ("etc", "/etc"),
    "apt": ("apt-sources", "APT sources"),
    "keyrings": ("keyrings", "GPG keyrings"),
}

APT_REFRESH = Command(("apt-get", "update"))

# <name>-YYYYMMDD-HHMMSS[-N]
_ID_PATTERN = re.compile(r"^.*-(?P<timestamp>\d{8}-\d{6})(?:-(?P<suffix>\d+))?$")


def find_restore_point(ref: str | Path, root: Path) -> Optional[Path]:
    """Resolve *ref* as an existing directory, else as a name prefix under *root*.

    For a prefix, the newest match wins: latest timestamp, then highest
    collision suffix.
    """

    text = str(ref)
    if not text:
        return None
    direct = Path(text)
    if direct.is_dir():
        return direct
    base = get_restore_points_dir(root)
    if not base.is_dir():
        return None
    matches = sorted(
        (child for child in base.iterdir() if child.is_dir() and child.name.startswith(text)),
        key=_recency_key,
        reverse=True,
    )
    return matches[0] if matches else None


def _recency_key(directory: Path) -> Tuple[str, int, str]:
    match = _ID_PATTERN.match(directory.name)
    if match is None:
        return ("", 0, directory.name)
    return (match.group("timestamp"), int(match.group("suffix") or 0), directory.name)


def _restore_component(
    target: str,
    directory: Path,
    *,
    settings: RollbackSettings,
    logger: EventLogger,
    runner: CommandRunner,
) -> ComponentResult:
    key, label = _COMPONENTS[target]
    archive = directory / SYSTEM_COMPONENTS[key][0]
    if not archive.is_file():
        logger.warning(f"No {label} backup found in restore point")
        return ComponentResult(component=target, state=ComponentState.MISSING, archive=archive)

    logger.info(f"Restoring {label}...")
    try:
        extract_archive(archive, settings.system_root)
    except ArchiveError as exc:
        logger.error(f"Failed to restore {label}: {exc}")
        return ComponentResult(component=target, state=ComponentState.FAILED, archive=archive, detail=str(exc))
    logger.success(f"Restored {label}")

    if target == "apt":
        code = runner(APT_REFRESH)
        if code != 0:
            logger.warning(f"Package index refresh failed (exit code: {code})")
    return ComponentResult(component=target, state=ComponentState.RESTORED, archive=archive)


def restore_restore_point(
    ref: str | Path,
    target: str = "all",
    *,
    settings: RollbackSettings,
    logger: EventLogger,
    runner: CommandRunner = run_quiet,
) -> RestoreResult:
    """Extract the archives of a restore point back onto the system root.

    Components are restored independently: a missing archive is a warning and
    a failed extraction does not stop, or undo, the others. Directories given
    as ``extra_dirs`` at creation time are not part of any target.
    """

    if target not in RESTORE_TARGETS:
        reason = f"Unknown restore target: {target}"
        logger.error(reason)
        return RestoreResult(status=Status.REJECTED, target=target, reason=reason)

    directory = find_restore_point(ref, settings.root)
    if directory is None:
        reason = f"Restore point not found: {ref}"
        logger.error(reason)
        return RestoreResult(status=Status.NOT_FOUND, target=target, reason=reason)

    logger.warning(f"Restoring from: {directory}")
    logger.warning("This will overwrite current system configuration!")

    selected = ("etc", "apt", "keyrings") if target == "all" else (target,)
    components: List[ComponentResult] = [
        _restore_component(item, directory, settings=settings, logger=logger, runner=runner)
        for item in selected
    ]

    result = RestoreResult(status=Status.SUCCESS, target=target, restore_point=directory, components=components)
    if result.failed:
        result.status = Status.PARTIAL_FAILURE
        result.reason = f"failed components: {', '.join(result.failed)}"
        logger.warning(f"Restore completed with errors from: {directory} ({result.reason})")
    else:
        logger.success(f"Restore completed from: {directory}")
    return result


__all__ = ["APT_REFRESH", "find_restore_point", "restore_restore_point"]
