"""Public API for restore points and backups."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Union

from ..core import host
from ..core.logging_utils import EventLogger, get_logger
from ..core.process import CommandRunner, run_quiet
from .create import create_restore_point
from .files import backup_directory, backup_file
from .listing import iter_restore_points
from .restore import find_restore_point, restore_restore_point
from .retention import cleanup_restore_points
from .types import (
    BackupOutcome,
    CleanupSummary,
    CreateResult,
    RestorePointSummary,
    RestoreResult,
    RollbackSettings,
)


class RollbackService:
    """Coordinate restore point creation, listing, restore and cleanup."""

    def __init__(
        self,
        settings: Optional[Union[RollbackSettings, Mapping[str, Any]]] = None,
        *,
        logger: Optional[EventLogger] = None,
        runner: CommandRunner = run_quiet,
        now: Callable[[], datetime] = datetime.now,
        hostname: Callable[[], str] = host.hostname,
        os_description: Callable[[], str] = host.os_description,
    ) -> None:
        if settings is None:
            settings = RollbackSettings()
        elif not isinstance(settings, RollbackSettings):
            settings = RollbackSettings.from_mapping(settings)
        self._settings = settings
        self._logger = logger or get_logger("rollback")
        self._runner = runner
        self._now = now
        self._hostname = hostname
        self._os_description = os_description

    # ------------------------------------------------------------------
    @property
    def settings(self) -> RollbackSettings:
        return self._settings

    @property
    def root(self) -> Path:
        return self._settings.root

    # ------------------------------------------------------------------
    def create_restore_point(self, name: str, extra_dirs: Iterable[Union[str, Path]] = ()) -> CreateResult:
        return create_restore_point(
            name,
            settings=self._settings,
            logger=self._logger,
            extra_dirs=extra_dirs,
            now=self._now,
            hostname=self._hostname,
            os_description=self._os_description,
        )

    # ------------------------------------------------------------------
    def backup_file(self, path: Union[str, Path], label: Optional[str] = None) -> BackupOutcome:
        return backup_file(path, settings=self._settings, logger=self._logger, label=label, now=self._now)

    def backup_directory(self, path: Union[str, Path], label: Optional[str] = None) -> BackupOutcome:
        return backup_directory(path, settings=self._settings, logger=self._logger, label=label, now=self._now)

    # ------------------------------------------------------------------
    def list_restore_points(self) -> Iterator[RestorePointSummary]:
        return iter_restore_points(self._settings.root)

    def find(self, ref: Union[str, Path]) -> Optional[Path]:
        return find_restore_point(ref, self._settings.root)

    # ------------------------------------------------------------------
    def restore(self, ref: Union[str, Path], what: str = "all") -> RestoreResult:
        return restore_restore_point(
            ref,
            what,
            settings=self._settings,
            logger=self._logger,
            runner=self._runner,
        )

    # ------------------------------------------------------------------
    def cleanup(self, keep: Optional[int] = None) -> CleanupSummary:
        count = self._settings.keep if keep is None else keep
        return cleanup_restore_points(count, settings=self._settings, logger=self._logger)


__all__ = ["RollbackService"]
