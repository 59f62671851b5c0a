"""Common dataclasses shared across rollback modules."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..core.paths import resolve_rollback_root
from ..core.settings import DEFAULT_SETTINGS, get_int
from ..core.status import Status

METADATA_FILENAME = "metadata"
TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

# component key -> (archive file name, path relative to the system root)
SYSTEM_COMPONENTS: Dict[str, tuple[str, str]] = {
    "etc": ("etc.tar.gz", "etc"),
    "apt-sources": ("apt-sources.tar.gz", "etc/apt/sources.list.d"),
    "keyrings": ("keyrings.tar.gz", "usr/share/keyrings"),
}

RESTORE_TARGETS = ("all", "etc", "apt", "keyrings")


@dataclass(slots=True)
class RollbackSettings:
    """Where restore points live and which filesystem they capture."""

    root: Path = Path("/var/backups/system-lifecycle")
    system_root: Path = Path("/")
    keep: int = 5

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> "RollbackSettings":
        return cls(
            root=resolve_rollback_root(settings),
            system_root=Path(str(settings.get("system_root") or "/")),
            keep=max(0, get_int(settings, "rollback_keep", DEFAULT_SETTINGS["rollback_keep"])),
        )


@dataclass(slots=True)
class RestorePoint:
    id: str
    name: str
    timestamp: str
    path: Path
    components: Dict[str, Path] = field(default_factory=dict)
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class RestorePointSummary:
    id: str
    name: str
    timestamp: str
    path: Path
    created: Optional[str] = None
    hostname: Optional[str] = None
    os: Optional[str] = None
    components: List[str] = field(default_factory=list)


@dataclass(slots=True)
class CreateResult:
    status: Status
    restore_point: Optional[RestorePoint] = None
    warnings: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def path(self) -> Optional[Path]:
        return self.restore_point.path if self.restore_point else None

    @property
    def exit_code(self) -> int:
        return self.status.exit_code


@dataclass(slots=True)
class BackupOutcome:
    status: Status
    source: Path
    backup_path: Optional[Path] = None
    reason: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return self.status.exit_code


class ComponentState(str, Enum):
    RESTORED = "restored"
    MISSING = "missing"
    FAILED = "failed"


@dataclass(slots=True)
class ComponentResult:
    component: str
    state: ComponentState
    archive: Path
    detail: Optional[str] = None


@dataclass(slots=True)
class RestoreResult:
    status: Status
    target: str
    restore_point: Optional[Path] = None
    components: List[ComponentResult] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    @property
    def failed(self) -> List[str]:
        return [item.component for item in self.components if item.state is ComponentState.FAILED]


@dataclass(slots=True)
class CleanupSummary:
    removed: List[str]
    kept: List[str]


__all__ = [
    "BackupOutcome",
    "CleanupSummary",
    "ComponentResult",
    "ComponentState",
    "CreateResult",
    "METADATA_FILENAME",
    "RESTORE_TARGETS",
    "RestorePoint",
    "RestorePointSummary",
    "RestoreResult",
    "RollbackSettings",
    "SYSTEM_COMPONENTS",
    "TIMESTAMP_FORMAT",
]
