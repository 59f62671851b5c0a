from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional

__all__ = [
    "DEFAULT_LOG_DIR",
    "DEFAULT_ROLLBACK_DIR",
    "expand_path",
    "get_config_search_paths",
    "get_directory_backups_dir",
    "get_file_backups_dir",
    "get_restore_points_dir",
    "is_writable_dir",
    "resolve_log_dir",
    "resolve_rollback_root",
    "safe_label",
    "sanitize_path_label",
]

DEFAULT_ROLLBACK_DIR = "/var/backups/system-lifecycle"
DEFAULT_LOG_DIR = "~/logs/system-lifecycle"

_USER_CONFIG = "~/.config/system-lifecycle/config"
_SYSTEM_CONFIG = "/etc/system-lifecycle/config"


def expand_path(value: str | os.PathLike[str]) -> Path:
    expanded = os.path.expandvars(os.path.expanduser(str(value)))
    return Path(expanded)


def is_writable_dir(path: Path) -> bool:
    """Return True if *path* exists (or can be created) and accepts new files."""

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    test_file = path / f".write_test_{os.getpid()}"
    try:
        with open(test_file, "w", encoding="utf-8") as handle:
            handle.write("ok")
        test_file.unlink(missing_ok=True)
        return True
    except OSError:
        try:
            test_file.unlink(missing_ok=True)
        except OSError:  # pragma: no cover - cleanup of a file we could not write
            pass
        return False


def get_config_search_paths() -> list[Path]:
    """Return the search order for config files, most specific first."""

    return [expand_path(_USER_CONFIG), Path(_SYSTEM_CONFIG)]


def resolve_rollback_root(settings: Optional[Mapping[str, Any]] = None) -> Path:
    value = (settings or {}).get("rollback_dir") or DEFAULT_ROLLBACK_DIR
    return expand_path(value)


def resolve_log_dir(settings: Optional[Mapping[str, Any]] = None) -> Path:
    value = (settings or {}).get("log_dir") or DEFAULT_LOG_DIR
    return expand_path(value)


def get_restore_points_dir(root: Path) -> Path:
    return root / "restore-points"


def get_file_backups_dir(root: Path) -> Path:
    return root / "files"


def get_directory_backups_dir(root: Path) -> Path:
    return root / "directories"


def sanitize_path_label(path: str | os.PathLike[str]) -> str:
    """Flatten a directory path into a single file name component.

    ``/etc/ssh`` becomes ``_etc_ssh``; a trailing separator is dropped first.
    """

    text = str(path)
    if len(text) > 1:
        text = text.rstrip("/")
    return text.replace("/", "_")


_SAFE_LABEL_PATTERN = re.compile(r"[^A-Za-z0-9._-]+")


def safe_label(label: str) -> str:
    """Return a filesystem-safe label for restore point names and backup tags."""

    cleaned = _SAFE_LABEL_PATTERN.sub("_", label.strip()).strip(".")
    return cleaned or "restore-point"
