"""Enumerate restore points on disk."""
from __future__ import annotations

from pathlib import Path
from typing import Iterator

from ..core.paths import get_restore_points_dir
from .errors import RestorePointError
from .metadata import read_metadata
from .types import METADATA_FILENAME, RestorePointSummary


def iter_restore_points(root: Path) -> Iterator[RestorePointSummary]:
    """Yield a summary for every restore point directory that has metadata.

    The directory is read afresh on each call, in name order.
    """

    base = get_restore_points_dir(root)
    if not base.is_dir():
        return
    for child in sorted(base.iterdir(), key=lambda item: item.name):
        metadata_path = child / METADATA_FILENAME
        if not child.is_dir() or not metadata_path.is_file():
            continue
        try:
            metadata = read_metadata(metadata_path)
        except RestorePointError:
            continue
        yield RestorePointSummary(
            id=child.name,
            name=metadata.get("name", ""),
            timestamp=metadata.get("timestamp", ""),
            path=child,
            created=metadata.get("created"),
            hostname=metadata.get("hostname"),
            os=metadata.get("os"),
            components=sorted(item.name[: -len(".tar.gz")] for item in child.glob("*.tar.gz")),
        )


__all__ = ["iter_restore_points"]
