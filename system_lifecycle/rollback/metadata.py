"""Read and write the flat ``key=value`` metadata file of a restore point."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping

from .errors import RestorePointError

METADATA_KEYS = ("name", "timestamp", "created", "hostname", "os")


def write_metadata(path: Path, values: Mapping[str, str]) -> None:
    lines = []
    for key in METADATA_KEYS:
        value = str(values.get(key, "")).replace("\n", " ")
        lines.append(f"{key}={value}")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def read_metadata(path: Path) -> Dict[str, str]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise RestorePointError(f"Cannot read restore point metadata at {path}: {exc}") from exc
    values: Dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if sep and key.strip():
            values[key.strip()] = value
    return values


__all__ = ["METADATA_KEYS", "read_metadata", "write_metadata"]
