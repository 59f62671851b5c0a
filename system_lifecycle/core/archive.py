"""tar.gz helpers used for restore points and directory backups."""
from __future__ import annotations

import os
import tarfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, List, Sequence


class ArchiveError(OSError):
    """Raised when an archive cannot be written or extracted."""


@dataclass(slots=True)
class ArchiveReport:
    path: Path
    members: int = 0
    skipped: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.skipped


def archive_name(source: Path, root: Path) -> str:
    """Return the member name for *source*: relative to *root*, never absolute."""

    source = Path(os.path.abspath(source))
    root = Path(os.path.abspath(root))
    try:
        relative = source.relative_to(root)
    except ValueError:
        return str(source).lstrip("/") or "."
    return relative.as_posix() or "."


def _add_tree(
    archive: tarfile.TarFile,
    source: Path,
    root: Path,
    report: ArchiveReport,
    excluded: FrozenSet[str],
) -> None:
    try:
        archive.add(str(source), arcname=archive_name(source, root), recursive=False)
    except OSError as exc:
        raise ArchiveError(f"cannot read {source}: {exc}") from exc
    report.members += 1
    if source.is_symlink() or not source.is_dir():
        return

    def _on_error(exc: OSError) -> None:
        report.skipped.append(str(exc.filename or exc))

    for dirpath, dirnames, filenames in os.walk(source, onerror=_on_error):
        current = Path(dirpath)
        dirnames[:] = [name for name in dirnames if os.path.abspath(current / name) not in excluded]
        names = [name for name in filenames if os.path.abspath(current / name) not in excluded]
        names += [name for name in dirnames if (current / name).is_symlink()]
        if current != source:
            try:
                archive.add(dirpath, arcname=archive_name(current, root), recursive=False)
                report.members += 1
            except OSError:
                report.skipped.append(dirpath)
                continue
        for name in sorted(names):
            entry = current / name
            try:
                archive.add(str(entry), arcname=archive_name(entry, root), recursive=False)
                report.members += 1
            except OSError:
                report.skipped.append(str(entry))


def create_archive(
    archive_path: Path,
    sources: Sequence[Path],
    *,
    root: Path = Path("/"),
    exclude: Iterable[Path] = (),
) -> ArchiveReport:
    """Write *sources* into a gzip-compressed tarball at *archive_path*.

    Unreadable entries below a source are skipped and listed in the report,
    the way ``tar`` warns and carries on. A source that is missing or cannot be
    read at all raises :class:`ArchiveError` and no archive is left behind.
    Paths in *exclude*, and the archive itself, are left out of the walk.
    """

    archive_path = Path(archive_path)
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    report = ArchiveReport(path=archive_path)
    excluded = frozenset(os.path.abspath(path) for path in (archive_path, *exclude))
    try:
        with tarfile.open(archive_path, "w:gz") as archive:
            for source in sources:
                source = Path(source)
                if not source.exists() and not source.is_symlink():
                    raise ArchiveError(f"{source} does not exist")
                if os.path.abspath(source) in excluded:
                    continue
                _add_tree(archive, source, root, report, excluded)
    except (ArchiveError, OSError, tarfile.TarError) as exc:
        archive_path.unlink(missing_ok=True)
        if isinstance(exc, ArchiveError):
            raise
        raise ArchiveError(f"failed to write {archive_path}: {exc}") from exc
    return report


def extract_archive(archive_path: Path, destination: Path) -> int:
    """Extract *archive_path* under *destination* and return the member count.

    Extraction uses the ``tar`` filter: absolute names and members that would
    land outside *destination* are refused.
    """

    archive_path = Path(archive_path)
    if not archive_path.is_file():
        raise ArchiveError(f"{archive_path} does not exist")
    if not hasattr(tarfile, "tar_filter"):
        raise ArchiveError(f"refusing to extract {archive_path}: this Python has no tarfile extraction filters")
    try:
        with tarfile.open(archive_path, "r:gz") as archive:
            members = archive.getmembers()
            archive.extractall(path=str(destination), members=members, filter="tar")
    except (OSError, tarfile.TarError) as exc:
        raise ArchiveError(f"failed to extract {archive_path}: {exc}") from exc
    return len(members)


__all__ = ["ArchiveError", "ArchiveReport", "archive_name", "create_archive", "extract_archive"]
