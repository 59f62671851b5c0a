import io
import os
import tarfile

import pytest

from system_lifecycle.core.archive import ArchiveError, archive_name, create_archive, extract_archive


def _tree(root):
    (root / "etc" / "ssh").mkdir(parents=True)
    (root / "etc" / "hostname").write_text("box\n", encoding="utf-8")
    (root / "etc" / "ssh" / "sshd_config").write_text("Port 22\n", encoding="utf-8")
    return root / "etc"


def test_archive_members_are_relative_to_root(tmp_path):
    system_root = tmp_path / "sys"
    source = _tree(system_root)
    archive_path = tmp_path / "out" / "etc.tar.gz"

    report = create_archive(archive_path, [source], root=system_root)

    assert report.complete
    with tarfile.open(archive_path, "r:gz") as archive:
        names = set(archive.getnames())
    assert names == {"etc", "etc/hostname", "etc/ssh", "etc/ssh/sshd_config"}
    assert report.members == 4


def test_archive_name_outside_root_drops_leading_slash(tmp_path):
    assert archive_name(tmp_path / "x", tmp_path / "elsewhere") == str(tmp_path / "x").lstrip("/")
    assert archive_name(tmp_path, tmp_path) == "."


def test_missing_source_raises_and_leaves_no_archive(tmp_path):
    archive_path = tmp_path / "missing.tar.gz"

    with pytest.raises(ArchiveError):
        create_archive(archive_path, [tmp_path / "nope"], root=tmp_path)

    assert not archive_path.exists()


@pytest.mark.skipif(os.geteuid() == 0, reason="root can read any file")
def test_unreadable_entries_are_skipped_and_reported(tmp_path):
    system_root = tmp_path / "sys"
    source = _tree(system_root)
    secret = source / "shadow"
    secret.write_text("root:*:1:0:99999:7:::\n", encoding="utf-8")
    secret.chmod(0)
    try:
        report = create_archive(tmp_path / "etc.tar.gz", [source], root=system_root)
    finally:
        secret.chmod(0o600)

    assert not report.complete
    assert str(secret) in report.skipped
    with tarfile.open(tmp_path / "etc.tar.gz", "r:gz") as archive:
        assert "etc/hostname" in archive.getnames()
        assert "etc/shadow" not in archive.getnames()


def test_extract_restores_tree(tmp_path):
    system_root = tmp_path / "sys"
    source = _tree(system_root)
    archive_path = tmp_path / "etc.tar.gz"
    create_archive(archive_path, [source], root=system_root)

    destination = tmp_path / "restored"
    destination.mkdir()
    count = extract_archive(archive_path, destination)

    assert count == 4
    assert (destination / "etc" / "ssh" / "sshd_config").read_text(encoding="utf-8") == "Port 22\n"


def test_extract_refuses_members_outside_destination(tmp_path):
    archive_path = tmp_path / "evil.tar.gz"
    payload = b"owned\n"
    with tarfile.open(archive_path, "w:gz") as archive:
        info = tarfile.TarInfo("../escaped.txt")
        info.size = len(payload)
        archive.addfile(info, io.BytesIO(payload))

    destination = tmp_path / "dest"
    destination.mkdir()
    with pytest.raises(ArchiveError):
        extract_archive(archive_path, destination)

    assert not (tmp_path / "escaped.txt").exists()


def test_extract_missing_or_corrupt_archive_raises(tmp_path):
    with pytest.raises(ArchiveError):
        extract_archive(tmp_path / "absent.tar.gz", tmp_path)

    corrupt = tmp_path / "corrupt.tar.gz"
    corrupt.write_bytes(b"not a tarball")
    with pytest.raises(ArchiveError):
        extract_archive(corrupt, tmp_path)


def test_extract_refuses_without_extraction_filters(tmp_path, monkeypatch):
    system_root = tmp_path / "sys"
    archive_path = tmp_path / "etc.tar.gz"
    create_archive(archive_path, [_tree(system_root)], root=system_root)
    monkeypatch.delattr(tarfile, "tar_filter")

    destination = tmp_path / "restored"
    destination.mkdir()
    with pytest.raises(ArchiveError, match="extraction filters"):
        extract_archive(archive_path, destination)

    assert list(destination.iterdir()) == []


def test_excluded_paths_and_the_archive_itself_are_not_walked(tmp_path):
    system_root = tmp_path / "sys"
    _tree(system_root)
    storage = system_root / "backups"
    storage.mkdir()
    (storage / "old.tar.gz").write_bytes(b"stale")
    archive_path = system_root / "out" / "all.tar.gz"

    report = create_archive(archive_path, [system_root], root=system_root, exclude=(storage,))

    assert report.complete
    with tarfile.open(archive_path, "r:gz") as archive:
        names = set(archive.getnames())
    assert "etc/hostname" in names
    assert "out" in names
    assert not any(name.startswith("backups") for name in names)
    assert "out/all.tar.gz" not in names


def test_excluded_source_is_skipped(tmp_path):
    system_root = tmp_path / "sys"
    source = _tree(system_root)
    archive_path = tmp_path / "etc.tar.gz"

    report = create_archive(archive_path, [source], root=system_root, exclude=(source,))

    assert report.members == 0
    with tarfile.open(archive_path, "r:gz") as archive:
        assert archive.getnames() == []
