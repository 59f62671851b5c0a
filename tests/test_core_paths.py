from pathlib import Path

from system_lifecycle.core.paths import (
    get_directory_backups_dir,
    get_file_backups_dir,
    get_restore_points_dir,
    is_writable_dir,
    resolve_log_dir,
    resolve_rollback_root,
    safe_label,
    sanitize_path_label,
)


def test_resolve_rollback_root_defaults_and_overrides(tmp_path):
    assert resolve_rollback_root({}) == Path("/var/backups/system-lifecycle")
    assert resolve_rollback_root({"rollback_dir": str(tmp_path)}) == tmp_path


def test_resolve_log_dir_expands_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))

    assert resolve_log_dir({}) == tmp_path / "logs" / "system-lifecycle"
    assert resolve_log_dir({"log_dir": "~/custom"}) == tmp_path / "custom"


def test_storage_layout(tmp_path):
    assert get_restore_points_dir(tmp_path) == tmp_path / "restore-points"
    assert get_file_backups_dir(tmp_path) == tmp_path / "files"
    assert get_directory_backups_dir(tmp_path) == tmp_path / "directories"


def test_sanitize_path_label_flattens_separators():
    assert sanitize_path_label("/etc/ssh") == "_etc_ssh"
    assert sanitize_path_label("/etc/ssh/") == "_etc_ssh"
    assert sanitize_path_label("relative/dir") == "relative_dir"


def test_safe_label_replaces_unsafe_characters():
    assert safe_label("pre-change") == "pre-change"
    assert safe_label("before upgrade") == "before_upgrade"
    assert safe_label("../../etc") == "_.._etc"
    assert safe_label("...") == "restore-point"


def test_is_writable_dir_creates_missing_directory(tmp_path):
    target = tmp_path / "a" / "b"

    assert is_writable_dir(target)
    assert target.is_dir()
    assert list(target.iterdir()) == []
