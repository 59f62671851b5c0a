"""Tests for core.settings helpers."""

from __future__ import annotations

from pathlib import Path

from system_lifecycle.core import settings as settings_module
from system_lifecycle.core.settings import (
    DEFAULT_SETTINGS,
    apply_environment,
    create_default_config,
    get_bool,
    get_int,
    load_settings,
    merge_defaults,
    parse_config_text,
    save_settings,
)


def test_parse_config_text_handles_quotes_comments_and_bad_lines(logger) -> None:
    text = "\n".join(
        [
            "# retry settings",
            "",
            "retry_max_attempts=5",
            'rollback_dir="/srv/backups/with space"',
            "log_dir='/var/log/lifecycle'",
            "not a valid line",
            "   retry_max_delay=30   ",
        ]
    )

    values = parse_config_text(text, logger=logger)

    assert values == {
        "retry_max_attempts": "5",
        "rollback_dir": "/srv/backups/with space",
        "log_dir": "/var/log/lifecycle",
        "retry_max_delay": "30",
    }
    assert logger.messages("warning") == ["Invalid config line 6: not a valid line"]


def test_merge_defaults_keeps_documented_defaults() -> None:
    merged = merge_defaults({"rollback_keep": "9"})

    assert merged["rollback_keep"] == "9"
    assert merged["retry_max_attempts"] == 3
    assert merged["retry_initial_delay"] == 1
    assert merged["retry_max_delay"] == 60
    assert merged["retry_backoff_multiplier"] == 2
    assert merged["rollback_dir"] == "/var/backups/system-lifecycle"
    assert merged["quiet"] is False


def test_load_settings_reads_file_and_warns_on_unknown_keys(tmp_path: Path, logger) -> None:
    path = tmp_path / "config"
    path.write_text("retry_max_attempts=4\nmystery_option=1\n", encoding="utf-8")

    loaded = load_settings(path, logger=logger)

    assert loaded["retry_max_attempts"] == "4"
    assert loaded["rollback_keep"] == DEFAULT_SETTINGS["rollback_keep"]
    assert logger.messages("success") == ["Configuration loaded (2 values)"]
    assert logger.messages("warning") == ["Unknown configuration key: mystery_option"]


def test_load_settings_without_any_file_returns_defaults(tmp_path: Path, monkeypatch, logger) -> None:
    monkeypatch.setattr(settings_module, "get_config_search_paths", lambda: [tmp_path / "missing"])

    loaded = load_settings(logger=logger)

    assert loaded == DEFAULT_SETTINGS
    assert logger.events == []


def test_load_settings_uses_first_search_path_found(tmp_path: Path, monkeypatch, logger) -> None:
    user = tmp_path / "user" / "config"
    system = tmp_path / "system" / "config"
    system.parent.mkdir()
    system.write_text("rollback_keep=2\n", encoding="utf-8")
    monkeypatch.setattr(settings_module, "get_config_search_paths", lambda: [user, system])

    loaded = load_settings(logger=logger)

    assert loaded["rollback_keep"] == "2"
    assert logger.messages("info") == [f"Loading configuration from: {system}"]


def test_apply_environment_overrides_selected_keys() -> None:
    environ = {"RETRY_MAX_ATTEMPTS": "7", "ROLLBACK_DIR": "/tmp/rb", "LOG_DIR": "", "UNRELATED": "x"}

    result = apply_environment(merge_defaults({}), environ)

    assert result["retry_max_attempts"] == "7"
    assert result["rollback_dir"] == "/tmp/rb"
    assert result["log_dir"] == DEFAULT_SETTINGS["log_dir"]
    assert "UNRELATED" not in result


def test_typed_accessors_fall_back_on_bad_values(logger) -> None:
    values = {"retry_max_attempts": "many", "quiet": "maybe", "rollback_keep": " 4 "}

    assert get_int(values, "retry_max_attempts", 3, logger=logger) == 3
    assert get_int(values, "rollback_keep", 5, logger=logger) == 4
    assert get_bool(values, "quiet", False, logger=logger) is False
    assert get_bool({"quiet": "yes"}, "quiet") is True
    assert len(logger.messages("warning")) == 2


def test_save_settings_round_trips_through_load(tmp_path: Path, logger) -> None:
    path = tmp_path / "nested" / "config"

    save_settings(
        {"rollback_dir": "/srv/my backups", "quiet": True, "retry_max_attempts": 4},
        path,
        logger=logger,
    )
    loaded = load_settings(path, logger=logger)

    assert 'rollback_dir="/srv/my backups"' in path.read_text(encoding="utf-8")
    assert loaded["rollback_dir"] == "/srv/my backups"
    assert get_bool(loaded, "quiet") is True
    assert get_int(loaded, "retry_max_attempts") == 4


def test_default_config_template_is_all_comments(tmp_path: Path, logger) -> None:
    path = tmp_path / "config"

    create_default_config(path, logger=logger)
    loaded = load_settings(path, logger=logger)

    assert path.read_text(encoding="utf-8").startswith("# System Lifecycle Configuration File")
    assert loaded == DEFAULT_SETTINGS
