from __future__ import annotations

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .logging_utils import EventLogger, get_logger
from .paths import DEFAULT_LOG_DIR, DEFAULT_ROLLBACK_DIR, get_config_search_paths
from .settings_schema import SETTINGS_VALIDATOR

__all__ = [
    "DEFAULT_SETTINGS",
    "ENVIRONMENT_OVERRIDES",
    "apply_environment",
    "create_default_config",
    "find_config_file",
    "get_bool",
    "get_float",
    "get_int",
    "load_settings",
    "merge_defaults",
    "parse_config_text",
    "save_settings",
]


DEFAULT_SETTINGS: Dict[str, Any] = {
    "retry_max_attempts": 3,
    "retry_initial_delay": 1,
    "retry_max_delay": 60,
    "retry_backoff_multiplier": 2,
    "rollback_dir": DEFAULT_ROLLBACK_DIR,
    "rollback_keep": 5,
    "system_root": "/",
    "log_dir": DEFAULT_LOG_DIR,
    "quiet": False,
}

ENVIRONMENT_OVERRIDES: Dict[str, str] = {
    "RETRY_MAX_ATTEMPTS": "retry_max_attempts",
    "RETRY_INITIAL_DELAY": "retry_initial_delay",
    "RETRY_MAX_DELAY": "retry_max_delay",
    "RETRY_BACKOFF_MULTIPLIER": "retry_backoff_multiplier",
    "ROLLBACK_DIR": "rollback_dir",
    "LOG_DIR": "log_dir",
    "QUIET": "quiet",
}

_LINE_PATTERN = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_]*)=(.*)$")
_QUOTED_PATTERN = re.compile(r"^([\"'])(.*)\1$")
_TRUE_VALUES = {"true", "yes", "1", "on"}
_FALSE_VALUES = {"false", "no", "0", "off"}

_DEFAULT_TEMPLATE = """\
# System Lifecycle Configuration File
#
# This file configures default behavior for system-lifecycle tools.
# Values can be overridden by environment variables and command-line arguments.
#
# Format: key=value or key="value with spaces"

# Retry behaviour
# retry_max_attempts=3
# retry_initial_delay=1
# retry_max_delay=60
# retry_backoff_multiplier=2

# Restore points and backups
# rollback_dir=/var/backups/system-lifecycle
# rollback_keep=5

# Logging
# log_dir=~/logs/system-lifecycle
# quiet=false
"""


def _logger(logger: Optional[EventLogger]) -> EventLogger:
    return logger or get_logger("settings")


def parse_config_text(text: str, *, logger: Optional[EventLogger] = None) -> Dict[str, str]:
    """Parse ``key=value`` lines; comments, blanks and malformed lines are skipped."""

    values: Dict[str, str] = {}
    for line_num, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        match = _LINE_PATTERN.match(line)
        if not match:
            _logger(logger).warning(f"Invalid config line {line_num}: {line}")
            continue
        key, value = match.group(1), match.group(2)
        quoted = _QUOTED_PATTERN.match(value)
        if quoted:
            value = quoted.group(2)
        values[key] = value
    return values


def merge_defaults(data: Mapping[str, Any]) -> Dict[str, Any]:
    result = dict(DEFAULT_SETTINGS)
    result.update(data or {})
    return result


def find_config_file(path: Optional[Path] = None) -> Optional[Path]:
    if path is not None:
        return Path(path) if Path(path).is_file() else None
    for candidate in get_config_search_paths():
        if candidate.is_file() and os.access(candidate, os.R_OK):
            return candidate
    return None


def load_settings(path: Optional[Path] = None, *, logger: Optional[EventLogger] = None) -> Dict[str, Any]:
    """Load settings from *path* or the default search paths.

    A missing config file is not an error; defaults are returned instead.
    """

    log = _logger(logger)
    config_file = find_config_file(path)
    data: Dict[str, str] = {}
    if config_file is not None:
        log.info(f"Loading configuration from: {config_file}")
        try:
            text = config_file.read_text(encoding="utf-8")
        except OSError as exc:
            log.warning(f"Could not read {config_file}: {exc}")
        else:
            data = parse_config_text(text, logger=log)
            log.success(f"Configuration loaded ({len(data)} values)")
    for key in SETTINGS_VALIDATOR.unknown_keys(data):
        log.warning(f"Unknown configuration key: {key}")
    return merge_defaults(data)


def apply_environment(
    settings: Mapping[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    env = os.environ if environ is None else environ
    result = dict(settings)
    for variable, key in ENVIRONMENT_OVERRIDES.items():
        value = env.get(variable)
        if value:
            result[key] = value
    return result


def get_bool(
    settings: Mapping[str, Any],
    key: str,
    default: bool = False,
    *,
    logger: Optional[EventLogger] = None,
) -> bool:
    value = settings.get(key, default)
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    _logger(logger).warning(f"Invalid boolean value for {key}: {value}, using default: {default}")
    return default


def get_int(
    settings: Mapping[str, Any],
    key: str,
    default: int = 0,
    *,
    logger: Optional[EventLogger] = None,
) -> int:
    value = settings.get(key, default)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        _logger(logger).warning(f"Invalid integer value for {key}: {value}, using default: {default}")
        return default


def get_float(
    settings: Mapping[str, Any],
    key: str,
    default: float = 0.0,
    *,
    logger: Optional[EventLogger] = None,
) -> float:
    value = settings.get(key, default)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        _logger(logger).warning(f"Invalid number for {key}: {value}, using default: {default}")
        return default


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    if re.search(r"\s", text):
        return f'"{text}"'
    return text


def save_settings(
    settings: Mapping[str, Any],
    path: Path,
    *,
    logger: Optional[EventLogger] = None,
) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [
        "# System Lifecycle Configuration",
        f"# Generated on {datetime.now().astimezone().isoformat(timespec='seconds')}",
        "",
    ]
    for key in sorted(settings):
        if not SETTINGS_VALIDATOR.is_valid_key(key):
            continue
        lines.append(f"{key}={_format_value(settings[key])}")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    _logger(logger).success(f"Configuration saved to: {path}")


def create_default_config(path: Path, *, logger: Optional[EventLogger] = None) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_DEFAULT_TEMPLATE, encoding="utf-8")
    _logger(logger).success(f"Default configuration created: {path}")
