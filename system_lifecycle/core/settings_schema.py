from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Pattern


_ALLOWED_KEYS = frozenset(
    {
        "retry_max_attempts",
        "retry_initial_delay",
        "retry_max_delay",
        "retry_backoff_multiplier",
        "rollback_dir",
        "rollback_keep",
        "system_root",
        "log_dir",
        "quiet",
    }
)

_KEY_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


@dataclass(slots=True)
class SettingsValidator:
    allowed: frozenset
    key_pattern: Pattern[str]

    def is_valid_key(self, key: str) -> bool:
        return bool(self.key_pattern.match(key))

    def unknown_keys(self, payload: Mapping[str, object]) -> Iterable[str]:
        return sorted(key for key in payload if key not in self.allowed)


SETTINGS_VALIDATOR = SettingsValidator(_ALLOWED_KEYS, _KEY_PATTERN)

__all__ = ["SETTINGS_VALIDATOR", "SettingsValidator"]
