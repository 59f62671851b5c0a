from __future__ import annotations

import pytest

from system_lifecycle.core.logging_utils import configure_logging


class StubLogger:
    def __init__(self) -> None:
        self.events = []

    def info(self, message: str) -> None:  # pragma: no cover - simple recorder
        self.events.append(("info", message))

    def success(self, message: str) -> None:  # pragma: no cover - simple recorder
        self.events.append(("success", message))

    def warning(self, message: str) -> None:  # pragma: no cover - simple recorder
        self.events.append(("warning", message))

    def error(self, message: str) -> None:  # pragma: no cover - simple recorder
        self.events.append(("error", message))

    def messages(self, level: str):
        return [message for recorded, message in self.events if recorded == level]


@pytest.fixture
def logger() -> StubLogger:
    return StubLogger()


@pytest.fixture(autouse=True)
def _silence_package_logger():
    yield
    configure_logging(quiet=True)
