"""Outcome values shared by the retry and rollback components."""
from __future__ import annotations

from enum import Enum


class Status(str, Enum):
    SUCCESS = "SUCCESS"
    REJECTED = "REJECTED"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    EXHAUSTED_RETRIES = "EXHAUSTED_RETRIES"
    NOT_FOUND = "NOT_FOUND"
    FAILED = "FAILED"

    @property
    def ok(self) -> bool:
        return self is Status.SUCCESS

    @property
    def exit_code(self) -> int:
        return 0 if self is Status.SUCCESS else 1


__all__ = ["Status"]
