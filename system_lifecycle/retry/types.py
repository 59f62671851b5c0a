"""Retry policies, delay strategies and results."""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from ..core.settings import DEFAULT_SETTINGS, get_float, get_int
from ..core.status import Status

EXIT_FAILURE = 1


@dataclass(frozen=True, slots=True)
class FixedDelay:
    seconds: float

    def __post_init__(self) -> None:
        if self.seconds < 0:
            raise ValueError(f"delay must not be negative: {self.seconds}")

    def delay_for(self, failed_attempt: int, rng: Optional[random.Random] = None) -> float:
        return float(self.seconds)


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """``initial * multiplier ** (n - 1)`` after the n-th failure, capped at *maximum*."""

    initial: float = 1.0
    multiplier: float = 2.0
    maximum: float = 60.0

    def __post_init__(self) -> None:
        if self.initial < 0 or self.maximum < 0:
            raise ValueError("backoff delays must not be negative")
        if self.multiplier < 1:
            raise ValueError(f"backoff multiplier must be >= 1: {self.multiplier}")

    def delay_for(self, failed_attempt: int, rng: Optional[random.Random] = None) -> float:
        try:
            delay = self.initial * self.multiplier ** (failed_attempt - 1)
        except OverflowError:
            return float(self.maximum)
        return float(min(delay, self.maximum))


@dataclass(frozen=True, slots=True)
class JitterDelay:
    """``base`` plus a uniform random share of up to (but excluding) one more ``base``."""

    base: float

    def __post_init__(self) -> None:
        if self.base < 0:
            raise ValueError(f"base delay must not be negative: {self.base}")

    def delay_for(self, failed_attempt: int, rng: Optional[random.Random] = None) -> float:
        source = rng or random
        return float(self.base + source.random() * self.base)


DelayStrategy = Union[FixedDelay, ExponentialBackoff, JitterDelay]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_attempts: int
    strategy: DelayStrategy

    def __post_init__(self) -> None:
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise ValueError(f"max_attempts must be an integer: {self.max_attempts!r}")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1: {self.max_attempts}")


@dataclass(slots=True)
class RetrySettings:
    """Defaults for :meth:`RetryCoordinator.retry_with_backoff`."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> "RetrySettings":
        return cls(
            max_attempts=max(1, get_int(settings, "retry_max_attempts", DEFAULT_SETTINGS["retry_max_attempts"])),
            initial_delay=max(0.0, get_float(settings, "retry_initial_delay", DEFAULT_SETTINGS["retry_initial_delay"])),
            max_delay=max(0.0, get_float(settings, "retry_max_delay", DEFAULT_SETTINGS["retry_max_delay"])),
            multiplier=max(
                1.0, get_float(settings, "retry_backoff_multiplier", DEFAULT_SETTINGS["retry_backoff_multiplier"])
            ),
        )

    def backoff(self) -> ExponentialBackoff:
        return ExponentialBackoff(initial=self.initial_delay, multiplier=self.multiplier, maximum=self.max_delay)


@dataclass(slots=True)
class RetryResult:
    status: Status
    exit_code: int
    attempts: int
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def rejected(cls, reason: str) -> "RetryResult":
        return cls(status=Status.REJECTED, exit_code=EXIT_FAILURE, attempts=0, reason=reason)


__all__ = [
    "DelayStrategy",
    "EXIT_FAILURE",
    "ExponentialBackoff",
    "FixedDelay",
    "JitterDelay",
    "RetryPolicy",
    "RetryResult",
    "RetrySettings",
]
