"""Retry coordination: backoff, fixed delay, jitter and condition polling."""
from __future__ import annotations

from .conditions import PredicateError, PredicateRegistry
from .engine import RetryCoordinator
from .types import ExponentialBackoff, FixedDelay, JitterDelay, RetryPolicy, RetryResult, RetrySettings

__all__ = [
    "ExponentialBackoff",
    "FixedDelay",
    "JitterDelay",
    "PredicateError",
    "PredicateRegistry",
    "RetryCoordinator",
    "RetryPolicy",
    "RetryResult",
    "RetrySettings",
]
