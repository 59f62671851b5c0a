"""Run commands and poll conditions under bounded retry policies."""
from __future__ import annotations

import random
import time
from typing import Any, Callable, Mapping, Optional, Union

from ..core.logging_utils import EventLogger, get_logger
from ..core.process import CallableTask, CommandRunner, Runnable, as_task, run_command, run_quiet
from ..core.status import Status
from .conditions import (
    Predicate,
    PredicateRef,
    PredicateRegistry,
    default_registry,
    is_valid_service_name,
    resolve_predicate,
    service_active,
)
from .download import download_file
from .types import (
    EXIT_FAILURE,
    FixedDelay,
    JitterDelay,
    RetryPolicy,
    RetryResult,
    RetrySettings,
)

NETWORK_POLL_INTERVAL = 2


def _seconds(value: float) -> str:
    return f"{value:g}" if float(value).is_integer() else f"{value:.2f}"


def _exit_status(value: Union[int, bool, None]) -> int:
    """Map a task result to an exit status; ``None`` means the task completed."""

    if value is None:
        return 0
    if isinstance(value, bool):
        return 0 if value else EXIT_FAILURE
    if isinstance(value, int):
        return value
    raise TypeError(f"commands must return an integer exit status, got {type(value).__name__}")


class RetryCoordinator:
    """Execute commands or poll conditions until they succeed or attempts run out.

    Every operation returns a :class:`RetryResult`; exhausting the attempt
    budget is reported through ``Status.EXHAUSTED_RETRIES`` and the last exit
    status, never raised. Invalid arguments are refused with
    ``Status.REJECTED`` before anything is run.
    """

    def __init__(
        self,
        settings: Optional[Union[RetrySettings, Mapping[str, Any]]] = None,
        *,
        logger: Optional[EventLogger] = None,
        runner: CommandRunner = run_command,
        probe_runner: CommandRunner = run_quiet,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
        registry: Optional[PredicateRegistry] = None,
    ) -> None:
        if settings is None:
            settings = RetrySettings()
        elif not isinstance(settings, RetrySettings):
            settings = RetrySettings.from_mapping(settings)
        self._settings = settings
        self._logger = logger or get_logger("retry")
        self._runner = runner
        self._probe_runner = probe_runner
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._registry = registry or default_registry(probe_runner)

    # ------------------------------------------------------------------
    @property
    def settings(self) -> RetrySettings:
        return self._settings

    @property
    def registry(self) -> PredicateRegistry:
        return self._registry

    # ------------------------------------------------------------------
    def _reject(self, reason: str) -> RetryResult:
        self._logger.error(reason)
        return RetryResult.rejected(reason)

    def run(self, policy: RetryPolicy, command: Runnable) -> RetryResult:
        try:
            task, label = as_task(command, self._runner)
        except (TypeError, ValueError) as exc:
            return self._reject(str(exc))
        exit_code = EXIT_FAILURE
        for attempt in range(1, policy.max_attempts + 1):
            self._logger.info(f"Attempt {attempt}/{policy.max_attempts}: {label}")
            outcome = task()
            try:
                exit_code = _exit_status(outcome)
            except TypeError as exc:
                return self._reject(f"{label}: {exc}")
            if exit_code == 0:
                if attempt > 1:
                    self._logger.success(f"Command succeeded on attempt {attempt}")
                return RetryResult(status=Status.SUCCESS, exit_code=0, attempts=attempt)
            if attempt == policy.max_attempts:
                break
            delay = policy.strategy.delay_for(attempt, self._rng)
            self._logger.warning(
                f"Attempt {attempt} failed (exit code: {exit_code}), retrying in {_seconds(delay)}s..."
            )
            self._sleep(delay)
        self._logger.error(f"Command failed after {policy.max_attempts} attempts: {label}")
        return RetryResult(
            status=Status.EXHAUSTED_RETRIES,
            exit_code=exit_code,
            attempts=policy.max_attempts,
            reason=f"exit code {exit_code}",
        )

    def _poll(
        self,
        policy: RetryPolicy,
        predicate: Predicate,
        *,
        before: Optional[Callable[[], int]] = None,
        waiting: str,
        met: Callable[[int], str],
        exhausted: str,
    ) -> RetryResult:
        for attempt in range(1, policy.max_attempts + 1):
            if before is not None:
                before()
            if predicate():
                self._logger.success(met(attempt))
                return RetryResult(status=Status.SUCCESS, exit_code=0, attempts=attempt)
            if attempt == policy.max_attempts:
                break
            self._logger.info(f"{waiting} (attempt {attempt}/{policy.max_attempts})...")
            self._sleep(policy.strategy.delay_for(attempt, self._rng))
        self._logger.error(exhausted)
        return RetryResult(
            status=Status.EXHAUSTED_RETRIES,
            exit_code=EXIT_FAILURE,
            attempts=policy.max_attempts,
            reason=exhausted,
        )

    # ------------------------------------------------------------------
    def retry_with_backoff(self, max_attempts: int, command: Runnable) -> RetryResult:
        try:
            policy = RetryPolicy(max_attempts, self._settings.backoff())
        except ValueError as exc:
            return self._reject(str(exc))
        return self.run(policy, command)

    def retry_command(self, max_attempts: int, delay: float, command: Runnable) -> RetryResult:
        try:
            policy = RetryPolicy(max_attempts, FixedDelay(delay))
        except ValueError as exc:
            return self._reject(str(exc))
        return self.run(policy, command)

    def retry_with_jitter(self, max_attempts: int, base_delay: float, command: Runnable) -> RetryResult:
        try:
            policy = RetryPolicy(max_attempts, JitterDelay(base_delay))
        except ValueError as exc:
            return self._reject(str(exc))
        return self.run(policy, command)

    def retry_until(
        self,
        max_attempts: int,
        delay: float,
        condition: PredicateRef,
        command: Optional[Runnable] = None,
    ) -> RetryResult:
        """Run *command* (if any) then check *condition*, until it holds.

        The command's exit status is ignored. String conditions are validated
        and resolved before the first attempt.
        """

        try:
            predicate, _name = resolve_predicate(condition, registry=self._registry, runner=self._probe_runner)
            policy = RetryPolicy(max_attempts, FixedDelay(delay))
        except ValueError as exc:
            return self._reject(str(exc))
        before = None
        if command is not None:
            try:
                before = as_task(command, self._runner)[0]
            except (TypeError, ValueError) as exc:
                return self._reject(str(exc))
        return self._poll(
            policy,
            predicate,
            before=before,
            waiting="Waiting for condition",
            met=lambda attempt: f"Condition met on attempt {attempt}",
            exhausted=f"Condition not met after {policy.max_attempts} attempts",
        )

    def wait_for_network(self, max_wait: float = 30) -> RetryResult:
        self._logger.info("Waiting for network connectivity...")
        max_attempts = max(1, int(max_wait // NETWORK_POLL_INTERVAL))
        return self.retry_until(max_attempts, NETWORK_POLL_INTERVAL, "network_available")

    def wait_for_service(self, service_name: str, max_wait: float = 60, interval: float = 5) -> RetryResult:
        if not is_valid_service_name(service_name):
            return self._reject(f"Invalid service name '{service_name}'")
        if interval <= 0:
            return self._reject(f"Invalid poll interval {interval}: must be positive")
        max_attempts = max(1, int(max_wait // interval))
        policy = RetryPolicy(max_attempts, FixedDelay(interval))
        self._logger.info(f"Waiting for service '{service_name}' to become active...")
        return self._poll(
            policy,
            lambda: service_active(service_name, self._probe_runner),
            waiting="Waiting for service",
            met=lambda attempt: f"Service '{service_name}' is active",
            exhausted=f"Service '{service_name}' not available after {_seconds(max_wait)}s",
        )

    # ------------------------------------------------------------------
    def retry_apt_update(self, max_attempts: int = 3) -> RetryResult:
        return self.retry_with_backoff(max_attempts, ("apt-get", "update"))

    def retry_download(
        self,
        url: str,
        output,
        max_attempts: int = 3,
        *,
        session=None,
        timeout: float = 30.0,
    ) -> RetryResult:
        task = CallableTask(
            lambda: download_file(url, output, session=session, timeout=timeout, logger=self._logger),
            name=f"download {url} -> {output}",
        )
        return self.retry_with_backoff(max_attempts, task)


__all__ = ["NETWORK_POLL_INTERVAL", "RetryCoordinator"]
