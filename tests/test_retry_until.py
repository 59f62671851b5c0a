import random

import pytest

from system_lifecycle.core.process import Command
from system_lifecycle.core.status import Status
from system_lifecycle.retry import PredicateError, PredicateRegistry, RetryCoordinator
from system_lifecycle.retry import conditions


class RecordingRunner:
    def __init__(self, code: int = 0) -> None:
        self.code = code
        self.calls = []

    def __call__(self, command: Command) -> int:
        self.calls.append(command.argv)
        return self.code


@pytest.fixture
def no_path_lookup(monkeypatch):
    lookups = []

    def fake_which(name, *args, **kwargs):
        lookups.append(name)
        return None

    monkeypatch.setattr(conditions.shutil, "which", fake_which)
    return lookups


def _coordinator(logger, sleeps, *, runner=None, probe_runner=None, registry=None):
    return RetryCoordinator(
        logger=logger,
        runner=runner or RecordingRunner(),
        probe_runner=probe_runner or RecordingRunner(),
        sleep=sleeps.append,
        rng=random.Random(0),
        registry=registry,
    )


@pytest.mark.parametrize(
    "condition",
    [
        "check;reboot",
        "check|tee",
        "check&",
        "$HOME",
        "`id`",
        "check()",
        "check<input",
        "check>output",
        'check"',
        "check'",
        "!check",
        "check ready",
        "check\tready",
        "check\nready",
    ],
)
def test_shell_like_conditions_are_rejected_without_invoking_anything(condition, logger, no_path_lookup):
    runner = RecordingRunner()
    probe_runner = RecordingRunner()
    sleeps = []
    coordinator = _coordinator(logger, sleeps, runner=runner, probe_runner=probe_runner)

    result = coordinator.retry_until(3, 1, condition, ["touch", "/tmp/flag"])

    assert result.status is Status.REJECTED
    assert result.attempts == 0
    assert runner.calls == []
    assert probe_runner.calls == []
    assert sleeps == []
    assert no_path_lookup == []


def test_unknown_condition_name_is_rejected(logger, no_path_lookup):
    runner = RecordingRunner()
    coordinator = _coordinator(logger, [], runner=runner)

    result = coordinator.retry_until(3, 1, "no_such_condition_here")

    assert result.status is Status.REJECTED
    assert "no_such_condition_here" in result.reason
    assert no_path_lookup == ["no_such_condition_here"]
    assert runner.calls == []


def test_registered_condition_runs_command_before_each_check(logger, no_path_lookup):
    checks = []

    def flag_set() -> bool:
        checks.append(len(runner.calls))
        return len(checks) == 3

    registry = PredicateRegistry()
    registry.register("flag_set", flag_set)
    runner = RecordingRunner(code=1)
    sleeps = []
    coordinator = _coordinator(logger, sleeps, runner=runner, registry=registry)

    result = coordinator.retry_until(5, 0.25, "flag_set", ["touch", "/tmp/flag"])

    assert result.ok
    assert result.attempts == 3
    assert checks == [1, 2, 3]
    assert sleeps == [0.25, 0.25]
    assert logger.messages("success") == ["Condition met on attempt 3"]
    assert logger.messages("info") == [
        "Waiting for condition (attempt 1/5)...",
        "Waiting for condition (attempt 2/5)...",
    ]


def test_callable_condition_is_used_directly(logger, no_path_lookup):
    sleeps = []
    coordinator = _coordinator(logger, sleeps)

    result = coordinator.retry_until(2, 1, lambda: True)

    assert result.ok
    assert result.attempts == 1
    assert sleeps == []
    assert no_path_lookup == []


def test_condition_never_met_exhausts_attempts(logger):
    sleeps = []
    coordinator = _coordinator(logger, sleeps)

    result = coordinator.retry_until(3, 2, lambda: False)

    assert result.status is Status.EXHAUSTED_RETRIES
    assert result.exit_code == 1
    assert sleeps == [2.0, 2.0]
    assert logger.messages("error") == ["Condition not met after 3 attempts"]


def test_executable_condition_runs_without_arguments(monkeypatch, logger):
    monkeypatch.setattr(conditions.shutil, "which", lambda name, *args, **kwargs: f"/usr/local/bin/{name}")
    probe_runner = RecordingRunner(code=0)
    coordinator = _coordinator(logger, [], probe_runner=probe_runner)

    result = coordinator.retry_until(3, 1, "check_ready")

    assert result.ok
    assert probe_runner.calls == [("/usr/local/bin/check_ready",)]


def test_registry_refuses_malformed_names():
    registry = PredicateRegistry()

    with pytest.raises(PredicateError):
        registry.register("bad name", lambda: True)

    registry.register("disk_mounted", lambda: True)
    assert "disk_mounted" in registry
    assert list(registry) == ["disk_mounted"]


def test_default_registry_probes_network_hosts():
    probe_runner = RecordingRunner(code=1)
    registry = conditions.default_registry(probe_runner)

    assert "network_available" in registry
    assert registry.get("network_available")() is False
    assert probe_runner.calls == [
        ("ping", "-c", "1", "-W", "2", "8.8.8.8"),
        ("ping", "-c", "1", "-W", "2", "1.1.1.1"),
    ]
