import pytest

from system_lifecycle.core.process import (
    EXIT_NOT_FOUND,
    EXIT_TIMEOUT,
    CallableTask,
    Command,
    as_task,
    run_quiet,
)


def test_command_requires_argv_sequence():
    with pytest.raises(TypeError):
        Command("apt-get update")
    with pytest.raises(ValueError):
        Command(())

    command = Command(["echo", "hello world"])
    assert command.argv == ("echo", "hello world")
    assert command.describe() == "echo 'hello world'"


def test_run_reports_exit_status():
    assert run_quiet(Command(("true",))) == 0
    assert run_quiet(Command(("false",))) == 1
    assert run_quiet(Command(("sh", "-c", "exit 3"))) == 3


def test_missing_executable_returns_127():
    assert run_quiet(Command(("definitely-not-installed-lifecycle-tool",))) == EXIT_NOT_FOUND


def test_timeout_returns_124():
    assert run_quiet(Command(("sleep", "5"), timeout=0.2)) == EXIT_TIMEOUT


def test_environment_is_merged(tmp_path):
    marker = tmp_path / "marker"
    command = Command(("sh", "-c", 'test "$LIFECYCLE_FLAG" = on && touch marker'), cwd=tmp_path, env={"LIFECYCLE_FLAG": "on"})

    assert run_quiet(command) == 0
    assert marker.exists()


def test_as_task_normalises_runnables():
    seen = []

    def runner(command):
        seen.append(command.argv)
        return 0

    task, label = as_task(["apt-get", "update"], runner)
    assert label == "apt-get update"
    assert task() == 0
    assert seen == [("apt-get", "update")]

    task, label = as_task(CallableTask(lambda: 5, name="probe"), runner)
    assert (task(), label) == (5, "probe")

    with pytest.raises(TypeError):
        as_task("apt-get update", runner)
