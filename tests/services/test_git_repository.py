import subprocess

import pytest

import tagbump.services.command_runner as command_runner_module
from tagbump.errors import CommandError, TransportError
from tagbump.models import GitIdentity, SshSettings
from tagbump.services.command_runner import CommandRunner
from tagbump.services.git_repository import GitRepositoryService


class RecordingLogger:
    def __init__(self):
        self.warnings = []

    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, message, *args, **_kwargs):
        self.warnings.append(message % args)


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class FakeCommandRunner:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def run(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        if self.error:
            raise self.error
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


class FlakyPushSubprocess:
    def __init__(self, failures):
        self.failures = failures
        self.calls = 0

    def run(self, cmd, **_kwargs):
        self.calls += 1
        if self.calls <= self.failures:
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="fatal: the remote end hung up")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


def _service(runner, logger=None, **kwargs):
    return GitRepositoryService(
        command_runner=runner,
        logger=logger or RecordingLogger(),
        console=DummyConsole(),
        **kwargs,
    )


def test_clone_is_shallow_and_remote_is_registered():
    runner = FakeCommandRunner()
    service = _service(runner)

    service.clone("git@github.com:acme/charts.git", "/tmp/work")
    service.add_remote("/tmp/work", "upstream", "git@github.com:acme/charts.git")

    assert runner.calls[0][0] == ["git", "clone", "--depth", "1", "git@github.com:acme/charts.git", "/tmp/work"]
    assert runner.calls[1][0] == ["git", "remote", "add", "upstream", "git@github.com:acme/charts.git"]
    assert runner.calls[1][1]["cwd"] == "/tmp/work"


def test_clone_failure_is_a_transport_error():
    service = _service(FakeCommandRunner(error=CommandError("Permission denied (publickey)")))

    with pytest.raises(TransportError, match="Permission denied"):
        service.clone("git@github.com:acme/charts.git", "/tmp/work")


def test_ssh_settings_are_passed_through_environment():
    runner = FakeCommandRunner()
    settings = SshSettings(key_path="/run/ssh/id_deploy", known_hosts_path="/run/ssh/known_hosts")
    service = _service(runner, ssh_settings=settings)

    service.clone("git@github.com:acme/charts.git", "/tmp/work")

    env = runner.calls[0][1]["env"]
    assert "-i /run/ssh/id_deploy" in env["GIT_SSH_COMMAND"]
    assert env["GIT_TERMINAL_PROMPT"] == "0"


def test_publish_runs_branch_commit_and_push_in_order():
    runner = FakeCommandRunner()
    service = _service(runner)

    service.publish(
        "/tmp/work",
        remote="upstream",
        branch="update-prod-api-1.5.0",
        message="chore: updating prod-api with 1.5.0",
        identity=GitIdentity(name="Deploy Bot", email="bot@example.com"),
    )

    commands = [call[0] for call in runner.calls]
    assert commands == [
        ["git", "checkout", "-b", "update-prod-api-1.5.0"],
        ["git", "add", "."],
        [
            "git",
            "-c",
            "user.name=Deploy Bot",
            "-c",
            "user.email=bot@example.com",
            "commit",
            "-m",
            "chore: updating prod-api with 1.5.0",
        ],
        ["git", "push", "upstream", "update-prod-api-1.5.0"],
    ]
    assert runner.calls[3][1]["attempts"] == 3


def test_push_succeeds_on_third_attempt_with_two_warnings(monkeypatch):
    monkeypatch.setattr(command_runner_module.time, "sleep", lambda *_args: None)
    logger = RecordingLogger()
    transport = FlakyPushSubprocess(failures=2)
    runner = CommandRunner(logger=logger, subprocess_module=transport)
    service = _service(runner, logger=logger, push_retry_delay_seconds=0.0)

    service.push("/tmp/work", "upstream", "update-prod-api-1.5.0")

    assert transport.calls == 3
    assert len(logger.warnings) == 2
    assert "Attempt 2/3" in logger.warnings[1]
    assert "remote end hung up" in logger.warnings[0]


def test_push_fails_after_exactly_three_attempts(monkeypatch):
    monkeypatch.setattr(command_runner_module.time, "sleep", lambda *_args: None)
    logger = RecordingLogger()
    transport = FlakyPushSubprocess(failures=100)
    runner = CommandRunner(logger=logger, subprocess_module=transport)
    service = _service(runner, logger=logger, push_retry_delay_seconds=0.0)

    with pytest.raises(TransportError, match="after 3 attempts"):
        service.push("/tmp/work", "upstream", "update-prod-api-1.5.0")

    assert transport.calls == 3
