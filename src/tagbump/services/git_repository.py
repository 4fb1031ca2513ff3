"""Git operations: staging the chart repository and publishing the update branch."""

from typing import Dict, List, Optional

from tagbump.constants import PUSH_ATTEMPTS, PUSH_RETRY_DELAY_SECONDS
from tagbump.errors import CommandError, TransportError
from tagbump.errors_catalog import actionable_error
from tagbump.models import GitIdentity, SshSettings, redact_url_credentials


class GitRepositoryService:
    """Drives the ``git`` executable for one working copy.

    SSH settings and the commit identity are passed per command, so no global
    git or SSH configuration is read or written.
    """

    def __init__(
        self,
        command_runner,
        logger,
        console,
        ssh_settings: Optional[SshSettings] = None,
        push_attempts: int = PUSH_ATTEMPTS,
        push_retry_delay_seconds: float = PUSH_RETRY_DELAY_SECONDS,
    ):
        self.command_runner = command_runner
        self.logger = logger
        self.console = console
        self.ssh_settings = ssh_settings
        self.push_attempts = push_attempts
        self.push_retry_delay_seconds = push_retry_delay_seconds

    def _env(self) -> Dict[str, str]:
        env = {"GIT_TERMINAL_PROMPT": "0"}
        if self.ssh_settings:
            env["GIT_SSH_COMMAND"] = self.ssh_settings.git_ssh_command()
        return env

    def _git(self, args: List[str], workdir: Optional[str] = None, **kwargs):
        return self.command_runner.run(["git"] + args, cwd=workdir, env=self._env(), **kwargs)

    def clone(self, repo_url: str, workdir: str):
        self.console.print(f"[blue]Checking out {redact_url_credentials(repo_url)}...[/blue]")
        try:
            self._git(["clone", "--depth", "1", repo_url, workdir])
        except CommandError as exc:
            raise TransportError(
                actionable_error("clone_failed", repo=redact_url_credentials(repo_url), error=exc)
            ) from exc

    def add_remote(self, workdir: str, name: str, repo_url: str):
        self._git(["remote", "add", name, repo_url], workdir=workdir)
        self.logger.debug("Registered remote %s -> %s", name, redact_url_credentials(repo_url))

    def create_branch(self, workdir: str, branch: str):
        self._git(["checkout", "-b", branch], workdir=workdir)

    def stage_all(self, workdir: str):
        self._git(["add", "."], workdir=workdir)

    def commit(self, workdir: str, message: str, identity: GitIdentity):
        self._git(
            [
                "-c",
                f"user.name={identity.name}",
                "-c",
                f"user.email={identity.email}",
                "commit",
                "-m",
                message,
            ],
            workdir=workdir,
        )
        self.logger.info("Committed: %s", message)

    def push(self, workdir: str, remote: str, branch: str):
        try:
            self._git(
                ["push", remote, branch],
                workdir=workdir,
                attempts=self.push_attempts,
                retry_delay_seconds=self.push_retry_delay_seconds,
            )
        except CommandError as exc:
            raise TransportError(
                actionable_error(
                    "push_failed",
                    branch=branch,
                    attempts=self.push_attempts,
                    error=exc,
                )
            ) from exc
        self.console.print(f"[green]Pushed branch {branch} to {remote}.[/green]")

    def publish(self, workdir: str, remote: str, branch: str, message: str, identity: GitIdentity):
        self.create_branch(workdir, branch)
        self.stage_all(workdir)
        self.commit(workdir, message, identity)
        self.push(workdir, remote, branch)
