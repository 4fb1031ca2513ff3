import logging
import os
import uuid
from typing import Any, Dict, Optional

from rich.console import Console

from .constants import (
    DEFAULT_API_URL,
    DEFAULT_BASE_BRANCH,
    DEFAULT_GIT_USER_EMAIL,
    DEFAULT_GIT_USER_NAME,
    DEFAULT_REMOTE_NAME,
    DEFAULT_SSH_HOST,
    MERGE_ATTEMPTS,
    MERGE_RETRY_DELAY_SECONDS,
    PUSH_ATTEMPTS,
    PUSH_RETRY_DELAY_SECONDS,
)
from .errors import MergeTimeoutError, PullRequestError, UpdaterError
from .errors_catalog import actionable_error
from .models import (
    Conflict,
    Failure,
    GitIdentity,
    InvocationParameters,
    Success,
    redact_url_credentials,
    unexpected_result,
)
from .services.command_runner import CommandRunner
from .services.credentials import CredentialService
from .services.filesystem import FileSystemService
from .services.git_repository import GitRepositoryService
from .services.github_api import GitHubApiService
from .services.labels import LabelService, deployment_labels
from .services.pull_request import PullRequestService
from .services.report import RunReportService
from .services.values_file import ValuesFileService

console = Console()
logger = logging.getLogger("tagbump")


class TagUpdater:
    """Updates ``image.tag`` in a chart repository and merges the change through a pull request."""

    def __init__(
        self,
        parameters: InvocationParameters,
        api_url: str = DEFAULT_API_URL,
        base_branch: str = DEFAULT_BASE_BRANCH,
        remote_name: str = DEFAULT_REMOTE_NAME,
        ssh_host: str = DEFAULT_SSH_HOST,
        git_identity: Optional[GitIdentity] = None,
        push_attempts: int = PUSH_ATTEMPTS,
        push_retry_delay_seconds: float = PUSH_RETRY_DELAY_SECONDS,
        merge_attempts: int = MERGE_ATTEMPTS,
        merge_retry_delay_seconds: float = MERGE_RETRY_DELAY_SECONDS,
        dry_run: bool = False,
        report_file: Optional[str] = None,
        outputs_file: Optional[str] = None,
    ):
        self.parameters = parameters
        self.repo_name = parameters.repo_name
        self.branch_name = parameters.branch_name
        self.base_branch = base_branch
        self.remote_name = remote_name
        self.ssh_host = ssh_host
        self.git_identity = git_identity or GitIdentity(
            name=DEFAULT_GIT_USER_NAME,
            email=DEFAULT_GIT_USER_EMAIL,
        )
        self.dry_run = dry_run
        self.run_id = uuid.uuid4().hex[:10]

        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.command_runner = CommandRunner(logger=logger)
        self.credential_service = CredentialService(
            command_runner=self.command_runner,
            filesystem_service=self.filesystem_service,
            logger=logger,
        )
        self.git_service = GitRepositoryService(
            command_runner=self.command_runner,
            logger=logger,
            console=console,
            push_attempts=push_attempts,
            push_retry_delay_seconds=push_retry_delay_seconds,
        )
        self.values_service = ValuesFileService(
            filesystem_service=self.filesystem_service,
            logger=logger,
        )
        self.api = GitHubApiService(token=parameters.token, logger=logger, api_url=api_url)
        self.label_service = LabelService(api=self.api, logger=logger)
        self.pull_request_service = PullRequestService(
            api=self.api,
            logger=logger,
            console=console,
            merge_attempts=merge_attempts,
            merge_retry_delay_seconds=merge_retry_delay_seconds,
        )
        self.report_service = RunReportService(
            logger=logger,
            report_file=report_file,
            outputs_file=outputs_file,
        )

    def _build_report_metadata(self) -> Dict[str, Any]:
        return {
            "filename": self.parameters.filename,
            "tag": self.parameters.tag,
            "service": self.parameters.service,
            "environment": self.parameters.environment,
            "repo": redact_url_credentials(self.parameters.repo),
            "org": self.parameters.org,
            "branch": self.branch_name,
            "base_branch": self.base_branch,
            "dry_run": self.dry_run,
        }

    def _run_step(self, name: str, callback, *args, **kwargs):
        self.report_service.step_started(name)
        try:
            result = callback(*args, **kwargs)
        except KeyboardInterrupt:
            self.report_service.step_finished(name, "aborted", error="Operation cancelled by user.")
            raise
        except Exception as exc:
            self.report_service.step_finished(name, "failed", error=str(exc))
            raise
        self.report_service.step_finished(name, "success")
        return result

    def provision_credentials(self, run_dir: str):
        settings = self.credential_service.provision(
            self.parameters.key,
            ssh_dir=os.path.join(run_dir, "ssh"),
            host=self.ssh_host,
        )
        self.git_service.ssh_settings = settings

    def stage_repository(self, workdir: str):
        self.git_service.clone(self.parameters.repo, workdir)
        self.git_service.add_remote(workdir, self.remote_name, self.parameters.repo)

    def patch_values(self, workdir: str) -> bool:
        return self.values_service.patch_image_tag(workdir, self.parameters.filename, self.parameters.tag)

    def publish_branch(self, workdir: str):
        self.git_service.publish(
            workdir,
            remote=self.remote_name,
            branch=self.branch_name,
            message=self.parameters.commit_message,
            identity=self.git_identity,
        )

    def ensure_labels(self):
        labels = deployment_labels(self.parameters.environment, self.parameters.service)
        return self.label_service.ensure_labels(self.parameters.org, self.repo_name, labels)

    def open_pull_request(self):
        return self.pull_request_service.open(
            self.parameters.org,
            self.repo_name,
            head=self.branch_name,
            base=self.base_branch,
            title=self.parameters.pull_request_title,
            body=self.parameters.pull_request_body,
        )

    def label_pull_request(self, number: int):
        names = [label.name for label in deployment_labels(self.parameters.environment, self.parameters.service)]
        return self.pull_request_service.add_labels(self.parameters.org, self.repo_name, number, names)

    def merge_pull_request(self, number: int) -> int:
        return self.pull_request_service.wait_and_merge(self.parameters.org, self.repo_name, number)

    def _update_repository(self) -> Optional[str]:
        """Stage, patch and publish. Returns a final status when the run ends early."""
        with self.filesystem_service.workspace(prefix=f"tagbump-{self.run_id}-") as run_dir:
            workdir = os.path.join(run_dir, "repo")

            if self.parameters.key:
                self._run_step("provision_credentials", self.provision_credentials, run_dir)
            else:
                logger.info("No deploy key provided; git will use the ambient credentials.")

            self._run_step("stage_repository", self.stage_repository, workdir)

            changed = self._run_step("patch_values", self.patch_values, workdir)
            if not changed:
                console.print(
                    f"[yellow]Tag {self.parameters.tag} is already set in {self.parameters.filename}; "
                    "nothing to do.[/yellow]"
                )
                return "unchanged"

            if self.dry_run:
                console.print(
                    f"[yellow]Dry run: would push {self.branch_name} and open a pull request "
                    f"into {self.base_branch}.[/yellow]"
                )
                return "dry_run"

            self._run_step("publish_branch", self.publish_branch, workdir)
        return None

    def run(self) -> int:
        exit_code = 1
        status = "failed"
        error: Optional[str] = None

        try:
            logger.info("Starting tagbump run %s...", self.run_id)
            self.report_service.start_run(self.run_id, self._build_report_metadata())
            self.report_service.set_result("branch", self.branch_name)

            early_status = self._update_repository()
            if early_status:
                status = early_status
                exit_code = 0
                return exit_code

            self._run_step("ensure_labels", self.ensure_labels)

            result = self._run_step("open_pull_request", self.open_pull_request)
            if isinstance(result, Conflict):
                console.print(f"[yellow]Pull request for {self.branch_name} already exists.[/yellow]")
                status = "pull_request_exists"
                exit_code = 0
                return exit_code
            if isinstance(result, Failure):
                raise PullRequestError(
                    actionable_error("pull_request_failed", branch=self.branch_name, error=result.reason)
                )
            if not isinstance(result, Success):
                raise unexpected_result(result)

            pull_request = result.value
            self.report_service.set_result("pull_request_number", pull_request.number)
            self.report_service.set_result("pull_request_url", pull_request.url)

            self._run_step("label_pull_request", self.label_pull_request, pull_request.number)
            self._run_step("merge_pull_request", self.merge_pull_request, pull_request.number)

            status = "merged"
            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            status = "aborted"
            error = "Operation cancelled by user."
            exit_code = 1
            return exit_code
        except MergeTimeoutError as exc:
            console.print(f"[bold red]Merge timed out:[/bold red] {exc}")
            logger.error(str(exc))
            status = "merge_timeout"
            error = str(exc)
            exit_code = exc.exit_code
            return exit_code
        except UpdaterError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            status = "failed"
            error = str(exc)
            exit_code = exc.exit_code
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            status = "failed"
            error = str(exc)
            exit_code = 1
            return exit_code
        finally:
            self.report_service.finalize(status, error=error)
