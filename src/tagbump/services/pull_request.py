"""Pull request lifecycle: open, label, wait until mergeable, merge."""

import time
from typing import List

from tagbump.constants import MERGE_ATTEMPTS, MERGE_RETRY_DELAY_SECONDS
from tagbump.errors import MergeTimeoutError
from tagbump.errors_catalog import actionable_error
from tagbump.models import (
    ApiResult,
    Conflict,
    Failure,
    Mergeability,
    PullRequest,
    Success,
    unexpected_result,
)


class PullRequestService:
    """Drives one pull request from creation to merge."""

    def __init__(
        self,
        api,
        logger,
        console,
        merge_attempts: int = MERGE_ATTEMPTS,
        merge_retry_delay_seconds: float = MERGE_RETRY_DELAY_SECONDS,
    ):
        self.api = api
        self.logger = logger
        self.console = console
        self.merge_attempts = max(1, merge_attempts)
        self.merge_retry_delay_seconds = merge_retry_delay_seconds

    def open(
        self,
        org: str,
        repo: str,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> ApiResult:
        """Open a pull request.

        Returns ``Success(PullRequest)``, ``Conflict`` when a pull request for
        ``head`` already exists, or ``Failure`` for anything else.
        """
        result = self.api.create_pull_request(org, repo, head, base, title, body)
        if isinstance(result, Success):
            pull_request: PullRequest = result.value
            self.console.print(f"[green]Pull request created successfully: {pull_request.url}[/green]")
        elif isinstance(result, Conflict):
            self.logger.info("Pull request already exists for %s: %s", head, result.message)
        elif isinstance(result, Failure):
            self.logger.error("Failed to create pull request. Error: %s", result.reason)
        else:
            raise unexpected_result(result)
        return result

    def add_labels(self, org: str, repo: str, number: int, labels: List[str]) -> bool:
        result = self.api.add_labels(org, repo, number, labels)
        if isinstance(result, Success):
            self.logger.info("Labels added to pull request #%s", number)
            return True
        if isinstance(result, (Conflict, Failure)):
            reason = result.message if isinstance(result, Conflict) else result.reason
            self.logger.error("Failed to add labels to pull request #%s. Error: %s", number, reason)
            return False
        raise unexpected_result(result)

    def check_mergeable(self, org: str, repo: str, number: int) -> Mergeability:
        result = self.api.get_mergeability(org, repo, number)
        if isinstance(result, Success):
            return result.value
        if isinstance(result, (Conflict, Failure)):
            reason = result.message if isinstance(result, Conflict) else result.reason
            self.logger.error("Failed to check pull request mergeable status. Error: %s", reason)
            return Mergeability.PENDING
        raise unexpected_result(result)

    def _try_merge(self, org: str, repo: str, number: int) -> bool:
        result = self.api.merge_pull_request(org, repo, number)
        if isinstance(result, Success):
            self.console.print(f"[bold green]Pull request #{number} merged successfully.[/bold green]")
            return True
        if isinstance(result, Conflict):
            self.logger.warning("Pull request #%s is not ready to merge: %s", number, result.message)
            return False
        if isinstance(result, Failure):
            self.logger.error("Failed to merge pull request #%s. Error: %s", number, result.reason)
            return False
        raise unexpected_result(result)

    def wait_and_merge(self, org: str, repo: str, number: int) -> int:
        """Poll until the pull request is mergeable and merge it.

        Returns the attempt on which the merge succeeded; raises
        :class:`MergeTimeoutError` once every attempt is used up.
        """
        for attempt in range(1, self.merge_attempts + 1):
            self.logger.info(
                "Attempt %s/%s: checking if pull request #%s is mergeable",
                attempt,
                self.merge_attempts,
                number,
            )
            state = self.check_mergeable(org, repo, number)

            if state is Mergeability.MERGEABLE:
                if self._try_merge(org, repo, number):
                    return attempt
            elif state is Mergeability.PENDING:
                self.logger.info("Mergeable state of pull request #%s is not computed yet.", number)
            else:
                self.logger.info("Pull request #%s is not mergeable yet.", number)

            if attempt < self.merge_attempts:
                self.logger.info("Will retry in %.1f seconds...", self.merge_retry_delay_seconds)
                time.sleep(self.merge_retry_delay_seconds)

        raise MergeTimeoutError(
            actionable_error("merge_timeout", number=number, attempts=self.merge_attempts)
        )

