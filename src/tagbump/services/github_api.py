"""Thin GitHub REST client returning closed result types instead of raising."""

from typing import Any, Dict, List, Optional

import requests

from tagbump.constants import API_TIMEOUT_SECONDS, DEFAULT_API_URL, GITHUB_API_VERSION
from tagbump.models import ApiResult, Conflict, Failure, Mergeability, PullRequest, Success


class GitHubApiService:
    """Wraps the handful of REST endpoints a deployment update needs.

    Every call returns :class:`Success`, :class:`Conflict` (HTTP 422, or 405/409
    for merges) or :class:`Failure`; transport errors are folded into
    :class:`Failure` so callers decide what is fatal.
    """

    def __init__(
        self,
        token: str,
        logger,
        api_url: str = DEFAULT_API_URL,
        timeout: float = API_TIMEOUT_SECONDS,
        requests_module=requests,
    ):
        self.logger = logger
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.requests = requests_module
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None):
        url = f"{self.api_url}{path}"
        self.logger.debug("%s %s", method, url)
        return self.requests.request(
            method,
            url,
            headers=self.headers,
            json=payload,
            timeout=self.timeout,
        )

    @staticmethod
    def _error_message(response) -> str:
        try:
            data = response.json()
        except ValueError:
            return (response.text or "").strip() or f"HTTP {response.status_code}"
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return f"HTTP {response.status_code}"

    def _call(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        ok_statuses=(200, 201),
        conflict_statuses=(422,),
    ):
        try:
            response = self._request(method, path, payload)
        except self.requests.RequestException as exc:
            return Failure(reason=str(exc))

        if response.status_code in ok_statuses:
            try:
                body = response.json()
            except ValueError:
                body = None
            return Success(value=body)
        message = self._error_message(response)
        if response.status_code in conflict_statuses:
            return Conflict(message=message)
        return Failure(
            reason=f"{message} (HTTP {response.status_code})",
            status_code=response.status_code,
        )

    def create_label(self, org: str, repo: str, name: str, color: str) -> ApiResult:
        return self._call(
            "POST",
            f"/repos/{org}/{repo}/labels",
            {"name": name, "color": color},
            ok_statuses=(201,),
        )

    def create_pull_request(
        self,
        org: str,
        repo: str,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> ApiResult:
        result = self._call(
            "POST",
            f"/repos/{org}/{repo}/pulls",
            {"title": title, "head": head, "base": base, "body": body},
            ok_statuses=(201,),
        )
        if isinstance(result, Success):
            data = result.value or {}
            if "number" not in data:
                return Failure(reason="Pull request response did not include a number")
            return Success(value=PullRequest(number=int(data["number"]), url=data.get("html_url", "")))
        return result

    def add_labels(self, org: str, repo: str, number: int, labels: List[str]) -> ApiResult:
        return self._call(
            "POST",
            f"/repos/{org}/{repo}/issues/{number}/labels",
            {"labels": labels},
            ok_statuses=(200,),
        )

    def get_mergeability(self, org: str, repo: str, number: int) -> ApiResult:
        result = self._call("GET", f"/repos/{org}/{repo}/pulls/{number}", ok_statuses=(200,))
        if isinstance(result, Success):
            data = result.value or {}
            return Success(value=Mergeability.from_api(data.get("mergeable")))
        return result

    def merge_pull_request(self, org: str, repo: str, number: int) -> ApiResult:
        return self._call(
            "PUT",
            f"/repos/{org}/{repo}/pulls/{number}/merge",
            {},
            ok_statuses=(200,),
            conflict_statuses=(405, 409),
        )
