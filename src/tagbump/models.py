"""Shared domain models for tagbump."""

import re
import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from tagbump.errors import ConfigurationError
from tagbump.errors_catalog import actionable_error

_REPO_NAME_PATTERN = re.compile(r"[/:]([^/:]+)\.git$")
_URL_USERINFO_PATTERN = re.compile(r"(https?://)[^/@\s]+@")


def redact_url_credentials(text: str) -> str:
    """Mask ``user:token@`` in HTTP(S) URLs so they can be logged."""
    return _URL_USERINFO_PATTERN.sub(r"\1***@", text)


def build_branch_name(environment: str, service: str, tag: str) -> str:
    return f"update-{environment}-{service}-{tag}"


def extract_repo_name(repo_url: str) -> str:
    """Return ``name`` from an SSH or HTTPS URL ending in ``name.git``."""
    match = _REPO_NAME_PATTERN.search(repo_url.strip())
    if not match:
        raise ConfigurationError(actionable_error("invalid_repo_url", repo=repo_url))
    return match.group(1)


@dataclass(frozen=True)
class InvocationParameters:
    """Inputs of a single run, resolved once before any side effect."""

    token: str = field(repr=False)
    filename: str
    tag: str
    service: str
    environment: str
    repo: str
    org: str
    key: Optional[str] = field(default=None, repr=False)

    @property
    def branch_name(self) -> str:
        return build_branch_name(self.environment, self.service, self.tag)

    @property
    def repo_name(self) -> str:
        return extract_repo_name(self.repo)

    @property
    def commit_message(self) -> str:
        return f"chore: updating {self.environment}-{self.service} with {self.tag}"

    @property
    def pull_request_title(self) -> str:
        return f"chore: update {self.environment}-{self.service} to tag {self.tag}"

    @property
    def pull_request_body(self) -> str:
        return f"Updating {self.filename} to use tag {self.tag}"


@dataclass(frozen=True)
class GitIdentity:
    name: str
    email: str


@dataclass(frozen=True)
class SshSettings:
    """Deploy key material scoped to one run."""

    key_path: str
    known_hosts_path: str

    def git_ssh_command(self) -> str:
        return " ".join(
            [
                "ssh",
                "-i",
                shlex.quote(self.key_path),
                "-o",
                "IdentitiesOnly=yes",
                "-o",
                f"UserKnownHostsFile={shlex.quote(self.known_hosts_path)}",
                "-o",
                "StrictHostKeyChecking=yes",
            ]
        )


@dataclass(frozen=True)
class LabelSpec:
    name: str
    color: str


@dataclass(frozen=True)
class PullRequest:
    number: int
    url: str


class Mergeability(Enum):
    """Merge readiness as reported by the hosting API."""

    MERGEABLE = "mergeable"
    PENDING = "pending"
    NOT_MERGEABLE = "not_mergeable"

    @classmethod
    def from_api(cls, value) -> "Mergeability":
        if value is True:
            return cls.MERGEABLE
        if value is False:
            return cls.NOT_MERGEABLE
        return cls.PENDING


@dataclass(frozen=True)
class Success:
    value: Any = None


@dataclass(frozen=True)
class Conflict:
    message: str = ""


@dataclass(frozen=True)
class Failure:
    reason: str
    status_code: Optional[int] = None


ApiResult = Union[Success, Conflict, Failure]


def unexpected_result(result) -> TypeError:
    return TypeError(f"Unexpected API result: {result!r}")
