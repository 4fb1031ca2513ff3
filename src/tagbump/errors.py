"""Domain errors for tagbump."""


class UpdaterError(RuntimeError):
    """Raised when the update cannot continue safely."""

    exit_code = 1


class ConfigurationError(UpdaterError):
    """Required input is missing or malformed."""


class CredentialError(UpdaterError):
    """Deploy key or SSH host setup failed."""


class CommandError(UpdaterError):
    """An external command exited unsuccessfully."""

    def __init__(self, message: str, returncode=None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class TransportError(UpdaterError):
    """Clone or push against the remote repository failed."""


class ValuesFileError(UpdaterError):
    """The values file is missing, unparsable or has an unexpected shape."""


class PullRequestError(UpdaterError):
    """The pull request could not be opened."""


class MergeTimeoutError(UpdaterError):
    """The pull request never became mergeable within the allowed attempts."""

    exit_code = 2
