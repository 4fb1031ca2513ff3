"""Defaults shared across tagbump services."""

SSH_DIR_MODE = 0o700
KEY_FILE_MODE = 0o600

DEFAULT_CONFIG_FILE = ".tagbump.yml"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_BASE_BRANCH = "main"
DEFAULT_REMOTE_NAME = "upstream"
DEFAULT_SSH_HOST = "github.com"
DEFAULT_GIT_USER_NAME = "tagbump"
DEFAULT_GIT_USER_EMAIL = "tagbump@users.noreply.github.com"

DEPLOYMENT_LABEL = "deployment"
DEPLOYMENT_LABEL_COLOR = "009800"
ENVIRONMENT_LABEL_COLOR = "FFFFFF"
SERVICE_LABEL_COLOR = "0075ca"

PUSH_ATTEMPTS = 3
PUSH_RETRY_DELAY_SECONDS = 5.0
MERGE_ATTEMPTS = 10
MERGE_RETRY_DELAY_SECONDS = 10.0
API_TIMEOUT_SECONDS = 30.0
GITHUB_API_VERSION = "2022-11-28"
