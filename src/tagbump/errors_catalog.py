"""Actionable error catalog for tagbump."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "missing_parameters": {
        "what": "Missing required parameters: {names}.",
        "next": "Pass them as options, set the matching INPUT_* variables, or add them to the config file.",
    },
    "invalid_repo_url": {
        "what": "Unable to extract repository name from '{repo}'.",
        "next": "Use an SSH or HTTPS repository URL ending in `<name>.git`.",
    },
    "invalid_deploy_key": {
        "what": "Deploy key is not a valid base64-encoded private key: {error}",
        "next": "Store the key as a single-line base64 string, e.g. `base64 -w0 id_ed25519`.",
    },
    "keyscan_failed": {
        "what": "Could not record the host key for {host}: {error}",
        "next": "Check that ssh-keyscan is installed and {host} is reachable.",
    },
    "clone_failed": {
        "what": "Failed to clone {repo}: {error}",
        "next": "Verify the repository URL and that the deploy key has read access.",
    },
    "push_failed": {
        "what": "Failed to push branch {branch} after {attempts} attempts: {error}",
        "next": "Check that the deploy key has write access and the remote is reachable.",
    },
    "values_file_not_found": {
        "what": "Failed to locate {path}.",
        "next": "Chart missing or wrong environment? Check the filename and environment inputs.",
    },
    "invalid_values_yaml": {
        "what": "Failed to parse YAML from file {path}: {error}",
        "next": "Fix the YAML syntax of the values file in the chart repository.",
    },
    "missing_image_section": {
        "what": "{path} has no `image` mapping.",
        "next": "Add an `image.tag` entry to the values file.",
    },
    "values_write_failed": {
        "what": "Failed to write to file {path}: {error}",
        "next": "Check free disk space and permissions of the working directory.",
    },
    "pull_request_failed": {
        "what": "Could not open a pull request for {branch}: {error}",
        "next": "Check that the token can write pull requests and that the base branch exists.",
    },
    "merge_timeout": {
        "what": "Pull request #{number} did not merge after {attempts} attempts.",
        "next": "Review required checks, conflicts and branch protection on the pull request.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
