import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_API_URL,
    DEFAULT_BASE_BRANCH,
    DEFAULT_CONFIG_FILE,
    DEFAULT_GIT_USER_EMAIL,
    DEFAULT_GIT_USER_NAME,
    DEFAULT_REMOTE_NAME,
    DEFAULT_SSH_HOST,
    MERGE_ATTEMPTS,
    MERGE_RETRY_DELAY_SECONDS,
    PUSH_ATTEMPTS,
    PUSH_RETRY_DELAY_SECONDS,
)
from .core import TagUpdater
from .errors import UpdaterError
from .inputs import env_var_for, resolve_parameters
from .models import GitIdentity
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option("--token", envvar=env_var_for("token"), help="GitHub token used for labels and pull requests.")
@click.option(
    "--filename",
    envvar=env_var_for("filename"),
    help="Values file to update, relative to the chart repository root.",
)
@click.option("--tag", envvar=env_var_for("tag"), help="Image tag to deploy.")
@click.option("--service", envvar=env_var_for("service"), help="Service being deployed.")
@click.option("--environment", envvar=env_var_for("environment"), help="Target environment.")
@click.option(
    "--repo",
    envvar=env_var_for("repo"),
    help="Chart repository URL (SSH or HTTPS, ending in <name>.git).",
)
@click.option("--org", envvar=env_var_for("org"), help="Owner of the chart repository.")
@click.option(
    "--key",
    envvar=env_var_for("key"),
    help="Base64-encoded SSH deploy key. Omit to use the ambient git credentials.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--api-url", envvar="GITHUB_API_URL", help=f"GitHub API base URL (default: {DEFAULT_API_URL}).")
@click.option("--base-branch", required=False, help=f"Pull request base branch (default: {DEFAULT_BASE_BRANCH}).")
@click.option("--remote-name", required=False, help=f"Name of the push remote (default: {DEFAULT_REMOTE_NAME}).")
@click.option("--ssh-host", required=False, help=f"Host to trust for SSH (default: {DEFAULT_SSH_HOST}).")
@click.option("--git-user-name", required=False, help="Commit author name.")
@click.option("--git-user-email", required=False, help="Commit author email.")
@click.option(
    "--push-attempts",
    required=False,
    type=int,
    default=None,
    help=f"Total push attempts (default: {PUSH_ATTEMPTS}).",
)
@click.option(
    "--push-retry-delay",
    required=False,
    type=float,
    default=None,
    help=f"Seconds between push attempts (default: {PUSH_RETRY_DELAY_SECONDS}).",
)
@click.option(
    "--merge-attempts",
    required=False,
    type=int,
    default=None,
    help=f"Mergeability checks before giving up (default: {MERGE_ATTEMPTS}).",
)
@click.option(
    "--merge-retry-delay",
    required=False,
    type=float,
    default=None,
    help=f"Seconds between mergeability checks (default: {MERGE_RETRY_DELAY_SECONDS}).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help="Patch the values file locally but do not push or open a pull request.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.option("--report-file", type=click.Path(), help="Write a JSON run report to this path.")
@click.option(
    "--github-output",
    envvar="GITHUB_OUTPUT",
    type=click.Path(),
    help="File receiving step outputs as key=value lines.",
)
def main(
    token,
    filename,
    tag,
    service,
    environment,
    repo,
    org,
    key,
    config,
    api_url,
    base_branch,
    remote_name,
    ssh_host,
    git_user_name,
    git_user_email,
    push_attempts,
    push_retry_delay,
    merge_attempts,
    merge_retry_delay,
    dry_run,
    verbose,
    log_file,
    report_file,
    github_output,
):
    """Bump an image tag in a Helm chart repository and merge it through a pull request."""
    logger = logging.getLogger("tagbump")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)

        parameters = resolve_parameters(
            {
                "token": _resolve_option(token, config_values, "token"),
                "filename": _resolve_option(filename, config_values, "filename"),
                "tag": _resolve_option(tag, config_values, "tag"),
                "service": _resolve_option(service, config_values, "service"),
                "environment": _resolve_option(environment, config_values, "environment"),
                "repo": _resolve_option(repo, config_values, "repo"),
                "org": _resolve_option(org, config_values, "org"),
                "key": _resolve_option(key, config_values, "key"),
            }
        )
    except UpdaterError as exc:
        raise click.ClickException(str(exc)) from exc

    api_url = _resolve_option(api_url, config_values, "api_url", default=DEFAULT_API_URL)
    base_branch = _resolve_option(base_branch, config_values, "base_branch", default=DEFAULT_BASE_BRANCH)
    remote_name = _resolve_option(remote_name, config_values, "remote_name", default=DEFAULT_REMOTE_NAME)
    ssh_host = _resolve_option(ssh_host, config_values, "ssh_host", default=DEFAULT_SSH_HOST)
    git_user_name = _resolve_option(
        git_user_name, config_values, "git_user_name", default=DEFAULT_GIT_USER_NAME
    )
    git_user_email = _resolve_option(
        git_user_email, config_values, "git_user_email", default=DEFAULT_GIT_USER_EMAIL
    )
    push_attempts = int(_resolve_option(push_attempts, config_values, "push_attempts", default=PUSH_ATTEMPTS))
    push_retry_delay = float(
        _resolve_option(
            push_retry_delay,
            config_values,
            "push_retry_delay",
            default=PUSH_RETRY_DELAY_SECONDS,
        )
    )
    merge_attempts = int(
        _resolve_option(merge_attempts, config_values, "merge_attempts", default=MERGE_ATTEMPTS)
    )
    merge_retry_delay = float(
        _resolve_option(
            merge_retry_delay,
            config_values,
            "merge_retry_delay",
            default=MERGE_RETRY_DELAY_SECONDS,
        )
    )
    dry_run = bool(_resolve_option(dry_run, config_values, "dry_run", default=False))
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    report_file = _resolve_option(report_file, config_values, "report_file")

    if push_attempts < 1:
        raise click.ClickException("--push-attempts must be at least 1.")
    if merge_attempts < 1:
        raise click.ClickException("--merge-attempts must be at least 1.")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    updater = TagUpdater(
        parameters=parameters,
        api_url=api_url,
        base_branch=base_branch,
        remote_name=remote_name,
        ssh_host=ssh_host,
        git_identity=GitIdentity(name=git_user_name, email=git_user_email),
        push_attempts=push_attempts,
        push_retry_delay_seconds=push_retry_delay,
        merge_attempts=merge_attempts,
        merge_retry_delay_seconds=merge_retry_delay,
        dry_run=dry_run,
        report_file=report_file,
        outputs_file=github_output,
    )

    raise SystemExit(updater.run())


if __name__ == "__main__":
    main()
