"""Configuration loader for tagbump."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from tagbump.errors import ConfigurationError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "token",
        "filename",
        "tag",
        "service",
        "environment",
        "repo",
        "org",
        "key",
        "api_url",
        "base_branch",
        "remote_name",
        "ssh_host",
        "git_user_name",
        "git_user_email",
        "push_attempts",
        "push_retry_delay",
        "merge_attempts",
        "merge_retry_delay",
        "dry_run",
        "verbose",
        "log_file",
        "report_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigurationError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigurationError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ConfigurationError(f"Unknown configuration keys: {unknown_list}")

        return parsed
