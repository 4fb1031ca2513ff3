"""Resolution of invocation parameters from CLI, environment and config."""

from typing import Any, Dict, Mapping, Optional

from tagbump.errors import ConfigurationError
from tagbump.errors_catalog import actionable_error
from tagbump.models import InvocationParameters, extract_repo_name

REQUIRED_PARAMETERS = ("token", "filename", "tag", "service", "environment", "repo", "org")
OPTIONAL_PARAMETERS = ("key",)


def env_var_for(name: str) -> str:
    """Name of the variable a CI runner uses to pass the ``name`` input."""
    return f"INPUT_{name.upper()}"


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def resolve_parameters(values: Mapping[str, Any]) -> InvocationParameters:
    cleaned: Dict[str, Optional[str]] = {
        name: _clean(values.get(name)) for name in REQUIRED_PARAMETERS + OPTIONAL_PARAMETERS
    }

    missing = [name for name in REQUIRED_PARAMETERS if cleaned[name] is None]
    if missing:
        names = ", ".join(f"'{name}' (--{name} / {env_var_for(name)})" for name in missing)
        raise ConfigurationError(actionable_error("missing_parameters", names=names))

    extract_repo_name(cleaned["repo"])

    return InvocationParameters(**cleaned)
