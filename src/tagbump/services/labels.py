"""Idempotent creation of the deployment labels."""

from typing import Dict, List

from tagbump.constants import (
    DEPLOYMENT_LABEL,
    DEPLOYMENT_LABEL_COLOR,
    ENVIRONMENT_LABEL_COLOR,
    SERVICE_LABEL_COLOR,
)
from tagbump.models import ApiResult, Conflict, Failure, LabelSpec, Success, unexpected_result


def deployment_labels(environment: str, service: str) -> List[LabelSpec]:
    return [
        LabelSpec(name=DEPLOYMENT_LABEL, color=DEPLOYMENT_LABEL_COLOR),
        LabelSpec(name=environment, color=ENVIRONMENT_LABEL_COLOR),
        LabelSpec(name=service, color=SERVICE_LABEL_COLOR),
    ]


class LabelService:
    """Makes sure labels exist; failures are reported but never fatal."""

    def __init__(self, api, logger):
        self.api = api
        self.logger = logger

    def ensure_label(self, org: str, repo: str, label: LabelSpec) -> bool:
        result: ApiResult = self.api.create_label(org, repo, label.name, label.color)
        if isinstance(result, Success):
            self.logger.info("Label '%s' created successfully.", label.name)
            return True
        if isinstance(result, Conflict):
            self.logger.info("Label '%s' already exists.", label.name)
            return True
        if isinstance(result, Failure):
            self.logger.error("Failed to create label '%s'. Error: %s", label.name, result.reason)
            return False
        raise unexpected_result(result)

    def ensure_labels(self, org: str, repo: str, labels: List[LabelSpec]) -> Dict[str, bool]:
        return {label.name: self.ensure_label(org, repo, label) for label in labels}
