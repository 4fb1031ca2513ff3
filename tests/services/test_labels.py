from tagbump.models import Conflict, Failure, LabelSpec, Success
from tagbump.services.labels import LabelService, deployment_labels


class RecordingLogger:
    def __init__(self):
        self.errors = []

    def info(self, *_args, **_kwargs):
        return None

    def error(self, message, *args, **_kwargs):
        self.errors.append(message % args)


class FakeLabelApi:
    def __init__(self):
        self.existing = set()
        self.broken = set()
        self.calls = []

    def create_label(self, org, repo, name, color):
        self.calls.append((org, repo, name, color))
        if name in self.broken:
            return Failure(reason="Bad credentials (HTTP 401)", status_code=401)
        if name in self.existing:
            return Conflict(message="Validation Failed")
        self.existing.add(name)
        return Success(value={"name": name})


def test_deployment_labels_use_fixed_colors():
    labels = deployment_labels("prod", "api")

    assert labels == [
        LabelSpec(name="deployment", color="009800"),
        LabelSpec(name="prod", color="FFFFFF"),
        LabelSpec(name="api", color="0075ca"),
    ]


def test_ensure_labels_is_idempotent():
    api = FakeLabelApi()
    service = LabelService(api=api, logger=RecordingLogger())
    labels = deployment_labels("prod", "api")

    first = service.ensure_labels("acme", "charts", labels)
    second = service.ensure_labels("acme", "charts", labels)

    assert first == {"deployment": True, "prod": True, "api": True}
    assert second == first
    assert len(api.calls) == 6


def test_label_failure_is_logged_and_does_not_stop_the_others():
    api = FakeLabelApi()
    api.broken.add("prod")
    logger = RecordingLogger()
    service = LabelService(api=api, logger=logger)

    outcome = service.ensure_labels("acme", "charts", deployment_labels("prod", "api"))

    assert outcome == {"deployment": True, "prod": False, "api": True}
    assert len(logger.errors) == 1
    assert "Failed to create label 'prod'" in logger.errors[0]
